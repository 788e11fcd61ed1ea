"""Registry of the manifest members that hold URL-bearing resources.

The processor walks the collections registered here, in registration order,
and resolves each resource according to its type's ``URL_FIELDS`` table.
Collection-level rules live in the registry: whether the member is a list
or a single optional resource, whether its URLs must fall within the
manifest scope, and any extra acceptance check for the resource type.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass

from .core.resources import (
    ExternalApplicationResource,
    FileHandlerResource,
    IconResource,
    ManifestResource,
    ProtocolHandlerResource,
    ScreenshotResource,
    ShareTargetResource,
    ShortcutResource,
)

# Returns a rejection reason, or None when the resource is acceptable
ResourceCheck = Callable[[ManifestResource], "str | None"]


@dataclass(frozen=True)
class CollectionSpec:
    """How one manifest member is processed.

    Attributes:
        name: Manifest member holding the resource(s)
        resource_type: Model class of the entries
        many: True for lists, False for a single optional resource
        scoped: Whether resolved URLs must lie within the manifest scope
        check: Optional extra acceptance rule applied after resolution
    """

    name: str
    resource_type: type[ManifestResource]
    many: bool = True
    scoped: bool = False
    check: ResourceCheck | None = None


class ResourceRegistry:
    """Central registry of resource collections.

    Collections register themselves when this module is imported. The
    registration order is the processing order.
    """

    _collections: dict[str, CollectionSpec] = {}

    @classmethod
    def register(cls, spec: CollectionSpec) -> None:
        """Register (or replace) the processing rules for a manifest member.

        Example:
            >>> ResourceRegistry.register(CollectionSpec('icons', IconResource))
        """
        cls._collections[spec.name] = spec

    @classmethod
    def get(cls, name: str) -> CollectionSpec:
        """Look up a registered collection.

        Raises:
            ValueError: If no collection is registered under ``name``
        """
        if name not in cls._collections:
            available = ", ".join(cls._collections.keys()) or "none"
            raise ValueError(f"Unknown collection: '{name}'. Available collections: {available}")
        return cls._collections[name]

    @classmethod
    def list_collections(cls) -> list[str]:
        """List registered collection names in processing order.

        Example:
            >>> ResourceRegistry.list_collections()[:2]
            ['icons', 'screenshots']
        """
        return list(cls._collections.keys())

    @classmethod
    def collections(cls) -> list[CollectionSpec]:
        return list(cls._collections.values())


# Schemes a protocol handler may claim without the "web+" prefix
SAFELISTED_SCHEMES = frozenset(
    {
        "bitcoin",
        "ftp",
        "ftps",
        "geo",
        "im",
        "irc",
        "ircs",
        "magnet",
        "mailto",
        "matrix",
        "mms",
        "news",
        "nntp",
        "openpgp4fpr",
        "sftp",
        "sip",
        "sms",
        "smsto",
        "ssh",
        "tel",
        "urn",
        "webcal",
        "wtai",
        "xmpp",
    }
)

_CUSTOM_SCHEME_RE = re.compile(r"^web\+[a-z]+$")


def check_protocol_handler(resource: ManifestResource) -> str | None:
    protocol = getattr(resource, "protocol", "").strip().lower()
    if protocol in SAFELISTED_SCHEMES or _CUSTOM_SCHEME_RE.match(protocol):
        return None
    return f"protocol {protocol!r} is neither safelisted nor a web+ scheme"


def check_related_application(resource: ManifestResource) -> str | None:
    if getattr(resource, "url", None) is None and not getattr(resource, "id", None):
        return "related application has neither a url nor an id"
    return None


ResourceRegistry.register(CollectionSpec("icons", IconResource))
ResourceRegistry.register(CollectionSpec("screenshots", ScreenshotResource))
ResourceRegistry.register(CollectionSpec("shortcuts", ShortcutResource, scoped=True))
ResourceRegistry.register(
    CollectionSpec("share_target", ShareTargetResource, many=False, scoped=True)
)
ResourceRegistry.register(CollectionSpec("file_handlers", FileHandlerResource, scoped=True))
ResourceRegistry.register(
    CollectionSpec(
        "protocol_handlers", ProtocolHandlerResource, scoped=True, check=check_protocol_handler
    )
)
ResourceRegistry.register(
    CollectionSpec(
        "related_applications", ExternalApplicationResource, check=check_related_application
    )
)
