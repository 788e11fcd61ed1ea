"""The web application manifest aggregate.

``WebAppManifest`` is the typed form of a manifest document. A freshly
parsed instance may hold relative URLs and inconsistent scope data; call
``process`` with the document and manifest URLs to obtain a manifest whose
URLs are absolute and whose start URL lies within its scope.

Example:
    >>> manifest = WebAppManifest.from_json('{"start_url": "/app/", "display": "standalone"}')
    >>> processed = manifest.process(
    ...     "https://example.com/index.html",
    ...     "https://example.com/site.webmanifest",
    ... )
    >>> processed.start_url, processed.scope
    ('https://example.com/app/', 'https://example.com/app/')
"""

import json
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import Field, ValidationError

from .core.resources import (
    ExternalApplicationResource,
    FileHandlerResource,
    IconResource,
    ManifestModel,
    ProtocolHandlerResource,
    ResourceList,
    ScreenshotResource,
    ShareTargetResource,
    ShortcutResource,
    UrlBase,
    UrlField,
    UserPreferences,
)
from .core.types import (
    ColorField,
    Direction,
    DirectionField,
    Display,
    DisplayField,
    DisplayOverrideList,
    LanguageTagField,
    ManifestEnum,
    Orientation,
    OrientationField,
)
from .errors import ManifestParseError

if TYPE_CHECKING:
    from .pipeline import ProcessOptions


class WebAppManifest(ManifestModel):
    """Typed representation of a W3C Web Application Manifest.

    Every member has a default, so ``WebAppManifest()`` is a valid (empty)
    manifest. ``start_url`` and ``scope`` left as ``None`` mean "unknown":
    processing derives them from the document URL and the start URL.
    """

    URL_FIELDS: ClassVar[dict[str, UrlField]] = {
        "start_url": UrlField(UrlBase.MANIFEST_URL),
        "scope": UrlField(UrlBase.START_URL),
        "id": UrlField(UrlBase.START_URL_ORIGIN, required=False),
    }
    ENUM_FIELDS: ClassVar[dict[str, type[ManifestEnum]]] = {
        "dir": Direction,
        "display": Display,
        "orientation": Orientation,
    }

    start_url: str | None = None
    scope: str | None = None
    id: str | None = None
    name: str | None = None
    short_name: str | None = None
    description: str | None = None
    categories: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    dir: DirectionField = Direction.AUTO
    lang: LanguageTagField = None
    display: DisplayField = Display.BROWSER
    display_override: DisplayOverrideList = Field(default_factory=list)
    orientation: OrientationField = Orientation.ANY
    background_color: ColorField = None
    theme_color: ColorField = None
    iarc_rating_id: str | None = None
    prefer_related_applications: bool = False
    related_applications: ResourceList[ExternalApplicationResource] = Field(default_factory=list)
    protocol_handlers: ResourceList[ProtocolHandlerResource] = Field(default_factory=list)
    shortcuts: ResourceList[ShortcutResource] = Field(default_factory=list)
    share_target: ShareTargetResource | None = None
    file_handlers: ResourceList[FileHandlerResource] = Field(default_factory=list)
    icons: ResourceList[IconResource] = Field(default_factory=list)
    screenshots: ResourceList[ScreenshotResource] = Field(default_factory=list)
    user_preferences: UserPreferences | None = None

    @classmethod
    def from_dict(cls, document: Mapping[str, Any]) -> "WebAppManifest":
        """Build a manifest from an already-decoded document.

        Raises:
            ManifestParseError: If the document is not a mapping
        """
        if not isinstance(document, Mapping):
            raise ManifestParseError(
                f"Manifest must be a JSON object, got {type(document).__name__}"
            )
        try:
            return cls.model_validate(dict(document))
        except ValidationError as e:
            raise ManifestParseError(str(e)) from e

    @classmethod
    def from_json(cls, data: str | bytes) -> "WebAppManifest":
        """Parse a manifest from JSON text.

        Raises:
            ManifestParseError: If the text is not JSON or not a JSON object
        """
        try:
            document = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ManifestParseError(f"Manifest is not valid JSON: {e}") from e
        return cls.from_dict(document)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to JSON-compatible primitives, omitting unset optional members."""
        return self.model_dump(mode="json", exclude_none=True)

    def to_json(self, indent: int | None = None) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    def process(
        self,
        document_url: str,
        manifest_url: str,
        options: "ProcessOptions | None" = None,
    ) -> "WebAppManifest":
        """Return a processed copy of this manifest.

        This instance is left untouched. Diagnostics are logged; use
        ``ManifestProcessor`` directly to collect them.

        Args:
            document_url: Absolute URL of the document that linked the manifest
            manifest_url: Absolute URL the manifest was fetched from
            options: Strictness options (defaults to self-healing everything)

        Returns:
            New manifest satisfying all processing invariants

        Raises:
            InvalidStartUrlOrigin: Only with ``options.strict_origin``
            StartUrlOutOfScope: Only with ``options.strict_scope``
        """
        # Import here to avoid circular dependency
        from .pipeline import ManifestProcessor

        return ManifestProcessor(options).process(self, document_url, manifest_url).manifest


def load_manifest(path: Path) -> WebAppManifest:
    """Read and parse a manifest file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ManifestParseError: If the file is not a JSON object
    """
    with Path(path).open("r", encoding="utf-8-sig") as f:
        return WebAppManifest.from_json(f.read())
