"""Resource models nested inside a manifest.

Each resource type declares, in ``URL_FIELDS``, which of its members are
URLs and which base URL each one is resolved against. The tables are fixed
per type and are read by the processor; nothing about them can be changed at
runtime. Members that hold lists of other resources carrying URLs are named
in ``NESTED_COLLECTIONS``.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, ClassVar, TypeVar

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    field_validator,
)

from .types import (
    ANY_SIZE,
    ColorField,
    ColorScheme,
    FormFactorField,
    ImagePurpose,
    ImagePurposes,
    ImageSizes,
    LaunchType,
    LaunchTypeField,
    ManifestEnum,
    MediaTypeField,
    ShareTargetEnctype,
    ShareTargetEnctypeField,
    ShareTargetMethod,
    ShareTargetMethodField,
)

logger = logging.getLogger(__name__)


class UrlBase(Enum):
    """Which URL a relative reference is resolved against."""

    MANIFEST_URL = "manifest_url"
    START_URL = "start_url"
    START_URL_ORIGIN = "start_url_origin"


@dataclass(frozen=True)
class UrlField:
    """Resolution rule for one URL-bearing member.

    A required URL that fails to resolve invalidates the whole resource; an
    optional one is cleared.
    """

    base: UrlBase
    required: bool = True


def _string_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [item for item in value if isinstance(item, str)]
    return []


StringList = Annotated[list[str], BeforeValidator(_string_list)]

R = TypeVar("R")


def _resource_items(value: Any) -> Any:
    if not isinstance(value, (list, tuple)):
        return value
    items = [item for item in value if isinstance(item, (dict, BaseModel))]
    if len(items) != len(value):
        logger.warning("Ignoring %d list entries that are not objects", len(value) - len(items))
    return items


# A list of nested objects in which entries of the wrong type are skipped
ResourceList = Annotated[list[R], BeforeValidator(_resource_items)]


class ManifestModel(BaseModel):
    """Pydantic base that ignores members of the wrong type.

    A member that fails validation takes its default value instead of
    failing the whole document. Unknown members are dropped.
    """

    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    ENUM_FIELDS: ClassVar[dict[str, type[ManifestEnum]]] = {}

    @field_validator("*", mode="wrap")
    @classmethod
    def _ignore_invalid_member(
        cls, value: Any, handler: ValidatorFunctionWrapHandler, info: ValidationInfo
    ) -> Any:
        try:
            return handler(value)
        except ValidationError:
            logger.warning("Ignoring invalid %s.%s value %r", cls.__name__, info.field_name, value)
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)


class ManifestResource(ManifestModel):
    """Base class for every structured entry of a manifest."""

    URL_FIELDS: ClassVar[dict[str, UrlField]] = {}
    NESTED_COLLECTIONS: ClassVar[tuple[str, ...]] = ()


class IconResource(ManifestResource):
    """An image representing the application, such as a launcher icon."""

    URL_FIELDS: ClassVar[dict[str, UrlField]] = {"src": UrlField(UrlBase.MANIFEST_URL)}

    src: str | None = None
    type: MediaTypeField = None
    sizes: ImageSizes = Field(default_factory=lambda: [ANY_SIZE])
    purpose: ImagePurposes = Field(default_factory=lambda: [ImagePurpose.ANY])
    label: str | None = None


class ScreenshotResource(ManifestResource):
    """An image showing the application in common usage scenarios."""

    URL_FIELDS: ClassVar[dict[str, UrlField]] = {"src": UrlField(UrlBase.MANIFEST_URL)}

    src: str | None = None
    type: MediaTypeField = None
    sizes: ImageSizes = Field(default_factory=lambda: [ANY_SIZE])
    platform: str | None = None
    label: str | None = None
    form_factor: FormFactorField = None


class ShortcutResource(ManifestResource):
    """A link to a key task or page within the application."""

    URL_FIELDS: ClassVar[dict[str, UrlField]] = {"url": UrlField(UrlBase.MANIFEST_URL)}
    NESTED_COLLECTIONS: ClassVar[tuple[str, ...]] = ("icons",)

    name: str = ""
    short_name: str | None = None
    description: str | None = None
    url: str | None = None
    icons: ResourceList[IconResource] = Field(default_factory=list)


class ShareTargetFiles(ManifestResource):
    name: str = ""
    accept: StringList = Field(default_factory=list)


class ShareTargetParams(ManifestResource):
    """Query or form parameter names a share target receives.

    ``url`` here is a parameter name, not a URL.
    """

    title: str | None = None
    text: str | None = None
    url: str | None = None
    files: ResourceList[ShareTargetFiles] = Field(default_factory=list)


class ShareTargetResource(ManifestResource):
    """How the application receives data shared from other applications."""

    URL_FIELDS: ClassVar[dict[str, UrlField]] = {"action": UrlField(UrlBase.MANIFEST_URL)}
    ENUM_FIELDS: ClassVar[dict[str, type[ManifestEnum]]] = {
        "method": ShareTargetMethod,
        "enctype": ShareTargetEnctype,
    }

    action: str | None = None
    method: ShareTargetMethodField = ShareTargetMethod.GET
    enctype: ShareTargetEnctypeField = ShareTargetEnctype.URL_ENCODED
    params: ShareTargetParams = Field(default_factory=ShareTargetParams)


def _accept_map(value: Any) -> dict[str, list[str]]:
    if not isinstance(value, dict):
        return {}
    return {str(mime): _string_list(extensions) for mime, extensions in value.items()}


class FileHandlerResource(ManifestResource):
    """A file type the application can open, and the page that opens it."""

    URL_FIELDS: ClassVar[dict[str, UrlField]] = {"action": UrlField(UrlBase.MANIFEST_URL)}
    NESTED_COLLECTIONS: ClassVar[tuple[str, ...]] = ("icons",)
    ENUM_FIELDS: ClassVar[dict[str, type[ManifestEnum]]] = {"launch_type": LaunchType}

    action: str | None = None
    name: str | None = None
    accept: Annotated[dict[str, list[str]], BeforeValidator(_accept_map)] = Field(
        default_factory=dict
    )
    icons: ResourceList[IconResource] = Field(default_factory=list)
    launch_type: LaunchTypeField = LaunchType.SINGLE_CLIENT


class ProtocolHandlerResource(ManifestResource):
    """A protocol the application handles.

    ``url`` is a template in which ``%s`` stands for the handled URL.
    """

    URL_FIELDS: ClassVar[dict[str, UrlField]] = {"url": UrlField(UrlBase.MANIFEST_URL)}

    protocol: str = ""
    url: str | None = None


class ExternalApplicationFingerprint(ManifestResource):
    type: str = ""
    value: str = ""


class ExternalApplicationResource(ManifestResource):
    """A platform-specific application related to the web application.

    Either ``url`` or ``id`` identifies it; both may be set.
    """

    URL_FIELDS: ClassVar[dict[str, UrlField]] = {
        "url": UrlField(UrlBase.MANIFEST_URL, required=False)
    }

    platform: str = ""
    url: str | None = None
    id: str | None = None
    min_version: str | None = None
    fingerprints: ResourceList[ExternalApplicationFingerprint] = Field(default_factory=list)


class ColorOverrides(ManifestResource):
    theme_color: ColorField = None
    background_color: ColorField = None


def _color_scheme_map(value: Any) -> dict[ColorScheme, Any]:
    if not isinstance(value, dict):
        return {}
    schemes: dict[ColorScheme, Any] = {}
    for key, overrides in value.items():
        scheme = ColorScheme.lookup(key)
        if scheme is None:
            logger.warning("Ignoring unknown color scheme %r in user_preferences", key)
            continue
        schemes[scheme] = overrides
    return schemes


class UserPreferences(ManifestResource):
    """Color overrides applied when the user prefers a given color scheme."""

    color_scheme: Annotated[
        dict[ColorScheme, ColorOverrides], BeforeValidator(_color_scheme_map)
    ] = Field(default_factory=dict)
