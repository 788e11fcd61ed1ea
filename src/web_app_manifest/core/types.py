"""Value types for constrained manifest members.

Every enumerated member of a manifest tolerates unknown input: an
unrecognized value maps to the member's documented default instead of
failing deserialization. Set-like members (icon purposes, image sizes,
display overrides) drop the tokens they do not understand.

The ``Annotated`` aliases at the bottom of this module attach those recovery
rules to pydantic fields.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, TypeVar

from pydantic import BeforeValidator, PlainSerializer
from pydantic_extra_types.color import Color

logger = logging.getLogger(__name__)

E = TypeVar("E", bound="ManifestEnum")


class ManifestEnum(str, Enum):
    """String enum with case-insensitive lookup and a default fallback.

    Subclasses override ``default()`` to name the member used for unknown
    values. Enums that return ``None`` from ``default()`` reject unknown
    values like a plain Enum.
    """

    @classmethod
    def default(cls) -> "ManifestEnum | None":
        return None

    @classmethod
    def lookup(cls, value: Any) -> "ManifestEnum | None":
        """Find the member matching a value, ignoring case and surrounding space."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        key = value.strip().lower()
        for member in cls:
            if member.value.lower() == key:
                return member
        return None

    @classmethod
    def _missing_(cls, value: object) -> "ManifestEnum | None":
        member = cls.lookup(value)
        if member is not None:
            return member
        fallback = cls.default()
        if fallback is not None:
            logger.warning(
                "Unknown %s value %r, using default %r", cls.__name__, value, fallback.value
            )
        return fallback


def coerce(enum_type: type[E], value: Any) -> E:
    """Map any value onto a member of ``enum_type``; unknown values become the default."""
    if isinstance(value, enum_type):
        return value
    return enum_type(value)


class Direction(ManifestEnum):
    """Base direction for the direction-capable members of the manifest."""

    AUTO = "auto"
    LTR = "ltr"
    RTL = "rtl"

    @classmethod
    def default(cls) -> "Direction":
        return cls.AUTO


class Display(ManifestEnum):
    """Preferred display mode. Unknown modes fall back to ``browser``."""

    FULLSCREEN = "fullscreen"
    STANDALONE = "standalone"
    MINIMAL_UI = "minimal-ui"
    BROWSER = "browser"

    @classmethod
    def default(cls) -> "Display":
        return cls.BROWSER


class DisplayOverride(ManifestEnum):
    """Display modes accepted in ``display_override``.

    This is a superset of ``Display``: some modes are only meaningful as
    overrides.
    """

    FULLSCREEN = "fullscreen"
    STANDALONE = "standalone"
    MINIMAL_UI = "minimal-ui"
    BROWSER = "browser"
    WINDOW_CONTROLS_OVERLAY = "window-controls-overlay"
    TABBED = "tabbed"

    @classmethod
    def default(cls) -> "DisplayOverride":
        return cls.BROWSER


class Orientation(ManifestEnum):
    """Default screen orientation. Unknown values fall back to ``any``."""

    ANY = "any"
    NATURAL = "natural"
    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    LANDSCAPE_PRIMARY = "landscape-primary"
    LANDSCAPE_SECONDARY = "landscape-secondary"
    PORTRAIT_PRIMARY = "portrait-primary"
    PORTRAIT_SECONDARY = "portrait-secondary"

    @classmethod
    def default(cls) -> "Orientation":
        return cls.ANY


class ShareTargetMethod(ManifestEnum):
    GET = "GET"
    POST = "POST"

    @classmethod
    def default(cls) -> "ShareTargetMethod":
        return cls.GET


class ShareTargetEnctype(ManifestEnum):
    """Body encoding of a POST share. Ignored for GET."""

    URL_ENCODED = "application/x-www-form-urlencoded"
    FORM_DATA = "multipart/form-data"

    @classmethod
    def default(cls) -> "ShareTargetEnctype":
        return cls.URL_ENCODED


class ImagePurpose(ManifestEnum):
    ANY = "any"
    MONOCHROME = "monochrome"
    MASKABLE = "maskable"

    @classmethod
    def default(cls) -> "ImagePurpose":
        return cls.ANY


class ColorScheme(ManifestEnum):
    LIGHT = "light"
    DARK = "dark"

    @classmethod
    def default(cls) -> "ColorScheme":
        return cls.LIGHT


class FormFactor(ManifestEnum):
    """Screenshot form factor. Has no default: unknown values clear the member."""

    NARROW = "narrow"
    WIDE = "wide"


class LaunchType(ManifestEnum):
    """How a file handler opens multiple files at once."""

    SINGLE_CLIENT = "single-client"
    MULTIPLE_CLIENTS = "multiple-clients"

    @classmethod
    def default(cls) -> "LaunchType":
        return cls.SINGLE_CLIENT


_SIZE_RE = re.compile(r"^([1-9][0-9]*)[xX]([1-9][0-9]*)$")


@dataclass(frozen=True)
class ImageSize:
    """One entry of an image ``sizes`` list: ``any`` or ``<width>x<height>``."""

    width: int | None = None
    height: int | None = None

    @property
    def is_any(self) -> bool:
        return self.width is None

    @classmethod
    def parse(cls, token: str) -> "ImageSize":
        """Parse a single size token.

        Raises:
            ValueError: If the token is neither ``any`` nor ``<w>x<h>``
        """
        token = token.strip()
        if token.lower() == "any":
            return ANY_SIZE
        match = _SIZE_RE.match(token)
        if match is None:
            raise ValueError(f"Invalid image size: {token!r}")
        return cls(int(match.group(1)), int(match.group(2)))

    def __str__(self) -> str:
        return "any" if self.is_any else f"{self.width}x{self.height}"


ANY_SIZE = ImageSize()


def _tokens(value: Any) -> list[Any]:
    if isinstance(value, str):
        return value.split()
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]


def parse_sizes(value: Any) -> list[ImageSize]:
    """Parse a space-separated sizes string, dropping malformed tokens.

    Missing sizes, or sizes with no valid token, mean ``any``.
    """
    if value is None:
        return [ANY_SIZE]
    sizes: list[ImageSize] = []
    for token in _tokens(value):
        if isinstance(token, ImageSize):
            size = token
        else:
            try:
                size = ImageSize.parse(str(token))
            except ValueError:
                logger.warning("Ignoring invalid image size %r", token)
                continue
        if size not in sizes:
            sizes.append(size)
    return sizes or [ANY_SIZE]


def format_sizes(sizes: list[ImageSize]) -> str:
    return " ".join(str(size) for size in sizes)


def parse_purpose(value: Any) -> list[ImagePurpose]:
    """Parse a space-separated purpose string.

    Unknown tokens are dropped. When nothing valid remains the purpose is
    ``any``.
    """
    purposes: list[ImagePurpose] = []
    for token in _tokens(value) if value is not None else []:
        member = ImagePurpose.lookup(token)
        if member is None:
            logger.warning("Ignoring unknown image purpose %r", token)
            continue
        if member not in purposes:
            purposes.append(member)
    return purposes or [ImagePurpose.ANY]


def format_purpose(purposes: list[ImagePurpose]) -> str:
    return " ".join(purpose.value for purpose in purposes)


def parse_display_override(value: Any) -> list[DisplayOverride]:
    """Keep the known display modes of an override list, in order, without duplicates."""
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        logger.warning("Ignoring display_override that is not a list: %r", value)
        return []
    modes: list[DisplayOverride] = []
    for item in value:
        member = DisplayOverride.lookup(item)
        if member is None:
            logger.warning("Ignoring unknown display_override entry %r", item)
            continue
        if member not in modes:
            modes.append(member)
    return modes


def parse_form_factor(value: Any) -> FormFactor | None:
    if value is None:
        return None
    member = FormFactor.lookup(value)
    if member is None:
        logger.warning("Ignoring unknown screenshot form_factor %r", value)
    return member


def parse_color(value: Any) -> Color | None:
    """Parse a CSS color, ignoring values that are not colors."""
    if value is None or isinstance(value, Color):
        return value
    try:
        return Color(value)
    except (ValueError, TypeError):
        logger.warning("Ignoring invalid color %r", value)
        return None


_MEDIA_TYPE_RE = re.compile(
    r"^\s*([A-Za-z0-9!#$&^_.+-]+)/([A-Za-z0-9!#$&^_.+-]+)\s*(;.*)?$"
)


def parse_media_type(value: Any) -> str | None:
    """Normalize a MIME type to lower-case ``type/subtype[;params]``."""
    if value is None:
        return None
    match = _MEDIA_TYPE_RE.match(value) if isinstance(value, str) else None
    if match is None:
        logger.warning("Ignoring invalid media type %r", value)
        return None
    params = (match.group(3) or "").strip()
    return f"{match.group(1).lower()}/{match.group(2).lower()}{params}"


_LANGUAGE_TAG_RE = re.compile(r"^[A-Za-z]{1,8}(-[A-Za-z0-9]{1,8})*$")


def parse_language_tag(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str) or not _LANGUAGE_TAG_RE.match(value.strip()):
        logger.warning("Ignoring invalid language tag %r", value)
        return None
    return value.strip()


def _enum_field(enum_type: type[ManifestEnum]) -> Any:
    return Annotated[enum_type, BeforeValidator(lambda value: coerce(enum_type, value))]


DirectionField = _enum_field(Direction)
DisplayField = _enum_field(Display)
OrientationField = _enum_field(Orientation)
ShareTargetMethodField = _enum_field(ShareTargetMethod)
ShareTargetEnctypeField = _enum_field(ShareTargetEnctype)
LaunchTypeField = _enum_field(LaunchType)

DisplayOverrideList = Annotated[list[DisplayOverride], BeforeValidator(parse_display_override)]
FormFactorField = Annotated[FormFactor | None, BeforeValidator(parse_form_factor)]
ImageSizes = Annotated[
    list[ImageSize],
    BeforeValidator(parse_sizes),
    PlainSerializer(format_sizes, return_type=str),
]
ImagePurposes = Annotated[
    list[ImagePurpose],
    BeforeValidator(parse_purpose),
    PlainSerializer(format_purpose, return_type=str),
]
ColorField = Annotated[Color | None, BeforeValidator(parse_color)]
MediaTypeField = Annotated[str | None, BeforeValidator(parse_media_type)]
LanguageTagField = Annotated[str | None, BeforeValidator(parse_language_tag)]
