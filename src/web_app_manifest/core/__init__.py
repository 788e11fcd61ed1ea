"""Core building blocks for manifest handling.

This package contains the value types with their default recovery rules,
the resource models nested inside a manifest, and schema validation of
processed output.
"""

from .resources import (
    ExternalApplicationResource,
    FileHandlerResource,
    IconResource,
    ManifestResource,
    ProtocolHandlerResource,
    ScreenshotResource,
    ShareTargetResource,
    ShortcutResource,
    UrlBase,
    UrlField,
    UserPreferences,
)
from .types import (
    ColorScheme,
    Direction,
    Display,
    DisplayOverride,
    FormFactor,
    ImagePurpose,
    ImageSize,
    LaunchType,
    Orientation,
    ShareTargetEnctype,
    ShareTargetMethod,
    coerce,
)
from .validator import (
    load_schema,
    schema_errors,
    validate_manifest,
    validate_manifest_with_error_details,
)

__all__ = [
    "ColorScheme",
    "Direction",
    "Display",
    "DisplayOverride",
    "ExternalApplicationResource",
    "FileHandlerResource",
    "FormFactor",
    "IconResource",
    "ImagePurpose",
    "ImageSize",
    "LaunchType",
    "ManifestResource",
    "Orientation",
    "ProtocolHandlerResource",
    "ScreenshotResource",
    "ShareTargetEnctype",
    "ShareTargetMethod",
    "ShareTargetResource",
    "ShortcutResource",
    "UrlBase",
    "UrlField",
    "UserPreferences",
    "coerce",
    "load_schema",
    "schema_errors",
    "validate_manifest",
    "validate_manifest_with_error_details",
]
