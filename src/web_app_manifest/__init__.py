"""Web App Manifest - parsing and processing.

This package parses W3C Web Application Manifests into typed models and
processes them against the document and manifest URLs, producing a manifest
whose URLs are absolute and whose start URL lies within its scope.
"""

# Core library interface
from .manifest import WebAppManifest, load_manifest
from .pipeline import Diagnostic, ManifestProcessor, ProcessOptions, ProcessResult
from .registry import CollectionSpec, ResourceRegistry

# Errors
from .errors import (
    InvalidStartUrlOrigin,
    ManifestParseError,
    ProcessError,
    StartUrlOutOfScope,
    UrlError,
    WebAppManifestError,
)

# Core utilities
from .core import (
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
    validate_manifest,
    validate_manifest_with_error_details,
)
from .urls import is_within_scope, resolve, same_origin

# CLI
from .cli import main

__version__ = "0.1.0"

__all__ = [
    # Primary library interface
    "WebAppManifest",
    "load_manifest",
    "ManifestProcessor",
    "ProcessOptions",
    "ProcessResult",
    "Diagnostic",
    "ResourceRegistry",
    "CollectionSpec",
    # Errors
    "WebAppManifestError",
    "UrlError",
    "ManifestParseError",
    "ProcessError",
    "InvalidStartUrlOrigin",
    "StartUrlOutOfScope",
    # Value types
    "ColorScheme",
    "Direction",
    "Display",
    "DisplayOverride",
    "FormFactor",
    "ImagePurpose",
    "ImageSize",
    "LaunchType",
    "Orientation",
    "ShareTargetEnctype",
    "ShareTargetMethod",
    # Utilities
    "resolve",
    "same_origin",
    "is_within_scope",
    "validate_manifest",
    "validate_manifest_with_error_details",
    "main",
]
