"""Exception hierarchy for manifest parsing and processing.

Field-level and resource-level problems never raise; they are recorded as
diagnostics on the processing result. Only the errors below cross the
library boundary.
"""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .manifest import WebAppManifest
    from .pipeline import Diagnostic


class WebAppManifestError(Exception):
    """Base class for all errors raised by this package."""


class UrlError(WebAppManifestError, ValueError):
    """A URL-bearing value could not be resolved to an absolute URL."""

    def __init__(self, candidate: Any, base: str | None = None, reason: str = "invalid URL"):
        self.candidate = candidate
        self.base = base
        self.reason = reason
        super().__init__(f"{reason}: {candidate!r}")


class ManifestParseError(WebAppManifestError, ValueError):
    """The document could not be turned into a manifest at all."""


class ProcessError(WebAppManifestError):
    """A manifest-level identity or scope conflict the caller asked to see.

    Raised only when the corresponding strict option is enabled. The
    ``manifest`` attribute holds the manifest as processed so far, so the
    caller may still decide to accept it.
    """

    def __init__(
        self,
        message: str,
        manifest: "WebAppManifest",
        diagnostics: "list[Diagnostic] | None" = None,
    ):
        super().__init__(message)
        self.manifest = manifest
        self.diagnostics = list(diagnostics or [])


class InvalidStartUrlOrigin(ProcessError):
    """The start URL is not same-origin with the manifest URL."""

    def __init__(
        self,
        start_url: str,
        manifest_url: str,
        manifest: "WebAppManifest",
        diagnostics: "list[Diagnostic] | None" = None,
    ):
        self.start_url = start_url
        self.manifest_url = manifest_url
        super().__init__(
            f"Start URL {start_url} is not same-origin with manifest URL {manifest_url}",
            manifest,
            diagnostics,
        )


class StartUrlOutOfScope(ProcessError):
    """The scope does not contain the start URL."""

    def __init__(
        self,
        start_url: str,
        scope: str,
        manifest: "WebAppManifest",
        diagnostics: "list[Diagnostic] | None" = None,
    ):
        self.start_url = start_url
        self.scope = scope
        super().__init__(
            f"Start URL {start_url} is not within scope {scope}",
            manifest,
            diagnostics,
        )
