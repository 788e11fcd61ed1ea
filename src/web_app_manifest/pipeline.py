"""Manifest processing pipeline.

This module turns a freshly parsed manifest into one whose URLs are absolute,
whose start URL is same-origin with the manifest and inside its scope, and
whose resources all point somewhere usable. Problems found along the way are
absorbed and reported as diagnostics rather than raised.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from .core.resources import ManifestModel, ManifestResource, UrlBase
from .core.types import DisplayOverride, coerce, parse_display_override
from .errors import InvalidStartUrlOrigin, StartUrlOutOfScope, UrlError
from .manifest import WebAppManifest
from .registry import CollectionSpec, ResourceRegistry
from .urls import (
    directory_of,
    is_absolute,
    is_within_scope,
    origin_root,
    resolve,
    same_origin,
    strip_fragment,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessOptions:
    """Strictness switches for manifest processing.

    Attributes:
        strict_origin: Raise InvalidStartUrlOrigin instead of replacing a
            cross-origin start URL
        strict_scope: Raise StartUrlOutOfScope instead of resetting a scope
            that does not contain the start URL
        enforce_resource_scope: Drop navigation resources that point outside
            the scope
    """

    strict_origin: bool = False
    strict_scope: bool = False
    enforce_resource_scope: bool = True


@dataclass(frozen=True)
class Diagnostic:
    """A problem that processing recovered from."""

    code: str
    field: str
    message: str

    def __str__(self) -> str:
        return f"[{self.code}] {self.field}: {self.message}"


@dataclass
class ProcessResult:
    manifest: WebAppManifest
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def codes(self) -> list[str]:
        return [diagnostic.code for diagnostic in self.diagnostics]


@dataclass
class _Context:
    """Base URLs and diagnostics for a single processing run."""

    document_url: str
    manifest_url: str
    start_url: str = ""
    scope: str = ""
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def base_url(self, base: UrlBase) -> str:
        if base is UrlBase.MANIFEST_URL:
            return self.manifest_url
        if base is UrlBase.START_URL:
            return self.start_url
        return origin_root(self.start_url)

    def note(self, code: str, member: str, message: str) -> None:
        diagnostic = Diagnostic(code, member, message)
        logger.warning("%s", diagnostic)
        self.diagnostics.append(diagnostic)


class ManifestProcessor:
    """Resolves and validates a manifest against the URLs it was loaded from.

    The processor never mutates the manifest it is given: ``process`` works on
    a deep copy and returns it inside a ``ProcessResult``.

    Example:
        >>> manifest = WebAppManifest.from_json('{"start_url": "app.html"}')
        >>> result = ManifestProcessor().process(
        ...     manifest,
        ...     "https://example.com/index.html",
        ...     "https://example.com/static/site.webmanifest",
        ... )
        >>> result.manifest.start_url
        'https://example.com/static/app.html'
    """

    def __init__(self, options: ProcessOptions | None = None):
        self.options = options or ProcessOptions()

    def process(
        self,
        manifest: WebAppManifest,
        document_url: str,
        manifest_url: str,
    ) -> ProcessResult:
        """Process a manifest.

        Args:
            manifest: Parsed manifest; left unchanged
            document_url: Absolute URL of the document that linked the manifest
            manifest_url: Absolute URL the manifest was fetched from

        Returns:
            ProcessResult with the processed manifest and its diagnostics

        Raises:
            ValueError: If either base URL is not absolute
            InvalidStartUrlOrigin: If ``strict_origin`` is set and the start URL
                is cross-origin
            StartUrlOutOfScope: If ``strict_scope`` is set and the scope does
                not contain the start URL
        """
        ctx = _Context(
            document_url=self._absolute("document_url", document_url),
            manifest_url=self._absolute("manifest_url", manifest_url),
        )
        working = manifest.model_copy(deep=True)
        logger.debug("Processing manifest from %s", ctx.manifest_url)

        ctx.start_url = self._resolve_start_url(working, ctx)
        ctx.scope = self._resolve_scope(working, ctx)

        origin_error = self._check_origin(ctx)
        scope_error = self._check_scope(ctx)

        updates: dict[str, Any] = {
            "start_url": ctx.start_url,
            "scope": ctx.scope,
            "id": self._resolve_id(working, ctx),
        }
        for spec in ResourceRegistry.collections():
            updates[spec.name] = self._resolve_member(getattr(working, spec.name), spec, ctx)

        updates.update(self._coerce_enums(working, ctx, ""))
        if not all(isinstance(mode, DisplayOverride) for mode in working.display_override):
            updates["display_override"] = parse_display_override(
                [getattr(mode, "value", mode) for mode in working.display_override]
            )

        processed = working.model_copy(update=updates)

        if origin_error is not None:
            raise InvalidStartUrlOrigin(
                origin_error, ctx.manifest_url, processed, ctx.diagnostics
            )
        if scope_error is not None:
            raise StartUrlOutOfScope(ctx.start_url, scope_error, processed, ctx.diagnostics)

        logger.debug(
            "Processed manifest %s with %d diagnostic(s)", processed.id, len(ctx.diagnostics)
        )
        return ProcessResult(processed, ctx.diagnostics)

    @staticmethod
    def _absolute(name: str, url: str) -> str:
        if not is_absolute(url):
            raise ValueError(f"{name} must be an absolute URL, got {url!r}")
        return resolve(url)

    def _resolve_start_url(self, manifest: WebAppManifest, ctx: _Context) -> str:
        if manifest.start_url is None:
            return ctx.document_url
        base = ctx.base_url(manifest.URL_FIELDS["start_url"].base)
        try:
            return resolve(manifest.start_url, base)
        except UrlError as e:
            ctx.note("start_url.invalid", "start_url", f"{e}; using the document URL")
            return ctx.document_url

    def _resolve_scope(self, manifest: WebAppManifest, ctx: _Context) -> str:
        if manifest.scope is None:
            return directory_of(ctx.start_url)
        base = ctx.base_url(manifest.URL_FIELDS["scope"].base)
        try:
            return resolve(manifest.scope, base)
        except UrlError as e:
            ctx.note("scope.invalid", "scope", f"{e}; using the start URL's directory")
            return directory_of(ctx.start_url)

    def _check_origin(self, ctx: _Context) -> str | None:
        """Replace a cross-origin start URL, or return it in strict mode."""
        if same_origin(ctx.start_url, ctx.manifest_url):
            return None

        if self.options.strict_origin:
            ctx.note(
                "start_url.cross_origin",
                "start_url",
                f"{ctx.start_url} is not same-origin with {ctx.manifest_url}",
            )
            return ctx.start_url

        if same_origin(ctx.document_url, ctx.manifest_url):
            replacement = ctx.document_url
        else:
            replacement = origin_root(ctx.manifest_url)
        ctx.note(
            "start_url.cross_origin",
            "start_url",
            f"{ctx.start_url} is not same-origin with {ctx.manifest_url}; using {replacement}",
        )
        ctx.start_url = replacement
        return None

    def _check_scope(self, ctx: _Context) -> str | None:
        """Reset a scope that misses the start URL, or return it in strict mode."""
        if is_within_scope(ctx.start_url, ctx.scope):
            return None

        if self.options.strict_scope:
            ctx.note(
                "scope.not_containing",
                "scope",
                f"{ctx.scope} does not contain start URL {ctx.start_url}",
            )
            return ctx.scope

        replacement = directory_of(ctx.start_url)
        ctx.note(
            "scope.not_containing",
            "scope",
            f"{ctx.scope} does not contain start URL {ctx.start_url}; using {replacement}",
        )
        ctx.scope = replacement
        return None

    def _resolve_id(self, manifest: WebAppManifest, ctx: _Context) -> str:
        fallback = strip_fragment(ctx.start_url)
        if manifest.id is None:
            return fallback

        base = ctx.base_url(manifest.URL_FIELDS["id"].base)
        try:
            identity = resolve(manifest.id, base)
        except UrlError as e:
            ctx.note("id.invalid", "id", f"{e}; using the start URL")
            return fallback

        if not same_origin(identity, ctx.start_url):
            ctx.note(
                "id.cross_origin",
                "id",
                f"{identity} is not same-origin with {ctx.start_url}; using the start URL",
            )
            return fallback
        return strip_fragment(identity)

    def _resolve_member(self, value: Any, spec: CollectionSpec, ctx: _Context) -> Any:
        if spec.many:
            return self._resolve_collection(value or [], spec, ctx, spec.name)
        if value is None:
            return None
        return self._resolve_resource(value, spec, ctx, spec.name)

    def _resolve_collection(
        self,
        resources: list[ManifestResource],
        spec: CollectionSpec,
        ctx: _Context,
        label: str,
    ) -> list[ManifestResource]:
        kept = []
        for index, resource in enumerate(resources):
            resolved = self._resolve_resource(resource, spec, ctx, f"{label}[{index}]")
            if resolved is not None:
                kept.append(resolved)
        return kept

    def _resolve_resource(
        self,
        resource: ManifestResource,
        spec: CollectionSpec,
        ctx: _Context,
        label: str,
    ) -> ManifestResource | None:
        """Resolve one resource, or return None if it must be dropped."""
        updates: dict[str, Any] = {}

        for name, rule in resource.URL_FIELDS.items():
            value = getattr(resource, name)
            if value is None and not rule.required:
                continue
            try:
                url = resolve(value, ctx.base_url(rule.base))
            except UrlError as e:
                if rule.required:
                    ctx.note("resource.invalid_url", f"{label}.{name}", f"{e}; dropping {label}")
                    return None
                ctx.note("resource.invalid_url", f"{label}.{name}", f"{e}; clearing the URL")
                updates[name] = None
                continue

            if (
                spec.scoped
                and self.options.enforce_resource_scope
                and not is_within_scope(url, ctx.scope)
            ):
                ctx.note(
                    "resource.out_of_scope",
                    f"{label}.{name}",
                    f"{url} is outside scope {ctx.scope}; dropping {label}",
                )
                return None
            updates[name] = url

        for nested in resource.NESTED_COLLECTIONS:
            updates[nested] = self._resolve_collection(
                getattr(resource, nested),
                ResourceRegistry.get(nested),
                ctx,
                f"{label}.{nested}",
            )

        updates.update(self._coerce_enums(resource, ctx, f"{label}."))
        resolved = resource.model_copy(update=updates)

        if spec.check is not None:
            reason = spec.check(resolved)
            if reason is not None:
                ctx.note("resource.rejected", label, f"{reason}; dropping {label}")
                return None
        return resolved

    def _coerce_enums(self, model: ManifestModel, ctx: _Context, prefix: str) -> dict[str, Any]:
        """Map enum members holding raw or unknown values back onto their enum."""
        updates: dict[str, Any] = {}
        for name, enum_type in model.ENUM_FIELDS.items():
            value = getattr(model, name)
            if isinstance(value, enum_type):
                continue
            member = enum_type.lookup(value)
            if member is None:
                member = coerce(enum_type, value)
                ctx.note(
                    "enum.default",
                    f"{prefix}{name}",
                    f"{value!r} is not a valid {enum_type.__name__}; using {member.value!r}",
                )
            updates[name] = member
        return updates
