"""Tests for the manifest processing pipeline."""

import pytest

from web_app_manifest import (
    Direction,
    Display,
    DisplayOverride,
    InvalidStartUrlOrigin,
    ManifestProcessor,
    ProcessOptions,
    StartUrlOutOfScope,
    WebAppManifest,
)
from web_app_manifest.urls import is_absolute, is_within_scope

DOCUMENT_URL = "https://example.com/index.html"
MANIFEST_URL = "https://example.com/app.webmanifest"


def process(document: dict, options: ProcessOptions | None = None):
    manifest = WebAppManifest.from_dict(document)
    return ManifestProcessor(options).process(manifest, DOCUMENT_URL, MANIFEST_URL)


def all_urls(manifest: WebAppManifest) -> list[str]:
    urls = [manifest.start_url, manifest.scope, manifest.id]
    urls += [icon.src for icon in manifest.icons]
    urls += [screenshot.src for screenshot in manifest.screenshots]
    for shortcut in manifest.shortcuts:
        urls.append(shortcut.url)
        urls += [icon.src for icon in shortcut.icons]
    for handler in manifest.file_handlers:
        urls.append(handler.action)
        urls += [icon.src for icon in handler.icons]
    urls += [handler.url for handler in manifest.protocol_handlers]
    urls += [app.url for app in manifest.related_applications if app.url is not None]
    if manifest.share_target is not None:
        urls.append(manifest.share_target.action)
    return urls


class TestExampleManifest:
    """Test processing the full example fixture."""

    def test_resolves_every_url(self, parsed_manifest: WebAppManifest) -> None:
        """Test that all URLs resolve against the manifest URL."""
        result = ManifestProcessor().process(parsed_manifest, DOCUMENT_URL, MANIFEST_URL)
        manifest = result.manifest

        assert result.diagnostics == []
        assert manifest.start_url == "https://example.com/app.html"
        assert manifest.scope == "https://example.com/"
        assert manifest.id == "https://example.com/app.html"
        assert manifest.icons[0].src == "https://example.com/resources/icon1.png"
        assert manifest.icons[1].src == "https://example.com/resources/icon2.png"
        assert manifest.screenshots[1].src == "https://example.com/resources/screenshot2.png"
        assert manifest.shortcuts[0].url == "https://example.com/shortcut"
        assert manifest.shortcuts[0].icons[0].src == "https://example.com/resources/shortcut.png"
        assert manifest.protocol_handlers[0].url == "https://example.com/mailto?url=%s"
        assert manifest.related_applications[1].url == "https://play.google.com/"
        assert manifest.related_applications[0].url is None

    def test_keeps_other_members(self, parsed_manifest: WebAppManifest) -> None:
        """Test that members without URLs pass through unchanged."""
        manifest = parsed_manifest.process(DOCUMENT_URL, MANIFEST_URL)

        assert manifest.name == "Example Application"
        assert manifest.display is Display.STANDALONE
        assert manifest.theme_color == parsed_manifest.theme_color
        assert manifest.related_applications[1].min_version == "1.0.0"

    def test_input_is_not_mutated(self, parsed_manifest: WebAppManifest) -> None:
        """Test that processing returns a new manifest."""
        processed = parsed_manifest.process(DOCUMENT_URL, MANIFEST_URL)

        assert processed is not parsed_manifest
        assert parsed_manifest.start_url == "app.html"
        assert parsed_manifest.scope is None
        assert parsed_manifest.icons[0].src == "resources/icon1.png"


class TestStartUrlAndScope:
    """Test start URL, scope and id processing."""

    def test_start_url_directory_becomes_scope(self) -> None:
        """Test that a missing scope is the start URL's directory."""
        manifest = WebAppManifest.from_json('{"start_url": "/app/"}').process(
            "https://example.com/index.html", "https://example.com/site.webmanifest"
        )

        assert manifest.start_url == "https://example.com/app/"
        assert manifest.scope == "https://example.com/app/"

    def test_missing_start_url_uses_document_url(self) -> None:
        """Test the defaults of an empty manifest."""
        result = ManifestProcessor().process(WebAppManifest(), DOCUMENT_URL, MANIFEST_URL)

        assert result.manifest.start_url == DOCUMENT_URL
        assert result.manifest.scope == "https://example.com/"
        assert result.manifest.id == DOCUMENT_URL
        assert result.diagnostics == []

    def test_invalid_start_url_uses_document_url(self) -> None:
        """Test that an unresolvable start URL falls back with a diagnostic."""
        result = process({"start_url": "://bad"})

        assert result.manifest.start_url == DOCUMENT_URL
        assert result.codes() == ["start_url.invalid"]

    def test_scope_resolves_against_start_url(self) -> None:
        """Test that a relative scope is relative to the start URL."""
        result = process({"start_url": "/app/index.html", "scope": "."})

        assert result.manifest.scope == "https://example.com/app/"
        assert result.diagnostics == []

    def test_scope_not_containing_start_url_is_reset(self) -> None:
        """Test that a scope missing the start URL becomes its directory."""
        result = process({"start_url": "/app/index.html", "scope": "/other/"})

        assert result.manifest.scope == "https://example.com/app/"
        assert result.codes() == ["scope.not_containing"]

    def test_dot_segments_cannot_escape_scope(self) -> None:
        """Test that an absolute start URL with .. is normalized before the scope check."""
        result = process(
            {
                "start_url": "https://example.com/app/../admin/x.html",
                "scope": "https://example.com/app/",
            }
        )

        assert result.manifest.start_url == "https://example.com/admin/x.html"
        assert result.manifest.scope == "https://example.com/admin/"
        assert result.codes() == ["scope.not_containing"]

    def test_invalid_scope_uses_start_url_directory(self) -> None:
        """Test that an unresolvable scope falls back with a diagnostic."""
        result = process({"start_url": "/app/index.html", "scope": "://bad"})

        assert result.manifest.scope == "https://example.com/app/"
        assert result.codes() == ["scope.invalid"]

    def test_cross_origin_start_url_uses_document_url(self) -> None:
        """Test that a cross-origin start URL is replaced by the document URL."""
        result = process(
            {
                "start_url": "https://evil.example.net/app/",
                "scope": "https://evil.example.net/app/",
            }
        )

        assert result.manifest.start_url == DOCUMENT_URL
        assert result.manifest.scope == "https://example.com/"
        assert result.codes() == ["start_url.cross_origin", "scope.not_containing"]

    def test_cross_origin_document_uses_manifest_origin(self) -> None:
        """Test the fallback when the document is also cross-origin."""
        manifest = WebAppManifest.from_dict({"start_url": "https://evil.example.net/"})
        result = ManifestProcessor().process(
            manifest, "https://other.example.org/page.html", MANIFEST_URL
        )

        assert result.manifest.start_url == "https://example.com/"
        assert result.manifest.scope == "https://example.com/"

    def test_id_defaults_to_start_url_without_fragment(self) -> None:
        """Test that a missing id is the start URL minus its fragment."""
        result = process({"start_url": "/app/?source=pwa#home"})
        assert result.manifest.id == "https://example.com/app/?source=pwa"

    def test_id_resolves_against_start_url_origin(self) -> None:
        """Test that a relative id is relative to the origin root."""
        result = process({"start_url": "/app/index.html", "id": "my-app#frag"})
        assert result.manifest.id == "https://example.com/my-app"

    def test_cross_origin_id_uses_start_url(self) -> None:
        """Test that an id on another origin is replaced."""
        result = process({"start_url": "/app/", "id": "https://evil.example.net/app"})

        assert result.manifest.id == "https://example.com/app/"
        assert result.codes() == ["id.cross_origin"]

    def test_invalid_id_uses_start_url(self) -> None:
        """Test that an unresolvable id is replaced."""
        result = process({"start_url": "/app/", "id": "://bad"})

        assert result.manifest.id == "https://example.com/app/"
        assert result.codes() == ["id.invalid"]


class TestStrictOptions:
    """Test strict origin and scope checking."""

    def test_strict_origin_raises(self) -> None:
        """Test that a cross-origin start URL raises in strict mode."""
        with pytest.raises(InvalidStartUrlOrigin) as excinfo:
            process(
                {"start_url": "https://evil.example.net/app/"},
                ProcessOptions(strict_origin=True),
            )

        error = excinfo.value
        assert error.start_url == "https://evil.example.net/app/"
        assert error.manifest_url == MANIFEST_URL
        assert error.manifest.start_url == "https://evil.example.net/app/"
        assert [d.code for d in error.diagnostics] == ["start_url.cross_origin"]

    def test_strict_scope_raises(self) -> None:
        """Test that a scope missing the start URL raises in strict mode."""
        with pytest.raises(StartUrlOutOfScope) as excinfo:
            process(
                {"start_url": "/app/index.html", "scope": "/other/"},
                ProcessOptions(strict_scope=True),
            )

        error = excinfo.value
        assert error.scope == "https://example.com/other/"
        assert error.manifest.scope == "https://example.com/other/"
        assert error.manifest.start_url == "https://example.com/app/index.html"

    def test_strict_options_pass_valid_manifest(self, parsed_manifest: WebAppManifest) -> None:
        """Test that strict options do not affect a consistent manifest."""
        options = ProcessOptions(strict_origin=True, strict_scope=True)
        result = ManifestProcessor(options).process(parsed_manifest, DOCUMENT_URL, MANIFEST_URL)

        assert result.manifest.start_url == "https://example.com/app.html"

    def test_relative_base_urls_are_rejected(self) -> None:
        """Test that the document and manifest URLs must be absolute."""
        with pytest.raises(ValueError, match="document_url must be an absolute URL"):
            ManifestProcessor().process(WebAppManifest(), "/index.html", MANIFEST_URL)

        with pytest.raises(ValueError, match="manifest_url must be an absolute URL"):
            ManifestProcessor().process(WebAppManifest(), DOCUMENT_URL, "app.webmanifest")


class TestResources:
    """Test resource resolution and filtering."""

    def test_invalid_icon_is_dropped(self) -> None:
        """Test that only the icon with a bad URL is removed."""
        result = process(
            {"icons": [{"src": "/a.png"}, {"src": "://bad"}, {"src": "/c.png"}]}
        )

        assert [icon.src for icon in result.manifest.icons] == [
            "https://example.com/a.png",
            "https://example.com/c.png",
        ]
        assert result.codes() == ["resource.invalid_url"]
        assert result.diagnostics[0].field == "icons[1].src"

    def test_icon_without_src_is_dropped(self) -> None:
        """Test that a missing required URL drops the resource."""
        result = process({"icons": [{"sizes": "48x48"}]})

        assert result.manifest.icons == []
        assert result.codes() == ["resource.invalid_url"]

    def test_drop_isolation(self) -> None:
        """Test that N resources with one bad URL leave N - 1 in order."""
        srcs = ["/1.png", "/2.png", "://bad", "/4.png", "/5.png"]
        result = process({"icons": [{"src": src} for src in srcs]})

        assert [icon.src.rsplit("/", 1)[1] for icon in result.manifest.icons] == [
            "1.png",
            "2.png",
            "4.png",
            "5.png",
        ]

    def test_icons_outside_scope_are_kept(self) -> None:
        """Test that image resources are not limited by scope."""
        result = process({"start_url": "/app/", "icons": [{"src": "/static/icon.png"}]})

        assert result.manifest.icons[0].src == "https://example.com/static/icon.png"
        assert result.diagnostics == []

    def test_shortcut_outside_scope_is_dropped(self) -> None:
        """Test that navigation resources must lie within scope."""
        result = process(
            {
                "start_url": "/app/",
                "shortcuts": [
                    {"name": "Inside", "url": "/app/inbox"},
                    {"name": "Outside", "url": "/admin"},
                ],
            }
        )

        assert [shortcut.name for shortcut in result.manifest.shortcuts] == ["Inside"]
        assert result.codes() == ["resource.out_of_scope"]

    def test_shortcut_escaping_scope_with_dot_segments_is_dropped(self) -> None:
        """Test that an absolute shortcut URL using .. is checked after normalization."""
        result = process(
            {
                "start_url": "/app/",
                "shortcuts": [{"name": "Admin", "url": "https://example.com/app/../admin/"}],
            }
        )

        assert result.manifest.shortcuts == []
        assert result.codes() == ["resource.out_of_scope"]

    def test_icon_with_space_is_encoded(self) -> None:
        """Test that a space in an icon src is percent-encoded and the icon kept."""
        result = process({"icons": [{"src": "icons/my icon.png"}]})

        assert [icon.src for icon in result.manifest.icons] == [
            "https://example.com/icons/my%20icon.png"
        ]
        assert result.diagnostics == []

    def test_scope_enforcement_can_be_disabled(self) -> None:
        """Test that enforce_resource_scope=False keeps out-of-scope navigation."""
        result = process(
            {"start_url": "/app/", "shortcuts": [{"name": "Outside", "url": "/admin"}]},
            ProcessOptions(enforce_resource_scope=False),
        )

        assert result.manifest.shortcuts[0].url == "https://example.com/admin"
        assert result.diagnostics == []

    def test_share_target_outside_scope_becomes_none(self) -> None:
        """Test that a dropped share target is cleared."""
        result = process({"start_url": "/app/", "share_target": {"action": "/share"}})

        assert result.manifest.share_target is None
        assert result.codes() == ["resource.out_of_scope"]

    def test_share_target_is_resolved(self) -> None:
        """Test that a share target action is resolved and its method kept."""
        result = process({"share_target": {"action": "share", "method": "POST"}})

        assert result.manifest.share_target.action == "https://example.com/share"
        assert result.manifest.share_target.method.value == "POST"

    def test_nested_icons_are_filtered(self) -> None:
        """Test that icons inside a file handler are resolved like top-level icons."""
        result = process(
            {
                "file_handlers": [
                    {
                        "action": "/open",
                        "accept": {"text/csv": [".csv"]},
                        "icons": [{"src": "://bad"}, {"src": "csv.png"}],
                    }
                ]
            }
        )

        handler = result.manifest.file_handlers[0]
        assert handler.action == "https://example.com/open"
        assert [icon.src for icon in handler.icons] == ["https://example.com/csv.png"]
        assert result.diagnostics[0].field == "file_handlers[0].icons[0].src"

    def test_protocol_handlers_need_allowed_protocol(self) -> None:
        """Test that only safelisted and web+ protocols are kept."""
        result = process(
            {
                "protocol_handlers": [
                    {"protocol": "web+coffee", "url": "/coffee?u=%s"},
                    {"protocol": "http", "url": "/http?u=%s"},
                    {"protocol": "magnet", "url": "/magnet?u=%s"},
                ]
            }
        )

        assert [h.protocol for h in result.manifest.protocol_handlers] == ["web+coffee", "magnet"]
        assert result.codes() == ["resource.rejected"]

    def test_related_application_url_is_optional(self) -> None:
        """Test that a bad related application URL is cleared when an id remains."""
        result = process(
            {
                "related_applications": [
                    {"platform": "play", "url": "://bad", "id": "com.example.app"},
                    {"platform": "itunes"},
                ]
            }
        )

        apps = result.manifest.related_applications
        assert len(apps) == 1
        assert apps[0].url is None
        assert apps[0].id == "com.example.app"
        assert result.codes() == ["resource.invalid_url", "resource.rejected"]


class TestEnumRecovery:
    """Test re-coercion of enum members during processing."""

    def test_unvalidated_enum_values_are_coerced(self) -> None:
        """Test manifests built without validation."""
        manifest = WebAppManifest.model_construct(display="kiosk", dir="RTL")
        result = ManifestProcessor().process(manifest, DOCUMENT_URL, MANIFEST_URL)

        assert result.manifest.display is Display.BROWSER
        assert result.manifest.dir is Direction.RTL
        assert result.codes() == ["enum.default"]

    def test_unvalidated_display_override_is_filtered(self) -> None:
        """Test that raw display_override entries are parsed."""
        manifest = WebAppManifest.model_construct(display_override=["tabbed", "kiosk"])
        result = ManifestProcessor().process(manifest, DOCUMENT_URL, MANIFEST_URL)

        assert result.manifest.display_override == [DisplayOverride.TABBED]


class TestProperties:
    """Test properties that hold for every processed manifest."""

    def test_idempotent(
        self, parsed_manifest: WebAppManifest, invalid_manifest: WebAppManifest
    ) -> None:
        """Test that processing twice gives the same manifest and no new diagnostics."""
        processor = ManifestProcessor()
        for manifest in (parsed_manifest, invalid_manifest):
            once = processor.process(manifest, DOCUMENT_URL, MANIFEST_URL)
            twice = processor.process(once.manifest, DOCUMENT_URL, MANIFEST_URL)

            assert twice.manifest == once.manifest
            assert twice.diagnostics == []

    def test_all_urls_absolute(
        self, parsed_manifest: WebAppManifest, invalid_manifest: WebAppManifest
    ) -> None:
        """Test that every populated URL is absolute after processing."""
        for manifest in (parsed_manifest, invalid_manifest):
            processed = manifest.process(DOCUMENT_URL, MANIFEST_URL)
            assert all(is_absolute(url) for url in all_urls(processed))

    def test_start_url_within_scope(self, invalid_manifest: WebAppManifest) -> None:
        """Test that the scope contains the start URL after processing."""
        processed = invalid_manifest.process(DOCUMENT_URL, MANIFEST_URL)
        assert is_within_scope(processed.start_url, processed.scope)

    def test_round_trip(self, parsed_manifest: WebAppManifest) -> None:
        """Test that serialize, parse and process again gives an equal manifest."""
        processed = parsed_manifest.process(DOCUMENT_URL, MANIFEST_URL)
        again = WebAppManifest.from_json(processed.to_json()).process(DOCUMENT_URL, MANIFEST_URL)

        assert again == processed

    def test_invalid_fixture_diagnostics(self, invalid_manifest: WebAppManifest) -> None:
        """Test the diagnostics collected for a manifest full of bad values."""
        result = ManifestProcessor().process(invalid_manifest, DOCUMENT_URL, MANIFEST_URL)

        assert result.codes() == [
            "start_url.invalid",
            "scope.not_containing",
            "resource.invalid_url",
            "resource.invalid_url",
            "resource.rejected",
            "resource.rejected",
        ]
        assert len(result.manifest.icons) == 1
        assert result.manifest.share_target.action == "https://example.com/share"

    def test_diagnostics_are_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test that each diagnostic is logged as a warning."""
        with caplog.at_level("WARNING", logger="web_app_manifest.pipeline"):
            process({"start_url": "/app/index.html", "scope": "/other/"})

        assert "[scope.not_containing] scope" in caplog.text
