"""
tests/test_asset_graph.py

Pytest unit tests for AssetGraphWalker.

Coverage
--------
- Stylesheet, inline style, media and script reference resolution
- Missing reference classification by kind
- Image format policy
- Non-CDN external scripts
- images/ folder id convention
- Global unreferenced set and dynamic image loader heuristic
"""

from __future__ import annotations

import pytest
from bs4 import ParserRejectedMarkup

from archive_factory import PNG_BYTES, banner_html, contents_from

from creative_validator.assets import graph
from creative_validator.assets.graph import AssetGraphWalker
from creative_validator.domain.models import ReferenceKind, Severity


@pytest.fixture()
def walker() -> AssetGraphWalker:
    return AssetGraphWalker()


def _rule_ids(findings) -> list[str]:
    return [finding.rule_id for finding in findings]


# ---------------------------------------------------------------------------
# Stylesheets
# ---------------------------------------------------------------------------


class TestStylesheets:
    def test_css_urls_resolve_relative_to_stylesheet(self, walker: AssetGraphWalker) -> None:
        contents = contents_from(
            {
                "index.html": banner_html(head='<link rel="stylesheet" href="css/style.css">'),
                "css/style.css": (
                    "body{background:url(../img/bg.png)}"
                    "@font-face{src:url('../fonts/a.woff')}"
                    ".x{background:url(\"missing.png\")}"
                ),
                "img/bg.png": PNG_BYTES,
                "fonts/a.woff": b"wOFF",
            }
        )

        result = walker.walk(contents, "index.html")

        assert {"index.html", "css/style.css", "img/bg.png", "fonts/a.woff"} <= result.reachable
        assert len(result.missing) == 1
        missing = result.missing[0]
        assert missing.kind == ReferenceKind.CSS_URL
        assert missing.declared_path == "missing.png"
        assert missing.referenced_from == "css/style.css"
        assert result.format_violations == []

    def test_inline_style_block_resolves_relative_to_entry(self, walker: AssetGraphWalker) -> None:
        contents = contents_from(
            {
                "banner/index.html": banner_html(head="<style>div{background:url(img/a.gif)}</style>"),
                "banner/img/a.gif": b"GIF89a",
            }
        )

        result = walker.walk(contents, "banner/index.html")

        assert "banner/img/a.gif" in result.reachable
        assert result.missing == []

    def test_inline_style_attributes_are_scanned(self, walker: AssetGraphWalker) -> None:
        body = '<div style="background-image:url(bg.png)"></div><div style="background:url(missing.png)"></div>'
        contents = contents_from({"index.html": banner_html(body=body), "bg.png": PNG_BYTES})

        result = walker.walk(contents, "index.html")

        assert "bg.png" in result.reachable
        assert result.unreferenced == []
        assert [(ref.kind, ref.declared_path) for ref in result.missing] == [
            (ReferenceKind.CSS_URL, "missing.png")
        ]

    def test_missing_stylesheet_is_reported_as_link(self, walker: AssetGraphWalker) -> None:
        contents = contents_from({"index.html": banner_html(head='<link rel="stylesheet" href="nope.css">')})

        result = walker.walk(contents, "index.html")

        assert [ref.kind for ref in result.missing] == [ReferenceKind.HTML_LINK_CSS]


# ---------------------------------------------------------------------------
# Media and scripts
# ---------------------------------------------------------------------------


class TestMediaAndScripts:
    def test_missing_references_are_classified_by_kind(self, walker: AssetGraphWalker) -> None:
        body = (
            '<img src="img/missing.png">'
            '<video><source src="clip.mp4"></video>'
            '<script src="js/missing.js"></script>'
        )
        contents = contents_from({"index.html": banner_html(body=body)})

        result = walker.walk(contents, "index.html")

        assert [ref.kind for ref in result.missing] == [
            ReferenceKind.HTML_IMG,
            ReferenceKind.HTML_SOURCE,
            ReferenceKind.HTML_SCRIPT,
        ]

    def test_same_missing_asset_twice_is_reported_twice(self, walker: AssetGraphWalker) -> None:
        contents = contents_from({"index.html": banner_html(body='<img src="a.png"><img src="a.png">')})

        result = walker.walk(contents, "index.html")

        assert len(result.missing) == 2

    def test_disallowed_image_format_is_flagged_even_when_present(self, walker: AssetGraphWalker) -> None:
        contents = contents_from({"index.html": banner_html(body='<img src="img/a.webp">'), "img/a.webp": b"RIFF"})

        result = walker.walk(contents, "index.html")

        assert "img/a.webp" in result.reachable
        assert _rule_ids(result.format_violations) == ["unsupported-image-format"]
        assert result.format_violations[0].severity == Severity.WARNING

    def test_external_scripts_outside_known_cdns_are_recorded(self, walker: AssetGraphWalker) -> None:
        head = (
            '<script src="https://cdnjs.cloudflare.com/ajax/libs/gsap/3.12.2/gsap.min.js"></script>'
            '<script src="https://s0.2mdn.net/ads/studio/Enabler.js"></script>'
            '<script src="https://tracker.example.org/t.js"></script>'
        )
        contents = contents_from({"index.html": banner_html(head=head)})

        result = walker.walk(contents, "index.html")

        assert result.non_cdn_scripts == ["https://tracker.example.org/t.js"]
        assert result.missing == []

    def test_inline_scripts_are_concatenated(self, walker: AssetGraphWalker) -> None:
        contents = contents_from(
            {"index.html": banner_html(body="<script>var a = 1;</script>", click_tag='var clickTag = "https://x.io";')}
        )

        result = walker.walk(contents, "index.html")

        assert 'var clickTag = "https://x.io";' in result.inline_script_text
        assert "var a = 1;" in result.inline_script_text

    def test_dynamic_image_loading_is_an_info_note(self, walker: AssetGraphWalker) -> None:
        contents = contents_from(
            {
                "index.html": banner_html(head='<script src="main.js"></script>'),
                "main.js": 'document.getElementById("hero").src = "img/" + frame + ".png";',
            }
        )

        result = walker.walk(contents, "index.html")

        assert _rule_ids(result.dynamic_loader_findings) == ["dynamic-image-loader"]
        assert result.dynamic_loader_findings[0].severity == Severity.INFO


# ---------------------------------------------------------------------------
# images/ folder convention
# ---------------------------------------------------------------------------


class TestIdConvention:
    def test_matching_file_becomes_reachable(self, walker: AssetGraphWalker) -> None:
        contents = contents_from({"index.html": banner_html(body='<div id="logo_png"></div>'), "images/logo.png": PNG_BYTES})

        result = walker.walk(contents, "index.html")

        assert "images/logo.png" in result.reachable
        assert result.convention_findings == []
        assert result.unreferenced == []

    def test_missing_convention_file_is_an_error(self, walker: AssetGraphWalker) -> None:
        contents = contents_from(
            {
                "index.html": banner_html(body='<div id="logo_png"></div><div id="cta_svg"></div>'),
                "images/logo.png": PNG_BYTES,
            }
        )

        result = walker.walk(contents, "index.html")

        assert _rule_ids(result.convention_findings) == ["missing-convention-image"]
        assert result.convention_findings[0].severity == Severity.ERROR
        assert "images/cta.svg" in (result.convention_findings[0].details or "")

    def test_missing_folder_is_a_single_error(self, walker: AssetGraphWalker) -> None:
        contents = contents_from({"index.html": banner_html(body='<div id="a_png"></div><div id="b_jpg"></div>')})

        result = walker.walk(contents, "index.html")

        assert _rule_ids(result.convention_findings) == ["missing-images-folder"]

    def test_unmatched_folder_file_is_an_unreferenced_image(self, walker: AssetGraphWalker) -> None:
        contents = contents_from(
            {
                "index.html": banner_html(body='<img src="images/used.png">'),
                "images/used.png": PNG_BYTES,
                "images/spare.png": PNG_BYTES,
            }
        )

        result = walker.walk(contents, "index.html")

        assert _rule_ids(result.convention_findings) == ["unreferenced-image"]
        assert result.convention_findings[0].severity == Severity.WARNING
        assert result.unreferenced == ["images/spare.png"]


# ---------------------------------------------------------------------------
# Global reachability
# ---------------------------------------------------------------------------


def test_unreferenced_excludes_html_files(walker: AssetGraphWalker) -> None:
    contents = contents_from({"index.html": banner_html(), "backup.html": "<html></html>", "notes.txt": "todo"})

    result = walker.walk(contents, "index.html")

    assert result.unreferenced == ["notes.txt"]


def test_without_entry_point_everything_is_empty(walker: AssetGraphWalker) -> None:
    contents = contents_from({"a.css": "body{}"})

    result = walker.walk(contents, None)

    assert result.reachable == set()
    assert result.missing == []
    assert result.html_text is None


def _reject_markup(*args, **kwargs):
    raise ParserRejectedMarkup(AssertionError("unknown status keyword 'foo' in marked section"))


def test_rejected_markup_is_reported_and_left_unparsed(walker: AssetGraphWalker, monkeypatch) -> None:
    monkeypatch.setattr(graph, "BeautifulSoup", _reject_markup)
    contents = contents_from({"index.html": banner_html(body="<![foo[ x ]]>"), "img/a.png": PNG_BYTES})

    result = walker.walk(contents, "index.html")

    assert _rule_ids(result.parse_findings) == ["unparseable-html"]
    assert result.parse_findings[0].severity == Severity.ERROR
    assert result.html_text is None
    assert result.document is None
    assert result.reachable == {"index.html"}
    assert result.unreferenced == ["img/a.png"]
