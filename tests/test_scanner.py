"""Tests for wextrunk.scanner."""

from __future__ import annotations

import pytest

from wextrunk.errors import MalformedDirective
from wextrunk.models import DirectiveKind
from wextrunk.scanner import DirectiveScanner, parse_include


def test_scanner_reads_kinds_in_source_order() -> None:
    html = """
<head>
<link data-wextrunk rel="htmlpage" name="popup" html="popup.html" wasm-fn="popup_page">
<link data-wextrunk="script" js="content.js">
<link data-wextrunk rel="script" js="background.js" background-script>
<link data-wextrunk="background" js="worker.js">
<link data-wextrunk="manifest" href="manifest.chrome.json" data-wextrunk-include="Chrome">
</head>
"""
    result = DirectiveScanner().scan(html)

    kinds = [directive.kind for directive in result.directives]
    assert kinds == [
        DirectiveKind.PAGE,
        DirectiveKind.SCRIPT,
        DirectiveKind.BACKGROUND_SCRIPT,
        DirectiveKind.BACKGROUND_SCRIPT,
        DirectiveKind.MANIFEST,
    ]
    targets = [directive.target_ref for directive in result.directives]
    assert targets == ["popup.html", "content.js", "background.js", "worker.js", "manifest.chrome.json"]
    assert result.directives[0].entry_symbol == "popup_page"
    assert result.directives[4].include_filter == frozenset({"chrome"})


def test_scanner_removes_directive_tags_from_template() -> None:
    html = '<head><link data-wextrunk="page" html="options.html"><title>x</title></head>'
    result = DirectiveScanner().scan(html)

    assert "data-wextrunk" not in result.template
    assert "<title>x</title>" in result.template


def test_scanner_keeps_raw_attributes_for_pass_through() -> None:
    html = '<link data-wextrunk="page" html="options.html" no-reload class="a b">'
    directive = DirectiveScanner().scan(html).directives[0]

    assert directive.no_reload is True
    assert directive.raw_attributes["class"] == "a b"
    with pytest.raises(TypeError):
        directive.raw_attributes["class"] = "c"  # type: ignore[index]
    assert directive.surface_id == "options"
    assert directive.entry_symbol == "options"


def test_scanner_rejects_unknown_kind_with_location() -> None:
    html = '<head>\n<meta charset="utf-8">\n<link data-wextrunk="sidebar" html="side.html">\n</head>'
    with pytest.raises(MalformedDirective) as excinfo:
        DirectiveScanner().scan(html)

    message = str(excinfo.value)
    assert "sidebar" in message
    assert "line 3" in message


def test_scanner_rejects_missing_kind() -> None:
    with pytest.raises(MalformedDirective, match="no kind"):
        DirectiveScanner().scan('<link data-wextrunk html="popup.html">')


def test_scanner_requires_target_attribute() -> None:
    with pytest.raises(MalformedDirective, match="requires html or href"):
        DirectiveScanner().scan('<link data-wextrunk="page" name="popup">')


def test_scanner_merges_repeated_include_attributes() -> None:
    html = (
        '<link data-wextrunk="script" js="shared.js" '
        'data-wextrunk-include="popup" data-wextrunk-include="options">'
    )
    directive = DirectiveScanner().scan(html).directives[0]

    assert directive.include_filter == frozenset({"popup", "options"})


def test_scanner_maps_legacy_manifest_target_and_default() -> None:
    html = (
        '<link data-wextrunk rel="manifest" href="m.chrome.json" target="chrome" default>'
        '<link data-wextrunk rel="manifest" href="m.firefox.json" target="firefox">'
    )
    chrome, firefox = DirectiveScanner().scan(html).directives

    assert chrome.include_filter == frozenset({"chrome"})
    assert firefox.include_filter == frozenset({"firefox"})
    assert chrome.is_default is True
    assert firefox.is_default is False


def test_scanner_default_flag_does_not_imply_a_browser() -> None:
    html = '<link data-wextrunk rel="manifest" href="m.firefox.json" target="firefox" default>'
    directive = DirectiveScanner().scan(html).directives[0]

    assert directive.include_filter == frozenset({"firefox"})
    assert directive.is_default is True


def test_scanner_rejects_unknown_manifest_target() -> None:
    html = '<link data-wextrunk="manifest" href="m.json" data-wextrunk-include="safari">'
    with pytest.raises(MalformedDirective, match="safari"):
        DirectiveScanner().scan(html)


def test_parse_include_accepts_spaces_and_commas() -> None:
    assert parse_include("popup, options  background") == frozenset({"popup", "options", "background"})
    assert parse_include("") == frozenset()
    assert parse_include(None) == frozenset()
