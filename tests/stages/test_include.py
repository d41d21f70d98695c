"""Tests for include filtering."""

from __future__ import annotations

import pytest

from wextrunk.errors import UnknownSurfaceReference
from wextrunk.models import BuildTarget
from wextrunk.scanner import DirectiveScanner, parse_html
from wextrunk.stages.include import (
    applies,
    check_references,
    filter_directives,
    manifests_for_target,
    prune_scoped_elements,
)
from wextrunk.surfaces import derive_surfaces

HTML = (
    '<link data-wextrunk="page" html="popup.html">'
    '<link data-wextrunk="page" html="options.html">'
    '<link data-wextrunk="script" js="shared.js" data-wextrunk-include="popup">'
    '<link data-wextrunk="manifest" href="m.chrome.json" data-wextrunk-include="chrome">'
    '<link data-wextrunk="manifest" href="m.firefox.json" data-wextrunk-include="firefox">'
)


def test_applies_when_filter_empty_or_names_surface() -> None:
    assert applies(frozenset(), "popup")
    assert applies(frozenset({"popup"}), "popup")
    assert not applies(frozenset({"options"}), "popup")


def test_filtering_is_evaluated_per_surface() -> None:
    directives = DirectiveScanner().scan(HTML).directives
    popup, options, shared = derive_surfaces(directives)

    popup_set = filter_directives(directives, popup)
    options_set = filter_directives(directives, options)

    assert [d.target_ref for d in popup_set] == ["popup.html", "options.html", "shared.js"]
    assert [d.target_ref for d in options_set] == ["popup.html", "options.html"]
    # Computing one surface's set leaves the other's unchanged.
    assert filter_directives(directives, popup) == popup_set


def test_manifests_are_scoped_by_build_target() -> None:
    directives = DirectiveScanner().scan(HTML).directives

    chrome = manifests_for_target(directives, BuildTarget.CHROME)
    firefox = manifests_for_target(directives, BuildTarget.FIREFOX)

    assert [d.target_ref for d in chrome] == ["m.chrome.json"]
    assert [d.target_ref for d in firefox] == ["m.firefox.json"]


def test_prune_scoped_elements_keeps_matching_and_strips_attribute() -> None:
    soup = parse_html(
        '<link rel="stylesheet" href="popup.css" data-wextrunk-include="popup">'
        '<link rel="stylesheet" href="options.css" data-wextrunk-include="options">'
        '<p>shared</p>'
    )

    removed = prune_scoped_elements(soup, "popup")
    html = str(soup)

    assert removed == 1
    assert 'href="popup.css"' in html
    assert "options.css" not in html
    assert "data-wextrunk-include" not in html
    assert "<p>shared</p>" in html


def test_check_references_rejects_undeclared_surface() -> None:
    scan = DirectiveScanner().scan(
        '<link data-wextrunk="page" html="popup.html">'
        '<div data-wextrunk-include="sidebar">x</div>'
    )
    surfaces = derive_surfaces(scan.directives)

    with pytest.raises(UnknownSurfaceReference, match="sidebar"):
        check_references(scan.directives, parse_html(scan.template), surfaces)


def test_check_references_warns_when_not_strict() -> None:
    scan = DirectiveScanner().scan(
        '<link data-wextrunk="page" html="popup.html">'
        '<link data-wextrunk="script" js="extra.js" data-wextrunk-include="ghost">'
    )
    surfaces = derive_surfaces(scan.directives)

    problems = check_references(scan.directives, parse_html(scan.template), surfaces, strict=False)

    assert len(problems) == 1
    assert "ghost" in problems[0]


def test_check_references_ignores_manifest_targets() -> None:
    scan = DirectiveScanner().scan(HTML)
    surfaces = derive_surfaces(scan.directives)

    assert check_references(scan.directives, parse_html(scan.template), surfaces) == []
