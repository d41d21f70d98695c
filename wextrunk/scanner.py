"""Directive discovery in bundler-emitted HTML."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, MutableMapping, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from .errors import MalformedDirective
from .logging import get_logger
from .models import BuildTarget, Directive, DirectiveKind

MARKER_ATTRIBUTE = "data-wextrunk"
INCLUDE_ATTRIBUTE = "data-wextrunk-include"

_KIND_ALIASES: Dict[str, DirectiveKind] = {
    "page": DirectiveKind.PAGE,
    "htmlpage": DirectiveKind.PAGE,
    "script": DirectiveKind.SCRIPT,
    "background": DirectiveKind.BACKGROUND_SCRIPT,
    "background-script": DirectiveKind.BACKGROUND_SCRIPT,
    "manifest": DirectiveKind.MANIFEST,
}

_TARGET_ATTRIBUTES: Dict[DirectiveKind, Tuple[str, ...]] = {
    DirectiveKind.PAGE: ("html", "href"),
    DirectiveKind.SCRIPT: ("js", "src", "href"),
    DirectiveKind.BACKGROUND_SCRIPT: ("js", "src", "href"),
    DirectiveKind.MANIFEST: ("href", "src"),
}

_INCLUDE_SPLIT = re.compile(r"[\s,]+")


@dataclass(frozen=True)
class ScanResult:
    """Directives in source order plus the document with directive tags removed."""

    directives: Tuple[Directive, ...]
    template: str


def parse_html(html: str) -> BeautifulSoup:
    """Parse HTML the way every wextrunk stage expects it.

    Attribute values stay plain strings (no ``rel``/``class`` splitting) and
    repeated include attributes on a tag are merged instead of overwritten.
    """
    return BeautifulSoup(
        html,
        "html.parser",
        multi_valued_attributes=None,
        on_duplicate_attribute=_merge_duplicate_attribute,
    )


def parse_include(value: Optional[str]) -> FrozenSet[str]:
    """Split a space/comma separated include list."""
    if not value:
        return frozenset()
    return frozenset(part for part in _INCLUDE_SPLIT.split(value.strip()) if part)


class DirectiveScanner:
    """Extracts page, script and manifest directives from an HTML document."""

    def __init__(self) -> None:
        self.logger = get_logger("scanner")

    def scan(self, html: str) -> ScanResult:
        soup = parse_html(html)
        directives: List[Directive] = []
        for tag in soup.find_all(attrs={MARKER_ATTRIBUTE: True}):
            directives.append(self._directive_from_tag(tag))
            tag.decompose()
        self.logger.debug("Scanned %d directives", len(directives))
        return ScanResult(directives=tuple(directives), template=str(soup))

    def _directive_from_tag(self, tag: Tag) -> Directive:
        attributes = {key: _attr_str(value) for key, value in tag.attrs.items()}
        line = getattr(tag, "sourceline", None)
        locator = f"<{tag.name}> at line {line}" if line is not None else f"<{tag.name}>"

        kind = self._resolve_kind(attributes, locator)
        target_ref = self._resolve_target_ref(kind, attributes, locator)

        include = parse_include(attributes.get(INCLUDE_ATTRIBUTE))
        if kind is DirectiveKind.MANIFEST:
            include = self._manifest_include(include, attributes, locator)

        return Directive(
            kind=kind,
            target_ref=target_ref,
            include_filter=include,
            raw_attributes=attributes,
            tag_name=tag.name,
            line=line,
        )

    @staticmethod
    def _resolve_kind(attributes: Dict[str, str], locator: str) -> DirectiveKind:
        marker = attributes.get(MARKER_ATTRIBUTE, "").strip().lower()
        if not marker:
            marker = attributes.get("rel", "").strip().lower()
        if not marker:
            raise MalformedDirective(f"{locator}: directive has no kind (set data-wextrunk or rel)")
        kind = _KIND_ALIASES.get(marker)
        if kind is None:
            raise MalformedDirective(f"{locator}: unknown directive kind {marker!r}")
        if kind is DirectiveKind.SCRIPT and "background-script" in attributes:
            return DirectiveKind.BACKGROUND_SCRIPT
        return kind

    @staticmethod
    def _resolve_target_ref(kind: DirectiveKind, attributes: Dict[str, str], locator: str) -> str:
        candidates = _TARGET_ATTRIBUTES[kind]
        for name in candidates:
            value = attributes.get(name, "").strip()
            if value:
                return value
        expected = " or ".join(candidates)
        raise MalformedDirective(f"{locator}: {kind.value} directive requires {expected}")

    @staticmethod
    def _manifest_include(
        include: FrozenSet[str], attributes: Dict[str, str], locator: str
    ) -> FrozenSet[str]:
        entries = {entry.lower() for entry in include}
        entries.update(entry.lower() for entry in parse_include(attributes.get("target")))
        unknown = sorted(entries - BuildTarget.identifiers())
        if unknown:
            known = ", ".join(sorted(BuildTarget.identifiers()))
            raise MalformedDirective(
                f"{locator}: manifest names unknown build target(s) {', '.join(unknown)} (expected {known})"
            )
        return frozenset(entries)


def _merge_duplicate_attribute(attributes: MutableMapping[str, str], key: str, value: str) -> None:
    if key == INCLUDE_ATTRIBUTE and attributes.get(key):
        attributes[key] = f"{attributes[key]} {value}"
    else:
        attributes[key] = value


def _attr_str(value: object) -> str:
    if isinstance(value, (list, tuple)):
        return " ".join(str(item) for item in value)
    return "" if value is None else str(value)


__all__ = [
    "DirectiveScanner",
    "INCLUDE_ATTRIBUTE",
    "MARKER_ATTRIBUTE",
    "ScanResult",
    "parse_html",
    "parse_include",
]
