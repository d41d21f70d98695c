"""Relocation of inline bundler scripts into per-surface shim files."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from ..config import ServeConfig
from ..logging import get_logger
from ..models import Surface

TRUNK_ADDRESS_PLACEHOLDER = "{{__TRUNK_ADDRESS__}}"
TRUNK_WS_BASE_PLACEHOLDER = "{{__TRUNK_WS_BASE__}}"

_JS_TYPES = {
    "",
    "module",
    "text/javascript",
    "application/javascript",
    "text/ecmascript",
    "application/ecmascript",
}

# wasm-bindgen warns when init() gets a bare path instead of an options object.
_INIT_CALL = re.compile(r"\binit\(\s*(['\"][^'\"]*['\"])\s*\)")
# Trunk's bootstrap module imports the wasm-bindgen init function.
_BOOTSTRAP_IMPORT = re.compile(r"^\s*import\s+init\b", re.MULTILINE)


@dataclass(frozen=True)
class ScriptSegment:
    """One externalized inline script body."""

    body: str
    line: Optional[int] = None
    reload: bool = False
    bootstrap: bool = False


@dataclass
class ScriptBuffer:
    """Ordered collection of externalized script bodies for one surface."""

    segments: List[ScriptSegment] = field(default_factory=list)

    def append(self, segment: ScriptSegment) -> None:
        self.segments.append(segment)

    def bodies(self) -> Tuple[str, ...]:
        return tuple(segment.body for segment in self.segments)

    def render(self) -> str:
        return "".join(self.bodies())

    def __len__(self) -> int:
        return len(self.segments)

    def __bool__(self) -> bool:
        return bool(self.segments)


def is_inline_javascript(tag: Tag) -> bool:
    """True for ``<script>`` tags without ``src`` whose type is executable JS."""
    if tag.name != "script" or tag.has_attr("src"):
        return False
    script_type = str(tag.get("type", "")).strip().lower()
    return script_type in _JS_TYPES


def is_bootstrap(body: str) -> bool:
    return bool(_BOOTSTRAP_IMPORT.search(body))


def fix_init_call(body: str) -> str:
    return _INIT_CALL.sub(r"init({module_or_path: \1})", body)


class ScriptExternalizer:
    """Moves inline scripts out of a surface's document into a :class:`ScriptBuffer`."""

    def __init__(self, serve: ServeConfig | None = None) -> None:
        self.serve = serve or ServeConfig()
        self.logger = get_logger("stages.externalizer")

    def externalize(self, soup: BeautifulSoup, surface: Surface) -> ScriptBuffer:
        """Collect inline scripts in document order and rewrite ``soup`` in place.

        For page surfaces the first externalized tag becomes the shim reference
        and the remaining inline tags are removed. Scripts with ``src`` and
        non-JS inline types are left untouched.
        """
        buffer = ScriptBuffer()
        anchor: Optional[Tag] = None

        for tag in soup.find_all("script"):
            if not is_inline_javascript(tag):
                continue
            segment = self._segment_for(tag, surface)
            if segment is not None:
                buffer.append(segment)
            if anchor is None:
                anchor = tag
            else:
                tag.decompose()

        if anchor is not None:
            if surface.html_path is not None:
                anchor.replace_with(self._shim_tag(soup, surface))
            else:
                anchor.decompose()

        self.logger.debug(
            "Externalized %d inline script(s) for surface %s", len(buffer), surface.id
        )
        return buffer

    def _segment_for(self, tag: Tag, surface: Surface) -> Optional[ScriptSegment]:
        body = tag.string if tag.string is not None else tag.get_text()
        body = body.strip()
        if not body:
            return None
        line = getattr(tag, "sourceline", None)

        if TRUNK_ADDRESS_PLACEHOLDER in body or TRUNK_WS_BASE_PLACEHOLDER in body:
            if surface.no_reload:
                self.logger.debug("Dropping auto-reload script for surface %s", surface.id)
                return None
            body = body.replace(TRUNK_ADDRESS_PLACEHOLDER, self.serve.host).replace(
                TRUNK_WS_BASE_PLACEHOLDER, self.serve.ws_base
            )
            return ScriptSegment(body=body + "\n", line=line, reload=True)

        if is_bootstrap(body):
            return ScriptSegment(body=fix_init_call(body) + "\n", line=line, bootstrap=True)
        return ScriptSegment(body=body + "\n", line=line)

    @staticmethod
    def _shim_tag(soup: BeautifulSoup, surface: Surface) -> Tag:
        return soup.new_tag("script", attrs={"type": "module", "src": f"/{surface.shim_path}"})


__all__ = [
    "ScriptBuffer",
    "ScriptExternalizer",
    "ScriptSegment",
    "TRUNK_ADDRESS_PLACEHOLDER",
    "TRUNK_WS_BASE_PLACEHOLDER",
    "fix_init_call",
    "is_bootstrap",
    "is_inline_javascript",
]
