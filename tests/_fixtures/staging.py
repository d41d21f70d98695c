"""Helper utilities for constructing bundler staging directories in tests."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Mapping

BOOTSTRAP_SCRIPT = """\
<script type="module" nonce="Zm9v">
import init, * as bindings from '/app-1a2b.js';
const wasm = await init('/app-1a2b_bg.wasm');

window.wasmBindings = bindings;

dispatchEvent(new CustomEvent("TrunkApplicationStarted", {detail: {wasm}}));
</script>"""

RELOAD_SCRIPT = """\
<script>(function () {
    var url = 'ws://' + '{{__TRUNK_ADDRESS__}}' + '{{__TRUNK_WS_BASE__}}.well-known/trunk/ws';
    new WebSocket(url);
})();
</script>"""


def trunk_index(head: str, body: str = "", *, reload: bool = True) -> str:
    """Return an index.html shaped like Trunk output around the given directives."""
    head = textwrap.dedent(head).strip("\n")
    body = textwrap.dedent(body).strip("\n")
    reload_block = RELOAD_SCRIPT if reload else ""
    return (
        "<!DOCTYPE html>\n"
        "<html>\n"
        "<head>\n"
        '<meta charset="utf-8">\n'
        f"{head}\n"
        '<link rel="modulepreload" href="/app-1a2b.js" crossorigin="anonymous" integrity="sha384-js">\n'
        '<link rel="preload" href="/app-1a2b_bg.wasm" crossorigin="anonymous" integrity="sha384-wasm" as="fetch" type="application/wasm">\n'
        f"{BOOTSTRAP_SCRIPT}\n"
        "</head>\n"
        "<body>\n"
        f"{body}\n"
        f"{reload_block}\n"
        "</body>\n"
        "</html>\n"
    )


class StagingBuilder:
    """Writes a source tree and a staging directory for pipeline runs."""

    def __init__(self, tmp_path: Path) -> None:
        self.source = tmp_path / "src"
        self.staging = tmp_path / "dist"
        self.source.mkdir(parents=True)
        self.staging.mkdir(parents=True)

    def index(self, html: str) -> Path:
        path = self.staging / "index.html"
        path.write_text(html, encoding="utf-8")
        return path

    def sources(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries into the source directory."""
        for relative, content in files.items():
            path = self.source / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")

    def output(self, name: str) -> str:
        return (self.staging / name).read_text(encoding="utf-8")

    def snapshot(self) -> dict[str, bytes]:
        return {
            path.relative_to(self.staging).as_posix(): path.read_bytes()
            for path in sorted(self.staging.rglob("*"))
            if path.is_file()
        }


__all__ = ["BOOTSTRAP_SCRIPT", "RELOAD_SCRIPT", "StagingBuilder", "trunk_index"]
