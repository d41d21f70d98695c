"""Split DWARF debug info out of the built wasm binary.

Chrome's DWARF debugging extension cannot fetch debug files over
``chrome-extension://`` or ``file://`` URLs, so the stripped binary points at a
copy of the debug file served by ``trunk serve`` instead. Only meant for debug
builds.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Optional

from .config import ServeConfig
from .errors import IoFailure
from .logging import get_logger


@dataclass(frozen=True)
class SplitResult:
    """Paths produced by a debug split."""

    wasm: Path
    original: Path
    debug: Path
    debug_url: str


class DebugSplitter:
    """Runs ``wasm-split`` against the first wasm binary in a staging directory."""

    def __init__(
        self,
        serve: ServeConfig | None = None,
        runner: Callable[[Iterable[str]], None] | None = None,
        executable: str = "wasm-split",
    ) -> None:
        self.serve = serve or ServeConfig()
        self.executable = executable
        self._runner = runner or self._default_runner
        self.logger = get_logger("debug_split")

    def split(self, staging_dir: Path) -> SplitResult:
        wasm = self.find_wasm(staging_dir)
        if wasm is None:
            raise IoFailure(f"no .wasm file found in {staging_dir}")

        original = wasm.with_suffix(".wasm.orig")
        debug = wasm.with_suffix(".wasm.debug")
        debug_url = f"http://{self.serve.host}/{debug.name}"

        try:
            wasm.rename(original)
        except OSError as exc:
            raise IoFailure(f"cannot move {wasm.name} aside: {exc}") from exc

        args = [
            self.executable,
            str(original),
            "-o",
            str(wasm),
            "--strip",
            "--debug-out",
            str(debug),
            "--external-dwarf-url",
            debug_url,
        ]
        self.logger.debug("Running %s", " ".join(args))
        try:
            self._runner(args)
        except (OSError, subprocess.CalledProcessError) as exc:
            raise IoFailure(f"{self.executable} failed for {original.name}: {exc}") from exc

        self.logger.info("Split debug info for %s into %s", wasm.name, debug.name)
        return SplitResult(wasm=wasm, original=original, debug=debug, debug_url=debug_url)

    @staticmethod
    def find_wasm(staging_dir: Path) -> Optional[Path]:
        try:
            candidates = sorted(path for path in staging_dir.iterdir() if path.suffix == ".wasm")
        except OSError as exc:
            raise IoFailure(f"cannot list {staging_dir}: {exc}") from exc
        return candidates[0] if candidates else None

    @staticmethod
    def _default_runner(args: Iterable[str]) -> None:
        subprocess.run(list(args), check=True, capture_output=True, text=True)


__all__ = ["DebugSplitter", "SplitResult"]
