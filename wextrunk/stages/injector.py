"""Entry-point invocation appended to every shim."""

from __future__ import annotations

import re

from ..errors import MalformedDirective
from ..models import Surface
from .externalizer import ScriptBuffer

_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


def entry_call(symbol: str) -> str:
    """Return the statement invoking ``symbol`` on the initialised module."""
    if not _IDENTIFIER.match(symbol):
        raise MalformedDirective(f"entry point {symbol!r} is not a valid JavaScript identifier")
    return f"await wasm.{symbol}();\n"


class EntryPointInjector:
    """Appends exactly one entry invocation after all externalized code."""

    def inject(self, buffer: ScriptBuffer, surface: Surface) -> str:
        try:
            call = entry_call(surface.entry_symbol)
        except MalformedDirective as exc:
            raise MalformedDirective(f"surface {surface.id!r}: {exc}") from exc
        return buffer.render() + call


__all__ = ["EntryPointInjector", "entry_call"]
