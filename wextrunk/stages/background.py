"""Async wrapper for background-script shims."""

from __future__ import annotations

import re
from typing import List, Tuple

WRAPPER_OPEN = "(async () => {\n\n"
WRAPPER_CLOSE = "\n\n})();\n"

# Static imports are only legal at module top level, so they stay outside the wrapper.
_STATIC_IMPORT = re.compile(r"^import\s+(?!\()[^;]*;[ \t]*\n?", re.MULTILINE)


def split_static_imports(source: str) -> Tuple[str, str]:
    """Return ``(imports, remainder)`` with top-level static imports pulled out."""
    imports: List[str] = []

    def _collect(match: re.Match[str]) -> str:
        statement = match.group(0)
        imports.append(statement if statement.endswith("\n") else statement + "\n")
        return ""

    remainder = _STATIC_IMPORT.sub(_collect, source)
    return "".join(imports), remainder


class BackgroundWrapper:
    """Wraps background code in a single self-invoking async function.

    Service-worker backgrounds reject top-level ``await``. Nothing inside the
    wrapper is caught, so a failure still surfaces as an unhandled rejection.
    """

    def wrap(self, shim: str) -> str:
        imports, body = split_static_imports(shim)
        body = body.strip("\n")
        return f"{imports}{WRAPPER_OPEN}{body}{WRAPPER_CLOSE}"


__all__ = ["BackgroundWrapper", "WRAPPER_CLOSE", "WRAPPER_OPEN", "split_static_imports"]
