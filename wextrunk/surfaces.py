"""Surface derivation from page and script directives."""

from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

from .errors import MalformedDirective
from .models import Directive, DirectiveKind, Surface


def shim_name_for_page(html_path: str) -> str:
    """``popup.html`` -> ``popup_html_shim.js``."""
    return f"{html_path.replace('.', '_')}_shim.js"


def derive_surfaces(directives: Iterable[Directive], *, manifest_name: str = "manifest.json") -> Tuple[Surface, ...]:
    """Return one surface per page/script directive, in declaration order.

    Surface ids and output paths must be unique across the build.
    """
    surfaces: List[Surface] = []
    ids: Dict[str, Directive] = {}
    outputs: Dict[str, str] = {manifest_name: "the manifest"}

    for directive in directives:
        if not directive.kind.declares_surface:
            continue
        surface = _surface_for(directive)

        previous = ids.get(surface.id)
        if previous is not None:
            raise MalformedDirective(
                f"{directive.describe()}: surface id {surface.id!r} already declared by {previous.describe()}"
            )
        ids[surface.id] = directive

        for path in (surface.html_path, surface.shim_path):
            if path is None:
                continue
            owner = outputs.get(path)
            if owner is not None:
                raise MalformedDirective(
                    f"{directive.describe()}: output {path!r} collides with {owner}"
                )
            outputs[path] = f"surface {surface.id!r}"

        surfaces.append(surface)
    return tuple(surfaces)


def _surface_for(directive: Directive) -> Surface:
    if directive.kind is DirectiveKind.PAGE:
        html_path = directive.target_ref.lstrip("/")
        return Surface(
            id=directive.surface_id,
            kind=directive.kind,
            html_path=html_path,
            shim_path=shim_name_for_page(html_path),
            entry_symbol=directive.entry_symbol,
            no_reload=directive.no_reload,
            directive=directive,
        )
    if directive.kind in (DirectiveKind.SCRIPT, DirectiveKind.BACKGROUND_SCRIPT):
        return Surface(
            id=directive.surface_id,
            kind=directive.kind,
            html_path=None,
            shim_path=directive.target_ref.lstrip("/"),
            entry_symbol=directive.entry_symbol,
            no_reload=directive.no_reload,
            directive=directive,
        )
    raise MalformedDirective(f"{directive.describe()}: {directive.kind.value} does not declare a surface")


__all__ = ["derive_surfaces", "shim_name_for_page"]
