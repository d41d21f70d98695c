"""Include filtering: which directives and elements belong to which surface."""

from __future__ import annotations

from typing import AbstractSet, Iterable, List, Sequence, Tuple

from bs4 import BeautifulSoup

from ..errors import UnknownSurfaceReference
from ..logging import get_logger
from ..models import BuildTarget, Directive, DirectiveKind, Surface
from ..scanner import INCLUDE_ATTRIBUTE, parse_include

logger = get_logger("stages.include")


def applies(include: AbstractSet[str], surface_id: str) -> bool:
    """A filter applies when it is empty or names the surface."""
    return not include or surface_id in include


def filter_directives(directives: Iterable[Directive], surface: Surface) -> Tuple[Directive, ...]:
    """Return the page/script directives that apply to ``surface``.

    Manifest directives are target-scoped and never part of a surface's set.
    """
    return tuple(
        directive
        for directive in directives
        if directive.kind is not DirectiveKind.MANIFEST
        and applies(directive.include_filter, surface.id)
    )


def manifests_for_target(directives: Iterable[Directive], target: BuildTarget) -> Tuple[Directive, ...]:
    """Return manifest directives whose include filter admits ``target``."""
    return tuple(
        directive
        for directive in directives
        if directive.kind is DirectiveKind.MANIFEST
        and applies(directive.include_filter, target.value)
    )


def default_manifests(directives: Iterable[Directive]) -> Tuple[Directive, ...]:
    """Return manifest directives carrying the `default` flag."""
    return tuple(
        directive
        for directive in directives
        if directive.kind is DirectiveKind.MANIFEST and directive.is_default
    )


def prune_scoped_elements(soup: BeautifulSoup, surface_id: str) -> int:
    """Drop elements scoped to other surfaces and strip the include attribute.

    Returns the number of elements removed.
    """
    removed = 0
    for tag in soup.find_all(attrs={INCLUDE_ATTRIBUTE: True}):
        if tag.decomposed:
            continue
        include = parse_include(tag.get(INCLUDE_ATTRIBUTE))
        if applies(include, surface_id):
            del tag[INCLUDE_ATTRIBUTE]
        else:
            tag.decompose()
            removed += 1
    return removed


def check_references(
    directives: Sequence[Directive],
    template: BeautifulSoup,
    surfaces: Sequence[Surface],
    *,
    strict: bool = True,
) -> List[str]:
    """Ensure every include filter names a declared surface.

    Raises :class:`UnknownSurfaceReference` for the first offender when
    ``strict``; otherwise logs each one as a warning and returns them.
    """
    declared = {surface.id for surface in surfaces}
    problems: List[str] = []

    for directive in directives:
        if directive.kind is DirectiveKind.MANIFEST:
            continue
        for name in sorted(directive.include_filter - declared):
            problems.append(f"{directive.describe()}: include names undeclared surface {name!r}")

    for tag in template.find_all(attrs={INCLUDE_ATTRIBUTE: True}):
        include = parse_include(tag.get(INCLUDE_ATTRIBUTE))
        line = getattr(tag, "sourceline", None)
        location = f" at line {line}" if line is not None else ""
        for name in sorted(include - declared):
            problems.append(f"<{tag.name}>{location}: include names undeclared surface {name!r}")

    if problems and strict:
        raise UnknownSurfaceReference(problems[0])
    for problem in problems:
        logger.warning("%s", problem)
    return problems


__all__ = [
    "applies",
    "check_references",
    "default_manifests",
    "filter_directives",
    "manifests_for_target",
    "prune_scoped_elements",
]
