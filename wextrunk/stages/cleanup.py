"""Page-level cleanup of markup extensions cannot load."""

from __future__ import annotations

from bs4 import BeautifulSoup

from ..config import PageConfig

_PRELOAD_RELS = {"preload", "modulepreload"}


def strip_preloads(soup: BeautifulSoup) -> int:
    removed = 0
    for link in soup.find_all("link"):
        rels = {part.lower() for part in str(link.get("rel", "")).split()}
        if rels & _PRELOAD_RELS:
            link.decompose()
            removed += 1
    return removed


def strip_integrity(soup: BeautifulSoup) -> int:
    stripped = 0
    for tag in soup.find_all(attrs={"integrity": True}):
        del tag["integrity"]
        stripped += 1
    return stripped


class PageCleaner:
    """Applies the configured cleanup steps to a page document."""

    def __init__(self, config: PageConfig | None = None) -> None:
        self.config = config or PageConfig()

    def clean(self, soup: BeautifulSoup) -> None:
        if self.config.strip_preloads:
            strip_preloads(soup)
        if self.config.strip_integrity:
            strip_integrity(soup)


__all__ = ["PageCleaner", "strip_integrity", "strip_preloads"]
