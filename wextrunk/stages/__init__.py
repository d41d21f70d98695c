"""Per-surface rewrite stages."""

from .background import BackgroundWrapper
from .cleanup import PageCleaner
from .externalizer import ScriptBuffer, ScriptExternalizer, ScriptSegment
from .include import (
    applies,
    check_references,
    default_manifests,
    filter_directives,
    manifests_for_target,
    prune_scoped_elements,
)
from .injector import EntryPointInjector, entry_call

__all__ = [
    "BackgroundWrapper",
    "EntryPointInjector",
    "PageCleaner",
    "ScriptBuffer",
    "ScriptExternalizer",
    "ScriptSegment",
    "applies",
    "check_references",
    "default_manifests",
    "entry_call",
    "filter_directives",
    "manifests_for_target",
    "prune_scoped_elements",
]
