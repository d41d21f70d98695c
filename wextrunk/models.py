"""Core data models shared across wextrunk components."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePosixPath
from types import MappingProxyType
from typing import FrozenSet, Mapping, Optional, Tuple


class DirectiveKind(Enum):
    """Closed set of build intents a directive tag can declare."""

    PAGE = "page"
    SCRIPT = "script"
    BACKGROUND_SCRIPT = "background-script"
    MANIFEST = "manifest"

    @property
    def declares_surface(self) -> bool:
        return self is not DirectiveKind.MANIFEST


class BuildTarget(Enum):
    """Browser flavour the extension is being packaged for."""

    CHROME = "chrome"
    FIREFOX = "firefox"

    @classmethod
    def parse(cls, value: str) -> "BuildTarget":
        """Resolve a target identifier case-insensitively."""
        normalised = value.strip().lower()
        for target in cls:
            if target.value == normalised:
                return target
        known = ", ".join(target.value for target in cls)
        raise ValueError(f"Unknown build target {value!r} (expected one of: {known})")

    @classmethod
    def identifiers(cls) -> FrozenSet[str]:
        return frozenset(target.value for target in cls)


# Used when no target is set and no manifest carries the `default` flag.
DEFAULT_TARGET = BuildTarget.CHROME


@dataclass(frozen=True)
class Directive:
    """One author-declared build intent parsed from a marker tag."""

    kind: DirectiveKind
    target_ref: str
    include_filter: FrozenSet[str] = frozenset()
    raw_attributes: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({}), compare=False, hash=False
    )
    tag_name: str = "link"
    line: Optional[int] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "raw_attributes", MappingProxyType(dict(self.raw_attributes)))

    @property
    def surface_id(self) -> str:
        name = self.raw_attributes.get("name", "").strip()
        if name:
            return name
        return PurePosixPath(self.target_ref).stem

    @property
    def entry_symbol(self) -> str:
        symbol = self.raw_attributes.get("wasm-fn", "").strip()
        return symbol or self.surface_id

    @property
    def no_reload(self) -> bool:
        return "no-reload" in self.raw_attributes

    @property
    def is_default(self) -> bool:
        """Manifest flagged for builds that name no target."""
        return "default" in self.raw_attributes

    def describe(self) -> str:
        """Return a short locator used in diagnostics."""
        location = f" at line {self.line}" if self.line is not None else ""
        return f"<{self.tag_name} data-wextrunk={self.kind.value!r}>{location}"


@dataclass(frozen=True)
class Surface:
    """One output execution context bound to a single module entry point."""

    id: str
    kind: DirectiveKind
    html_path: Optional[str]
    shim_path: str
    entry_symbol: str
    no_reload: bool = False
    directive: Optional[Directive] = field(default=None, compare=False)

    @property
    def is_background(self) -> bool:
        return self.kind is DirectiveKind.BACKGROUND_SCRIPT


@dataclass(frozen=True)
class RenderedArtifact:
    """Final bytes for one output file, relative to the staging directory."""

    path: str
    content: bytes


class BuildStage(Enum):
    """States a build moves through."""

    SCANNED = "scanned"
    FILTERED = "filtered"
    REWRITTEN = "rewritten"
    MANIFEST_RESOLVED = "manifest-resolved"
    WRITTEN = "written"
    FAILED = "failed"


@dataclass
class BuildReport:
    """Outcome of a completed build."""

    target: Optional[BuildTarget]
    surfaces: Tuple[Surface, ...]
    artifacts: Tuple[RenderedArtifact, ...]
    manifest_source: str
    stage: BuildStage = BuildStage.WRITTEN
    elapsed: float = 0.0
