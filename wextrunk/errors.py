"""Error types raised by the wextrunk pipeline."""

from __future__ import annotations

from typing import Optional


class PipelineError(RuntimeError):
    """Base class for failures that abort a build.

    ``stage`` is filled in by the orchestrator with the name of the stage that
    was running when the error surfaced.
    """

    def __init__(self, message: str, *, stage: Optional[str] = None) -> None:
        super().__init__(message)
        self.stage = stage


class MalformedDirective(PipelineError):
    """A directive tag has an unknown kind or lacks a required attribute."""


class UnknownSurfaceReference(PipelineError):
    """An include filter names a surface that was never declared."""


class NoManifestMatch(PipelineError):
    """No manifest directive resolves for the active build target."""


class AmbiguousManifest(PipelineError):
    """More than one manifest directive resolves for the active build target."""


class MissingBootstrap(PipelineError):
    """A surface has no inline bundler script to externalize."""


class IoFailure(PipelineError):
    """Input could not be read or output could not be written."""


__all__ = [
    "AmbiguousManifest",
    "IoFailure",
    "MalformedDirective",
    "MissingBootstrap",
    "NoManifestMatch",
    "PipelineError",
    "UnknownSurfaceReference",
]
