"""Post-build splitter turning bundler output into a WebExtension layout."""

from .errors import (
    AmbiguousManifest,
    IoFailure,
    MalformedDirective,
    MissingBootstrap,
    NoManifestMatch,
    PipelineError,
    UnknownSurfaceReference,
)
from .models import BuildTarget, Directive, DirectiveKind, RenderedArtifact, Surface
from .orchestrator import Pipeline

__version__ = "0.1.0"

__all__ = [
    "AmbiguousManifest",
    "BuildTarget",
    "Directive",
    "DirectiveKind",
    "IoFailure",
    "MalformedDirective",
    "MissingBootstrap",
    "NoManifestMatch",
    "Pipeline",
    "PipelineError",
    "RenderedArtifact",
    "Surface",
    "UnknownSurfaceReference",
    "__version__",
]
