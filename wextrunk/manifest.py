"""Manifest selection for the active build target."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

from .errors import AmbiguousManifest, IoFailure, NoManifestMatch
from .logging import get_logger
from .models import DEFAULT_TARGET, BuildTarget, Directive, RenderedArtifact
from .stages.include import default_manifests, manifests_for_target


class ManifestSelector:
    """Resolves exactly one manifest directive and stages a byte copy of it."""

    def __init__(self, manifest_name: str = "manifest.json") -> None:
        self.manifest_name = manifest_name
        self.logger = get_logger("manifest")

    def select(self, directives: Sequence[Directive], target: Optional[BuildTarget]) -> Directive:
        """Pick the manifest for ``target``.

        With no target set, manifests flagged ``default`` win regardless of
        which browser they are for. When none is flagged the build falls back
        to the Chrome target filter.
        """
        if target is None:
            matches = default_manifests(directives)
            if matches:
                return self._single(matches, "no target set; flagged default")
            self.logger.debug(
                "No target set and no default manifest; using %s", DEFAULT_TARGET.value
            )
            target = DEFAULT_TARGET
        return self._single(
            manifests_for_target(directives, target), f"build target {target.value!r}"
        )

    @staticmethod
    def _single(matches: Sequence[Directive], criterion: str) -> Directive:
        if not matches:
            raise NoManifestMatch(f"no manifest directive matches {criterion}")
        if len(matches) > 1:
            candidates = ", ".join(
                f"{match.target_ref} ({match.describe()})" for match in matches
            )
            raise AmbiguousManifest(
                f"{len(matches)} manifest directives match {criterion}: {candidates}"
            )
        return matches[0]

    def stage(self, directive: Directive, source_dir: Path) -> RenderedArtifact:
        """Read the manifest source so it can be committed with the other artifacts."""
        source = source_dir / directive.target_ref.lstrip("/")
        try:
            content = source.read_bytes()
        except OSError as exc:
            raise IoFailure(f"cannot read manifest {source} declared by {directive.describe()}: {exc}") from exc
        self.logger.debug("Staged manifest %s as %s", source, self.manifest_name)
        return RenderedArtifact(path=self.manifest_name, content=content)

    def resolve(
        self, directives: Sequence[Directive], target: Optional[BuildTarget], source_dir: Path
    ) -> tuple[Directive, RenderedArtifact]:
        directive = self.select(directives, target)
        return directive, self.stage(directive, source_dir)


__all__ = ["ManifestSelector"]
