"""Pipeline orchestration: scan, filter, rewrite, resolve manifest, commit."""

from __future__ import annotations

import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Sequence, Tuple

from .config import WextrunkConfig
from .errors import IoFailure, MalformedDirective, MissingBootstrap, PipelineError
from .logging import get_logger, stage_timer
from .manifest import ManifestSelector
from .models import BuildReport, BuildStage, Directive, RenderedArtifact, Surface
from .scanner import DirectiveScanner, parse_html
from .stages.background import BackgroundWrapper
from .stages.cleanup import PageCleaner
from .stages.externalizer import ScriptExternalizer
from .stages.include import check_references, filter_directives, prune_scoped_elements
from .stages.injector import EntryPointInjector
from .surfaces import derive_surfaces

INDEX_HTML = "index.html"
_TEMP_SUFFIX = ".wextrunk-tmp"
_BACKUP_SUFFIX = ".wextrunk-bak"


@dataclass(frozen=True)
class SurfacePlan:
    """Independent working set for rendering one surface."""

    surface: Surface
    template: str


class Pipeline:
    """Turns a bundler staging directory into a WebExtension layout."""

    def __init__(
        self,
        config: WextrunkConfig,
        *,
        scanner: DirectiveScanner | None = None,
        externalizer: ScriptExternalizer | None = None,
        injector: EntryPointInjector | None = None,
        wrapper: BackgroundWrapper | None = None,
        cleaner: PageCleaner | None = None,
        manifest_selector: ManifestSelector | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.config = config
        self.scanner = scanner or DirectiveScanner()
        self.externalizer = externalizer or ScriptExternalizer(config.serve)
        self.injector = injector or EntryPointInjector()
        self.wrapper = wrapper or BackgroundWrapper()
        self.cleaner = cleaner or PageCleaner(config.page)
        self.manifest_selector = manifest_selector or ManifestSelector(config.manifest_name)
        self.logger = get_logger("orchestrator")
        self._clock = clock

    def run(self, staging_dir: Path) -> BuildReport:
        """Run every stage and commit the result, or raise without writing."""
        start = self._clock()
        staging_dir = staging_dir.expanduser().resolve()
        stage = BuildStage.SCANNED
        self.logger.info("Building %s for target %s", staging_dir, self._target_label())
        try:
            with stage_timer(self.logger, stage.value):
                html = self._read_index(staging_dir)
                scan = self.scanner.scan(html)
            self.logger.debug("State %s: %d directives", stage.value, len(scan.directives))

            stage = BuildStage.FILTERED
            with stage_timer(self.logger, stage.value):
                surfaces = derive_surfaces(scan.directives, manifest_name=self.config.manifest_name)
                check_references(
                    scan.directives,
                    parse_html(scan.template),
                    surfaces,
                    strict=self.config.strict_includes,
                )
                plans = self.plan(scan.directives, surfaces, scan.template)
            self.logger.debug("State %s: %d surfaces", stage.value, len(plans))

            stage = BuildStage.REWRITTEN
            with stage_timer(self.logger, stage.value):
                artifacts = self.render_all(plans)

            stage = BuildStage.MANIFEST_RESOLVED
            with stage_timer(self.logger, stage.value):
                manifest_directive, manifest_artifact = self.manifest_selector.resolve(
                    scan.directives, self.config.target, self.config.source_dir
                )
            artifacts.append(manifest_artifact)
            self.logger.debug("State %s: %s", stage.value, manifest_directive.target_ref)

            stage = BuildStage.WRITTEN
            with stage_timer(self.logger, stage.value):
                self.commit(staging_dir, artifacts)
                self._remove_index(staging_dir, artifacts)
        except PipelineError as exc:
            exc.stage = exc.stage or stage.value
            self.logger.error("Build failed during %s: %s", exc.stage, exc)
            raise

        elapsed = self._clock() - start
        self.logger.info(
            "Wrote %d file(s) for %d surface(s) in %.3fs",
            len(artifacts),
            len(surfaces),
            elapsed,
        )
        return BuildReport(
            target=self.config.target,
            surfaces=surfaces,
            artifacts=tuple(artifacts),
            manifest_source=manifest_directive.target_ref,
            stage=BuildStage.WRITTEN,
            elapsed=elapsed,
        )

    def plan(
        self, directives: Sequence[Directive], surfaces: Sequence[Surface], template: str
    ) -> List[SurfacePlan]:
        """Build one working set per surface.

        A surface whose own directive is excluded by its include filter is
        never rendered.
        """
        plans = []
        for surface in surfaces:
            applicable = filter_directives(directives, surface)
            if surface.directive is not None and surface.directive not in applicable:
                raise MalformedDirective(
                    f"{surface.directive.describe()}: include filter excludes its own surface {surface.id!r}"
                )
            self.logger.debug(
                "Surface %s: %d applicable directive(s)", surface.id, len(applicable)
            )
            plans.append(SurfacePlan(surface=surface, template=template))
        return plans

    def render_all(self, plans: Sequence[SurfacePlan]) -> List[RenderedArtifact]:
        """Render surfaces concurrently; results keep declaration order."""
        artifacts: List[RenderedArtifact] = []
        if not plans:
            return artifacts
        with ThreadPoolExecutor(max_workers=self.config.workers) as pool:
            for rendered in pool.map(self.render_surface, plans):
                artifacts.extend(rendered)
        return artifacts

    def render_surface(self, plan: SurfacePlan) -> Tuple[RenderedArtifact, ...]:
        surface = plan.surface
        soup = parse_html(plan.template)
        pruned = prune_scoped_elements(soup, surface.id)
        buffer = self.externalizer.externalize(soup, surface)
        if not buffer:
            raise MissingBootstrap(
                f"surface {surface.id!r} has no inline bundler script to externalize"
            )

        shim = self.injector.inject(buffer, surface)
        if surface.is_background:
            shim = self.wrapper.wrap(shim)
        self.logger.debug(
            "Rendered surface %s (%d scoped element(s) pruned)", surface.id, pruned
        )

        artifacts = [RenderedArtifact(path=surface.shim_path, content=shim.encode("utf-8"))]
        if surface.html_path is not None:
            self.cleaner.clean(soup)
            artifacts.insert(
                0, RenderedArtifact(path=surface.html_path, content=str(soup).encode("utf-8"))
            )
        return tuple(artifacts)

    def commit(self, staging_dir: Path, artifacts: Sequence[RenderedArtifact]) -> None:
        """Write every artifact to a temp file, then move them all into place.

        Files already present are moved aside first. If a move fails, every
        committed file is removed and the originals are put back.
        """
        targets = [(artifact, self._destination(staging_dir, artifact)) for artifact in artifacts]
        pending: Dict[Path, Path] = {}
        backups: Dict[Path, Path] = {}
        committed: List[Path] = []
        try:
            for artifact, destination in targets:
                temp = destination.with_name(destination.name + _TEMP_SUFFIX)
                destination.parent.mkdir(parents=True, exist_ok=True)
                temp.write_bytes(artifact.content)
                pending[temp] = destination
            for temp, destination in pending.items():
                if destination.exists():
                    backup = destination.with_name(destination.name + _BACKUP_SUFFIX)
                    os.replace(destination, backup)
                    backups[destination] = backup
                os.replace(temp, destination)
                committed.append(destination)
        except OSError as exc:
            self._roll_back(pending, committed, backups)
            raise IoFailure(f"cannot write output in {staging_dir}: {exc}") from exc
        for backup in backups.values():
            backup.unlink(missing_ok=True)
        for artifact in artifacts:
            self.logger.debug("Wrote %s (%d bytes)", artifact.path, len(artifact.content))

    def _roll_back(
        self, pending: Dict[Path, Path], committed: Sequence[Path], backups: Dict[Path, Path]
    ) -> None:
        for destination in committed:
            destination.unlink(missing_ok=True)
        for destination, backup in backups.items():
            try:
                os.replace(backup, destination)
            except OSError as exc:
                self.logger.error("Could not restore %s from %s: %s", destination, backup, exc)
        for temp in pending:
            temp.unlink(missing_ok=True)
        self.logger.warning(
            "Rolled back %d committed file(s) and restored %d original(s)",
            len(committed),
            len(backups),
        )

    @staticmethod
    def _destination(staging_dir: Path, artifact: RenderedArtifact) -> Path:
        destination = (staging_dir / artifact.path).resolve()
        if staging_dir != destination and staging_dir not in destination.parents:
            raise IoFailure(f"refusing to write {artifact.path!r} outside {staging_dir}")
        return destination

    def _read_index(self, staging_dir: Path) -> str:
        index_path = staging_dir / INDEX_HTML
        try:
            return index_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise IoFailure(f"cannot read bundler output {index_path}: {exc}") from exc

    def _target_label(self) -> str:
        return self.config.target.value if self.config.target else "default"

    def _remove_index(self, staging_dir: Path, artifacts: Sequence[RenderedArtifact]) -> None:
        if self.config.keep_index:
            return
        if any(artifact.path == INDEX_HTML for artifact in artifacts):
            return
        try:
            (staging_dir / INDEX_HTML).unlink()
        except OSError as exc:
            raise IoFailure(f"cannot remove {INDEX_HTML} from {staging_dir}: {exc}") from exc


__all__ = ["INDEX_HTML", "Pipeline", "SurfacePlan"]
