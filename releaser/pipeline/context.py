"""Immutable value passed from stage to stage.

Stages never communicate through process environment or filesystem layout:
what was requested, what was built and what was packaged all travel in a
``PipelineContext``. Each stage returns a new context instead of mutating one.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path

from releaser.pipeline.aggregate import PackageArtifact
from releaser.pipeline.build import BuildArtifact
from releaser.pipeline.manifest import Manifest
from releaser.pipeline.targets import PlatformFamily, Target

__all__ = ["PipelineContext"]


@dataclass(frozen=True, slots=True)
class PipelineContext:
    manifest: Manifest
    targets: tuple[Target, ...]
    workspace_root: Path
    target_dir: Path
    out_dir: Path
    bin_name: str
    repo: str | None = None
    commit: str | None = None
    builds: tuple[BuildArtifact, ...] = ()
    packages: tuple[PackageArtifact, ...] = ()

    @property
    def tag(self) -> str:
        return self.manifest.tag

    @property
    def release_dir(self) -> Path:
        return self.out_dir / "release"

    def with_builds(self, builds: tuple[BuildArtifact, ...]) -> PipelineContext:
        return replace(self, builds=builds)

    def with_packages(self, packages: tuple[PackageArtifact, ...]) -> PipelineContext:
        return replace(self, packages=self.packages + packages)

    def targets_for(self, family: PlatformFamily) -> tuple[Target, ...]:
        return tuple(t for t in self.targets if family.accepts(t))

    def build_for(self, target: Target) -> BuildArtifact | None:
        for artifact in self.builds:
            if artifact.target == target:
                return artifact
        return None
