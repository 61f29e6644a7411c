"""Error variants for every pipeline stage.

Each variant names the stage it comes from; ``releaser.output.errors`` turns
them into console messages and exit codes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from releaser.pipeline.targets import PlatformFamily, Target

Stage = Literal["manifest", "config", "tag-gate", "build", "package", "aggregate", "publish"]


@dataclass(frozen=True, slots=True)
class MalformedManifest:
    source: str
    reason: str
    stage: Stage = "manifest"


@dataclass(frozen=True, slots=True)
class ConfigInvalid:
    message: str
    stage: Stage = "config"


@dataclass(frozen=True, slots=True)
class UnknownTarget:
    triple: str
    known: tuple[str, ...]
    stage: Stage = "config"


@dataclass(frozen=True, slots=True)
class UnknownPlatformFamily:
    selector: str
    stage: Stage = "package"

    @property
    def known(self) -> tuple[str, ...]:
        return tuple(f.value for f in PlatformFamily)


@dataclass(frozen=True, slots=True)
class ToolMissing:
    tool: str
    hint: str
    stage: Stage = "config"


@dataclass(frozen=True, slots=True)
class TagQueryFailed:
    tag: str
    reason: str
    stage: Stage = "tag-gate"


@dataclass(frozen=True, slots=True)
class BuildFailure:
    """One matrix unit that did not produce its binary."""

    target: Target
    reason: str


@dataclass(frozen=True, slots=True)
class PartialBuildFailure:
    failures: tuple[BuildFailure, ...]
    requested: int
    stage: Stage = "build"

    @property
    def failed_targets(self) -> tuple[Target, ...]:
        return tuple(f.target for f in self.failures)


@dataclass(frozen=True, slots=True)
class PackagingError:
    family: PlatformFamily
    missing: str  # target triple, architecture or file that was expected
    reason: str
    stage: Stage = "package"


@dataclass(frozen=True, slots=True)
class DuplicateArtifactKey:
    family: PlatformFamily
    arch: str
    first: str
    second: str
    stage: Stage = "aggregate"


@dataclass(frozen=True, slots=True)
class StagingFailed:
    path: str
    reason: str
    stage: Stage = "aggregate"


@dataclass(frozen=True, slots=True)
class PublishFailed:
    tag: str
    reason: str
    stage: Stage = "publish"


PipelineError = (
    MalformedManifest
    | ConfigInvalid
    | UnknownTarget
    | UnknownPlatformFamily
    | ToolMissing
    | TagQueryFailed
    | PartialBuildFailure
    | PackagingError
    | DuplicateArtifactKey
    | StagingFailed
    | PublishFailed
)
