"""Error presentation utilities.

Centralized error formatting and exit code mapping: every fatal pipeline
condition prints the failing stage and the target or platform involved, and
exits non-zero.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from releaser.core.errors import ErrorCode
from releaser.output.console import Style
from releaser.pipeline.errors import (
    ConfigInvalid,
    DuplicateArtifactKey,
    MalformedManifest,
    PackagingError,
    PartialBuildFailure,
    PipelineError,
    PublishFailed,
    StagingFailed,
    TagQueryFailed,
    ToolMissing,
    UnknownPlatformFamily,
    UnknownTarget,
)

if TYPE_CHECKING:
    from releaser.output.console import ConsoleProtocol

__all__ = ["print_pipeline_error", "pipeline_error_exit_code"]


def print_pipeline_error(error: PipelineError, console: ConsoleProtocol) -> None:
    """Print a pipeline error to console with appropriate formatting."""
    prefix = f"[{error.stage}]"
    match error:
        case MalformedManifest(source=source, reason=reason):
            console.error(f"{prefix} malformed manifest {source}: {reason}")
        case ConfigInvalid(message=message):
            console.error(f"{prefix} {message}")
        case UnknownTarget(triple=triple, known=known):
            console.error(f"{prefix} unknown target: {triple}")
            console.print(f"Available: {', '.join(known)}", Style.DIM)
        case UnknownPlatformFamily(selector=selector):
            console.error(f"{prefix} unknown platform family: {selector!r}")
            console.print(f"Available: {', '.join(error.known)}", Style.DIM)
        case ToolMissing(tool=tool, hint=hint):
            console.error(f"{prefix} {tool}: missing")
            console.print(f"hint: {hint}", Style.DIM)
        case TagQueryFailed(tag=tag, reason=reason):
            console.error(f"{prefix} cannot tell whether {tag} exists: {reason}")
        case PartialBuildFailure(failures=failures, requested=requested):
            console.error(f"{prefix} {len(failures)} of {requested} targets failed to build")
            for failure in failures:
                console.print(f"  {failure.target.triple}: {failure.reason}", Style.DIM)
        case PackagingError(family=family, missing=missing, reason=reason):
            console.error(f"{prefix} {family.value}: {missing}: {reason}")
        case DuplicateArtifactKey(family=family, arch=arch, first=first, second=second):
            console.error(f"{prefix} duplicate artifact for {family.value}/{arch}")
            console.print(f"  {first}", Style.DIM)
            console.print(f"  {second}", Style.DIM)
        case StagingFailed(path=path, reason=reason):
            console.error(f"{prefix} cannot stage {path}: {reason}")
        case PublishFailed(tag=tag, reason=reason):
            console.error(f"{prefix} {tag}: {reason}")


def pipeline_error_exit_code(error: PipelineError) -> int:
    match error:
        case MalformedManifest() | ConfigInvalid() | UnknownTarget() | UnknownPlatformFamily():
            return int(ErrorCode.USER_ERROR)
        case ToolMissing():
            return int(ErrorCode.ENV_ERROR)
        case PartialBuildFailure():
            return int(ErrorCode.BUILD_ERROR)
        case TagQueryFailed() | PublishFailed():
            return int(ErrorCode.NETWORK_ERROR)
        case StagingFailed():
            return int(ErrorCode.IO_ERROR)
        case PackagingError() | DuplicateArtifactKey():
            return int(ErrorCode.PACKAGING_ERROR)
