"""End-to-end release pipeline.

    tag gate -> build matrix -> packaging -> aggregation -> tag re-check + publish

Stages run strictly in this order; each one starts only after the previous
one produced its complete output. The early tag gate makes a run for an
already released version a no-op that dispatches no build at all.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from releaser.core.result import Err, Ok, Result
from releaser.output.console import ConsoleProtocol
from releaser.pipeline.aggregate import ArtifactSet, aggregate, stage_release_assets
from releaser.pipeline.build import Builder, run_build_matrix
from releaser.pipeline.context import PipelineContext
from releaser.pipeline.errors import PipelineError, StagingFailed
from releaser.pipeline.gh import ReleaseRequest
from releaser.pipeline.notes import release_title, render_release_notes
from releaser.pipeline.packaging import package_all
from releaser.pipeline.publish import ReleaseHost, publish
from releaser.pipeline.tags import is_released

__all__ = ["PipelineOutcome", "RunStatus", "run_pipeline"]

RunStatus = Literal["skipped", "published", "already_released", "dry_run"]


@dataclass(frozen=True, slots=True)
class PipelineOutcome:
    status: RunStatus
    tag: str
    assets: tuple[Path, ...] = ()
    artifact_set: ArtifactSet | None = None


def run_pipeline(
    ctx: PipelineContext,
    *,
    host: ReleaseHost,
    builder: Builder,
    console: ConsoleProtocol,
    jobs: int | None = None,
    dry_run: bool = False,
) -> Result[PipelineOutcome, PipelineError]:
    manifest = ctx.manifest
    console.header(f"{manifest.name} {ctx.tag}")

    released = is_released(manifest.version, host)
    if isinstance(released, Err):
        return released
    if released.value:
        console.info(f"{ctx.tag} already exists; no new version, nothing to do")
        return Ok(PipelineOutcome(status="skipped", tag=ctx.tag))

    console.header(f"Build ({len(ctx.targets)} targets)")
    built = run_build_matrix(ctx.targets, builder, console=console, jobs=jobs)
    if isinstance(built, Err):
        return built
    ctx = ctx.with_builds(built.value)

    console.header("Package")
    packaged = package_all(ctx, console=console)
    if isinstance(packaged, Err):
        return packaged
    ctx = packaged.value

    merged = aggregate(ctx.packages)
    if isinstance(merged, Err):
        return merged
    artifact_set = merged.value

    try:
        staged = stage_release_assets(artifact_set, manifest, ctx.release_dir)
    except OSError as e:
        return Err(
            StagingFailed(path=str(e.filename or ctx.release_dir), reason=e.strerror or str(e))
        )
    console.success(f"staged {len(staged.assets)} assets in {ctx.release_dir}")

    request = ReleaseRequest(
        tag=ctx.tag,
        title=release_title(manifest),
        notes=render_release_notes(manifest, artifact_set),
        assets=staged.files,
        target_commitish=ctx.commit,
    )

    console.header("Publish")
    if dry_run:
        console.info(f"dry-run: would publish {request.title} with {len(request.assets)} files")
        return Ok(
            PipelineOutcome(
                status="dry_run", tag=ctx.tag, assets=staged.files, artifact_set=artifact_set
            )
        )

    outcome = publish(host, request, console=console)
    if isinstance(outcome, Err):
        return outcome
    return Ok(
        PipelineOutcome(
            status=outcome.value, tag=ctx.tag, assets=staged.files, artifact_set=artifact_set
        )
    )
