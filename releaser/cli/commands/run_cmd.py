from __future__ import annotations

import typer

from releaser.cli.commands._helpers import load_manifest, selected_targets, unwrap_or_exit
from releaser.cli.context import build_context
from releaser.output.console import Style
from releaser.pipeline.build import Builder, CargoBuilder, PrebuiltBuilder
from releaser.pipeline.context import PipelineContext
from releaser.pipeline.gh import GhReleaseHost, ensure_gh_auth, ensure_gh_available, resolve_repo
from releaser.pipeline.runner import run_pipeline
from releaser.pipeline.tags import head_commit


def run(
    ctx: typer.Context,
    repo: str | None = typer.Option(None, "--repo", help="GitHub repository (owner/name)"),
    targets: list[str] | None = typer.Option(
        None, "--target", help="Restrict the build matrix (repeatable)"
    ),
    jobs: int | None = typer.Option(None, "--jobs", "-j", min=1, help="Parallel build units"),
    prebuilt: bool = typer.Option(
        False, "--prebuilt", help="Use binaries already in the target directory"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Stage assets but do not publish"),
) -> None:
    """Build, package and publish the current version unless already released."""
    cli = build_context(ctx.obj)
    m = load_manifest(cli)
    selected = selected_targets(cli, targets)

    unwrap_or_exit(ensure_gh_available(), cli)
    unwrap_or_exit(ensure_gh_auth(workspace_root=cli.workspace_root), cli)
    slug = repo or cli.config.release.repo
    if slug is None:
        slug = unwrap_or_exit(resolve_repo(workspace_root=cli.workspace_root), cli)

    bin_name = cli.config.package.bin_name or m.name
    builder: Builder
    if prebuilt:
        builder = PrebuiltBuilder(target_dir=cli.target_dir, bin_name=bin_name)
    else:
        builder = CargoBuilder(
            workspace_root=cli.workspace_root, target_dir=cli.target_dir, bin_name=bin_name
        )

    pctx = PipelineContext(
        manifest=m,
        targets=selected,
        workspace_root=cli.workspace_root,
        target_dir=cli.target_dir,
        out_dir=cli.out_dir,
        bin_name=bin_name,
        repo=slug,
        commit=head_commit(cli.workspace_root),
    )
    cli.console.print(f"repo: {slug}", Style.DIM)

    outcome = unwrap_or_exit(
        run_pipeline(
            pctx,
            host=GhReleaseHost(workspace_root=cli.workspace_root, repo=slug),
            builder=builder,
            console=cli.console,
            jobs=jobs or cli.config.build.jobs,
            dry_run=dry_run,
        ),
        cli,
    )
    typer.echo(f"{outcome.status} {outcome.tag}")
