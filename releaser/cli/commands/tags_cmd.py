from __future__ import annotations

from pathlib import Path

import typer

from releaser.cli.commands._helpers import load_manifest, unwrap_or_exit
from releaser.cli.context import build_context
from releaser.core.errors import ErrorCode
from releaser.pipeline.gh import GhReleaseHost, ensure_gh_available
from releaser.pipeline.manifest import read_manifest
from releaser.pipeline.tags import GitRemoteTags, TagQuery, create_tag, is_released


def version(
    ctx: typer.Context,
    manifest: Path | None = typer.Option(
        None, "--manifest", help="Manifest to read (overrides the global --manifest)"
    ),
    tag: bool = typer.Option(False, "--tag", help="Print the release tag (v<version>)"),
) -> None:
    """Print the version declared in the project manifest."""
    cli = build_context(ctx.obj)
    if manifest is None:
        m = load_manifest(cli)
    else:
        m = unwrap_or_exit(read_manifest(cli.resolve(manifest)), cli)
    typer.echo(m.tag if tag else m.version)


def check_tag(
    ctx: typer.Context,
    remote: str | None = typer.Option(None, "--remote", help="Git remote to query"),
    repo: str | None = typer.Option(
        None, "--repo", help="Query GitHub (owner/name) instead of a git remote"
    ),
) -> None:
    """Print true if the current version is already released, false otherwise."""
    cli = build_context(ctx.obj)
    if remote is not None and repo is not None:
        cli.console.error("use either --remote or --repo, not both")
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))
    m = load_manifest(cli)

    if remote is None and repo is None:
        repo = cli.config.release.repo
    query: TagQuery
    if repo is not None:
        unwrap_or_exit(ensure_gh_available(), cli)
        query = GhReleaseHost(workspace_root=cli.workspace_root, repo=repo)
    else:
        query = GitRemoteTags(
            workspace_root=cli.workspace_root, remote=remote or cli.config.release.remote
        )

    released = unwrap_or_exit(is_released(m.version, query), cli)
    typer.echo("true" if released else "false")


def tag(
    ctx: typer.Context,
    remote: str | None = typer.Option(None, "--remote", help="Git remote to push the tag to"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Check only; do not tag or push"),
) -> None:
    """Create and push the annotated tag v<version> when it does not exist yet."""
    cli = build_context(ctx.obj)
    m = load_manifest(cli)
    tags = GitRemoteTags(
        workspace_root=cli.workspace_root, remote=remote or cli.config.release.remote
    )
    outcome = unwrap_or_exit(
        create_tag(tags=tags, version=m.version, console=cli.console, dry_run=dry_run), cli
    )
    typer.echo(outcome)
