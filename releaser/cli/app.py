from __future__ import annotations

from pathlib import Path

import typer

from releaser import __version__
from releaser.cli.commands.package_cmd import control, package, recipe
from releaser.cli.commands.run_cmd import run
from releaser.cli.commands.tags_cmd import check_tag, tag
from releaser.cli.commands.tags_cmd import version as version_cmd
from releaser.cli.context import GlobalOptions


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Commands
app.command("version")(version_cmd)
app.command("check-tag")(check_tag)
app.command()(tag)
app.command()(control)
app.command()(recipe)
app.command()(package)
app.command()(run)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    config: Path | None = typer.Option(
        None, "--config", help="Config file (default: <workspace>/releaser.toml)"
    ),
    manifest: Path | None = typer.Option(
        None, "--manifest", help="Project manifest (default: <workspace>/Cargo.toml)"
    ),
    workspace: Path | None = typer.Option(
        None, "--workspace", help="Project root (default: current directory)"
    ),
) -> None:
    ctx.obj = GlobalOptions(workspace=workspace, config=config, manifest=manifest)


def main() -> None:
    app()
