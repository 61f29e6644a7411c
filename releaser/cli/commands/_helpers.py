"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn, TypeVar

import typer

from releaser.core.result import Err, Result
from releaser.output.errors import pipeline_error_exit_code, print_pipeline_error
from releaser.pipeline.build import select_targets
from releaser.pipeline.errors import PipelineError
from releaser.pipeline.manifest import Manifest, read_manifest
from releaser.pipeline.targets import Target

if TYPE_CHECKING:
    from releaser.cli.context import CLIContext

T = TypeVar("T")


def unwrap_or_exit(result: Result[T, PipelineError], ctx: CLIContext) -> T:
    """Return the Ok value, or print the error and exit with its code.

    Replaces the common pattern:
        if isinstance(result, Err):
            print_pipeline_error(result.error, ctx.console)
            raise typer.Exit(code=pipeline_error_exit_code(result.error))
        value = result.value
    """
    if isinstance(result, Err):
        fail(result.error, ctx)
    return result.value


def fail(error: PipelineError, ctx: CLIContext) -> NoReturn:
    print_pipeline_error(error, ctx.console)
    raise typer.Exit(code=pipeline_error_exit_code(error))


def selected_targets(ctx: CLIContext, triples: list[str] | None) -> tuple[Target, ...]:
    """Targets named on the command line, else in the config, else the full matrix."""
    requested = tuple(triples) if triples else ctx.config.build.targets
    return unwrap_or_exit(select_targets(requested), ctx)


def load_manifest(ctx: CLIContext) -> Manifest:
    return unwrap_or_exit(read_manifest(ctx.manifest_path), ctx)
