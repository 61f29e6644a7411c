from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer

from releaser.core.config import CONFIG_FILE_NAME, Config, load_config_or_default
from releaser.core.errors import ErrorCode
from releaser.core.result import Err
from releaser.output.console import ConsoleProtocol, RichConsole


@dataclass(frozen=True, slots=True)
class GlobalOptions:
    """Options given before the subcommand name."""

    workspace: Path | None = None
    config: Path | None = None
    manifest: Path | None = None


@dataclass(frozen=True, slots=True)
class CLIContext:
    workspace_root: Path
    config: Config
    manifest_path: Path
    console: ConsoleProtocol

    def resolve(self, path: str | Path) -> Path:
        """Anchor a relative path at the workspace root."""
        p = Path(path).expanduser()
        return p if p.is_absolute() else self.workspace_root / p

    @property
    def target_dir(self) -> Path:
        return self.resolve(self.config.release.target_dir)

    @property
    def out_dir(self) -> Path:
        return self.resolve(self.config.release.out_dir)


def build_context(options: GlobalOptions | None = None) -> CLIContext:
    options = options or GlobalOptions()

    try:
        root = (options.workspace or Path.cwd()).expanduser().resolve()
    except OSError as e:
        typer.echo(f"error: invalid --workspace: {e}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))
    if not root.is_dir():
        typer.echo(f"error: workspace '{root}' is not a directory", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    config_path = options.config or root / CONFIG_FILE_NAME
    if options.config is not None and not config_path.is_file():
        typer.echo(f"error: config file not found: {config_path}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    config_result = load_config_or_default(config_path)
    if isinstance(config_result, Err):
        typer.echo(f"error: {config_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))
    config = config_result.value

    manifest = options.manifest or Path(config.release.manifest)
    manifest_path = manifest if manifest.is_absolute() else root / manifest

    return CLIContext(
        workspace_root=root,
        config=config,
        manifest_path=manifest_path,
        console=RichConsole(),
    )
