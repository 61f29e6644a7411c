from __future__ import annotations

from pathlib import Path

import typer

from releaser.cli.commands._helpers import fail, load_manifest, selected_targets, unwrap_or_exit
from releaser.cli.context import build_context
from releaser.core.errors import ErrorCode
from releaser.pipeline.build import BuildArtifact, expected_binary
from releaser.pipeline.context import PipelineContext
from releaser.pipeline.deb import ControlFile, write_control
from releaser.pipeline.errors import MalformedManifest
from releaser.pipeline.manifest import read_manifest
from releaser.pipeline.packaging import package_family, parse_family
from releaser.pipeline.recipe import recipe_for_manifest, render_recipe
from releaser.pipeline.targets import PlatformFamily

_VARIANTS = ("fixed", "rolling")


def control(
    ctx: typer.Context,
    manifest: Path = typer.Argument(..., help="Cargo.toml to read"),
    arch: str = typer.Argument(..., help="Debian architecture (amd64, arm64)"),
    out_dir: Path | None = typer.Argument(
        None, help="Package root; DEBIAN/control is written below it (default: cwd)"
    ),
) -> None:
    """Write a DEBIAN/control file for the manifest."""
    cli = build_context(ctx.obj)
    m = unwrap_or_exit(read_manifest(manifest), cli)
    path = write_control(ControlFile.for_manifest(m, arch), out_dir or Path.cwd())
    cli.console.success(str(path))


def recipe(
    ctx: typer.Context,
    variant: str = typer.Option("fixed", "--variant", help="Variant: fixed|rolling"),
    out: Path | None = typer.Option(None, "--out", help="Write here instead of stdout"),
) -> None:
    """Render the Arch Linux build recipe (PKGBUILD)."""
    cli = build_context(ctx.obj)
    if variant not in _VARIANTS:
        cli.console.error(f"unknown recipe variant: {variant!r} (expected fixed|rolling)")
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    m = load_manifest(cli)
    linux = [t for t in selected_targets(cli, None) if PlatformFamily.ARCH.accepts(t)]
    try:
        slots = recipe_for_manifest(
            m,
            variant="fixed" if variant == "fixed" else "rolling",
            arches=tuple(t.arch for t in linux),
            binary=cli.config.package.bin_name,
        )
    except ValueError as e:
        fail(MalformedManifest(source=str(cli.manifest_path), reason=str(e)), cli)

    text = render_recipe(slots)
    if out is None:
        typer.echo(text, nl=False)
        return
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(text, encoding="utf-8")
    cli.console.success(str(out))


def package(
    ctx: typer.Context,
    family: str = typer.Argument(..., help="Platform family: debian|arch|windows|macos|archive"),
    target_dir: Path | None = typer.Option(
        None, "--target-dir", envvar="RELEASER_TARGET_DIR", help="Cargo target directory"
    ),
    out: Path | None = typer.Option(
        None, "--out", envvar="RELEASER_OUT_DIR", help="Output directory"
    ),
    bin_name: str | None = typer.Option(
        None, "--bin-name", envvar="RELEASER_BIN_NAME", help="Binary name (default: package)"
    ),
    targets: list[str] | None = typer.Option(
        None,
        "--target",
        envvar="RELEASER_TARGET",
        help="Target triple to package (repeatable; whitespace-separated in the environment)",
    ),
) -> None:
    """Package already built binaries for one platform family."""
    cli = build_context(ctx.obj)
    selected_family = unwrap_or_exit(parse_family(family), cli)
    m = load_manifest(cli)

    name = bin_name or cli.config.package.bin_name or m.name
    tdir = cli.resolve(target_dir) if target_dir is not None else cli.target_dir
    selected = selected_targets(cli, targets)
    pctx = PipelineContext(
        manifest=m,
        targets=selected,
        workspace_root=cli.workspace_root,
        target_dir=tdir,
        out_dir=cli.resolve(out) if out is not None else cli.out_dir,
        bin_name=name,
        builds=tuple(
            BuildArtifact(target=t, path=expected_binary(tdir, t, name)) for t in selected
        ),
    )
    if not pctx.targets_for(selected_family):
        cli.console.warning(f"no {selected_family.value} targets selected; nothing to package")
        return

    packages = unwrap_or_exit(package_family(selected_family, pctx), cli)
    for p in packages:
        cli.console.success(f"{selected_family.value}/{p.arch}: {p.path}")
