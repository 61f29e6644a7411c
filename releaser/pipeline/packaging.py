"""Per-platform packaging strategies.

- debian: one ``.deb`` per Linux target
- arch: one build recipe covering every Linux target
- windows: the ``.exe`` copied under ``win/<arch>/``
- macos: the binary copied under ``apple/<arch>/``
- archive: one ``<name>-<triple>.tar.gz`` per Linux or macOS target

Each strategy checks that every target of its family was built before it
writes anything, and fails naming the missing input rather than emitting a
partial package set.
"""

from __future__ import annotations

import shutil
from typing import assert_never

from releaser.core.result import Err, Ok, Result
from releaser.output.console import ConsoleProtocol
from releaser.pipeline.aggregate import PackageArtifact, PackageFormat
from releaser.pipeline.build import BuildArtifact
from releaser.pipeline.context import PipelineContext
from releaser.pipeline.deb import ControlFile, write_control, write_deb, write_tar_gz
from releaser.pipeline.errors import PackagingError, UnknownPlatformFamily
from releaser.pipeline.recipe import recipe_for_manifest, render_recipe
from releaser.pipeline.targets import DEBIAN_ARCH, PlatformFamily, Target

__all__ = [
    "archive_file_name",
    "deb_file_name",
    "package_all",
    "package_family",
    "parse_family",
]

PackageResult = Result[tuple[PackageArtifact, ...], PackagingError]


def parse_family(selector: str) -> Result[PlatformFamily, UnknownPlatformFamily]:
    try:
        return Ok(PlatformFamily(selector.strip().lower()))
    except ValueError:
        return Err(UnknownPlatformFamily(selector=selector))


def deb_file_name(name: str, version: str, arch: str) -> str:
    return f"{name}-{version}-{arch}-linux.deb"


def _require_builds(
    family: PlatformFamily, ctx: PipelineContext
) -> Result[tuple[tuple[Target, BuildArtifact], ...], PackagingError]:
    pairs: list[tuple[Target, BuildArtifact]] = []
    for target in ctx.targets_for(family):
        build = ctx.build_for(target)
        if build is None:
            return Err(
                PackagingError(
                    family=family,
                    missing=target.triple,
                    reason="no build artifact for requested target",
                )
            )
        if not build.path.is_file():
            return Err(
                PackagingError(
                    family=family, missing=target.triple, reason=f"binary not found: {build.path}"
                )
            )
        pairs.append((target, build))
    return Ok(tuple(pairs))


def _package_debian(ctx: PipelineContext) -> PackageResult:
    inputs = _require_builds(PlatformFamily.DEBIAN, ctx)
    if isinstance(inputs, Err):
        return inputs

    for target, _ in inputs.value:
        if target.arch not in DEBIAN_ARCH:
            return Err(
                PackagingError(
                    family=PlatformFamily.DEBIAN,
                    missing=target.arch,
                    reason=f"no Debian architecture mapping for {target.triple}",
                )
            )

    manifest = ctx.manifest
    out_dir = ctx.out_dir / "debian"
    packages: list[PackageArtifact] = []
    for target, build in inputs.value:
        deb_name = deb_file_name(manifest.name, manifest.version, target.arch)
        root = out_dir / deb_name.removesuffix(".deb")
        if root.exists():
            shutil.rmtree(root)

        write_control(ControlFile.for_manifest(manifest, DEBIAN_ARCH[target.arch]), root)
        bin_path = root / "usr" / "bin" / ctx.bin_name
        bin_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(build.path, bin_path)
        bin_path.chmod(0o755)

        deb = write_deb(root, out_dir / deb_name)
        packages.append(
            PackageArtifact(
                family=PlatformFamily.DEBIAN,
                arch=target.arch,
                format=PackageFormat.DEB,
                path=deb,
            )
        )
    return Ok(tuple(packages))


def _package_arch(ctx: PipelineContext) -> PackageResult:
    inputs = _require_builds(PlatformFamily.ARCH, ctx)
    if isinstance(inputs, Err):
        return inputs
    if not inputs.value:
        return Ok(())

    try:
        slots = recipe_for_manifest(
            ctx.manifest,
            variant="fixed",
            arches=tuple(t.arch for t, _ in inputs.value),
            binary=ctx.bin_name,
        )
    except ValueError as e:
        return Err(
            PackagingError(family=PlatformFamily.ARCH, missing="repository", reason=str(e))
        )

    path = ctx.out_dir / "arch" / "PKGBUILD"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_recipe(slots), encoding="utf-8")
    return Ok(
        (
            PackageArtifact(
                family=PlatformFamily.ARCH, arch="any", format=PackageFormat.PKGBUILD, path=path
            ),
        )
    )


def _passthrough(
    ctx: PipelineContext, family: PlatformFamily, subdir: str, fmt: PackageFormat
) -> PackageResult:
    inputs = _require_builds(family, ctx)
    if isinstance(inputs, Err):
        return inputs

    packages: list[PackageArtifact] = []
    for target, build in inputs.value:
        dest = ctx.out_dir / subdir / target.arch / build.path.name
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(build.path, dest)
        packages.append(PackageArtifact(family=family, arch=target.arch, format=fmt, path=dest))
    return Ok(tuple(packages))


def archive_file_name(name: str, triple: str) -> str:
    return f"{name}-{triple}.tar.gz"


def _package_archive(ctx: PipelineContext) -> PackageResult:
    inputs = _require_builds(PlatformFamily.ARCHIVE, ctx)
    if isinstance(inputs, Err):
        return inputs

    out_dir = ctx.out_dir / "archive"
    packages: list[PackageArtifact] = []
    for target, build in inputs.value:
        archive_name = archive_file_name(ctx.manifest.name, target.triple)
        root = out_dir / archive_name.removesuffix(".tar.gz")
        if root.exists():
            shutil.rmtree(root)

        bin_path = root / "usr" / "bin" / ctx.bin_name
        bin_path.parent.mkdir(parents=True)
        shutil.copyfile(build.path, bin_path)
        bin_path.chmod(0o755)

        archive = write_tar_gz(root, out_dir / archive_name)
        packages.append(
            PackageArtifact(
                family=PlatformFamily.ARCHIVE,
                arch=target.triple,
                format=PackageFormat.TAR_GZ,
                path=archive,
            )
        )
    return Ok(tuple(packages))


def package_family(family: PlatformFamily, ctx: PipelineContext) -> PackageResult:
    """Run the packaging strategy for ``family`` over the context's builds."""
    try:
        match family:
            case PlatformFamily.DEBIAN:
                return _package_debian(ctx)
            case PlatformFamily.ARCH:
                return _package_arch(ctx)
            case PlatformFamily.WINDOWS:
                return _passthrough(ctx, family, "win", PackageFormat.EXE)
            case PlatformFamily.MACOS:
                return _passthrough(ctx, family, "apple", PackageFormat.BINARY)
            case PlatformFamily.ARCHIVE:
                return _package_archive(ctx)
            case _:
                assert_never(family)
    except OSError as e:
        return Err(
            PackagingError(
                family=family,
                missing=str(e.filename or ctx.out_dir),
                reason=e.strerror or str(e),
            )
        )


def package_all(
    ctx: PipelineContext,
    *,
    console: ConsoleProtocol,
    families: tuple[PlatformFamily, ...] = tuple(PlatformFamily),
) -> Result[PipelineContext, PackagingError]:
    """Package every family in turn; the first failure stops the run."""
    for family in families:
        result = package_family(family, ctx)
        if isinstance(result, Err):
            return result
        for package in result.value:
            console.success(f"{family.value}/{package.arch}: {package.path.name}")
        ctx = ctx.with_packages(result.value)
    return Ok(ctx)
