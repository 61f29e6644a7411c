"""Arch Linux build recipes (PKGBUILD).

A recipe is data: ``RecipeSlots`` holds every value that differs between
projects and variants, and ``render_recipe`` is the one function that turns
it into text.

Two variants exist:

- ``fixed``: builds the tagged release (``#tag=v<version>``).
- ``rolling``: builds the default branch; the version is computed at build
  time from ``git describe``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from releaser.pipeline.manifest import Manifest

__all__ = ["RecipeSlots", "VersionStrategy", "recipe_for_manifest", "render_recipe"]

VersionStrategy = Literal["fixed", "rolling"]


@dataclass(frozen=True, slots=True)
class RecipeSlots:
    pkgname: str
    pkgver: str
    pkgdesc: str
    maintainer: str
    url: str
    license: str
    source_url: str  # git clone URL of the project
    version_strategy: VersionStrategy
    arches: tuple[str, ...]
    binary: str
    pkgrel: int = 1

    @property
    def checkout_dir(self) -> str:
        return self.binary

    @property
    def source(self) -> str:
        if self.version_strategy == "fixed":
            return f"git+{self.source_url}#tag=v{self.pkgver}"
        return f"git+{self.source_url}"


def recipe_for_manifest(
    manifest: Manifest,
    *,
    variant: VersionStrategy,
    arches: tuple[str, ...],
    binary: str | None = None,
) -> RecipeSlots:
    """Fill recipe slots from the manifest.

    Raises:
        ValueError: The manifest has no ``repository`` to build from.
    """
    if manifest.repository is None:
        raise ValueError("manifest has no repository URL; a build recipe needs one")
    source_url = manifest.repository.removesuffix("/")
    if not source_url.endswith(".git"):
        source_url += ".git"

    pkgname = manifest.name if variant == "fixed" else f"{manifest.name}-git"
    return RecipeSlots(
        pkgname=pkgname,
        pkgver=manifest.version,
        pkgdesc=manifest.description,
        maintainer=manifest.maintainer,
        url=manifest.homepage or manifest.repository,
        license=manifest.license or "custom",
        source_url=source_url,
        version_strategy=variant,
        arches=arches,
        binary=binary or manifest.name,
    )


def _quote(value: str) -> str:
    # Single-quoted bash words cannot contain a bare single quote.
    return "'" + value.replace("'", "'\"'\"'") + "'"


def render_recipe(slots: RecipeSlots) -> str:
    arches = " ".join(_quote(a) for a in slots.arches)
    lines = [
        f"# Maintainer: {slots.maintainer}",
        "",
        f"pkgname={slots.pkgname}",
        f"pkgver={slots.pkgver}",
        f"pkgrel={slots.pkgrel}",
        f"pkgdesc={_quote(slots.pkgdesc)}",
        f"url={_quote(slots.url)}",
        f"license=({_quote(slots.license)})",
        f"arch=({arches})",
        "makedepends=('cargo' 'git')",
    ]
    if slots.version_strategy == "rolling":
        base = slots.pkgname.removesuffix("-git")
        lines.append(f"provides=({_quote(base)})")
        lines.append(f"conflicts=({_quote(base)})")
    lines += [
        f'source=("{slots.checkout_dir}::{slots.source}")',
        "sha256sums=('SKIP')",
        "",
    ]
    if slots.version_strategy == "rolling":
        lines += [
            "pkgver() {",
            f'    cd "$srcdir/{slots.checkout_dir}"',
            "    git describe --long --abbrev=7 | sed 's/^v//;s/\\([^-]*-g\\)/r\\1/;s/-/./g'",
            "}",
            "",
        ]
    lines += [
        "prepare() {",
        f'    cd "$srcdir/{slots.checkout_dir}"',
        "    export RUSTUP_TOOLCHAIN=stable",
        '    cargo fetch --locked --target "$CARCH-unknown-linux-gnu"',
        "}",
        "",
        "build() {",
        f'    cd "$srcdir/{slots.checkout_dir}"',
        "    export RUSTUP_TOOLCHAIN=stable",
        "    export CARGO_TARGET_DIR=target",
        "    cargo build --frozen --release",
        "}",
        "",
        "check() {",
        f'    cd "$srcdir/{slots.checkout_dir}"',
        "    export RUSTUP_TOOLCHAIN=stable",
        "    cargo test --frozen",
        "}",
        "",
        "package() {",
        f'    install -Dm0755 -t "$pkgdir/usr/bin/" '
        f'"$srcdir/{slots.checkout_dir}/target/release/{slots.binary}"',
        "}",
    ]
    return "\n".join(lines) + "\n"
