from __future__ import annotations

import pytest

from releaser.pipeline.manifest import Manifest
from releaser.pipeline.recipe import recipe_for_manifest, render_recipe

TPI = Manifest(
    name="tpi",
    version="1.0.7",
    authors=("Sven Rademakers <sven@turingpi.com>",),
    description="Official Turing-Pi2 CLI tool",
    homepage="https://turingpi.com/",
    repository="https://github.com/turing-machines/tpi",
    license="Apache-2.0",
)


class TestRecipeForManifest:
    def test_fixed_slots(self) -> None:
        slots = recipe_for_manifest(TPI, variant="fixed", arches=("aarch64", "x86_64"))

        assert slots.pkgname == "tpi"
        assert slots.pkgver == "1.0.7"
        assert slots.source == "git+https://github.com/turing-machines/tpi.git#tag=v1.0.7"
        assert slots.url == "https://turingpi.com/"
        assert slots.binary == "tpi"

    def test_rolling_slots(self) -> None:
        slots = recipe_for_manifest(TPI, variant="rolling", arches=("x86_64",))

        assert slots.pkgname == "tpi-git"
        assert slots.source == "git+https://github.com/turing-machines/tpi.git"

    def test_requires_repository(self) -> None:
        bare = Manifest(name="x", version="0.1.0", authors=("a",), description="d")
        with pytest.raises(ValueError, match="no repository"):
            recipe_for_manifest(bare, variant="fixed", arches=("x86_64",))

    def test_license_defaults_to_custom(self) -> None:
        m = Manifest(
            name="x", version="0.1.0", authors=("a",), description="d", repository="https://h/x"
        )
        slots = recipe_for_manifest(m, variant="fixed", arches=("x86_64",))
        assert slots.license == "custom"
        assert slots.url == "https://h/x"


class TestRenderRecipe:
    def test_fixed(self) -> None:
        text = render_recipe(
            recipe_for_manifest(TPI, variant="fixed", arches=("aarch64", "x86_64"))
        )

        assert text.startswith("# Maintainer: Sven Rademakers <sven@turingpi.com>\n")
        assert "pkgname=tpi\n" in text
        assert "pkgver=1.0.7\n" in text
        assert "pkgrel=1\n" in text
        assert "pkgdesc='Official Turing-Pi2 CLI tool'\n" in text
        assert "arch=('aarch64' 'x86_64')\n" in text
        assert "license=('Apache-2.0')\n" in text
        assert 'source=("tpi::git+https://github.com/turing-machines/tpi.git#tag=v1.0.7")' in text
        assert "sha256sums=('SKIP')" in text
        assert "cargo fetch --locked" in text
        assert "cargo build --frozen --release" in text
        assert "cargo test --frozen" in text
        assert 'install -Dm0755 -t "$pkgdir/usr/bin/" "$srcdir/tpi/target/release/tpi"' in text
        assert "pkgver()" not in text
        assert "provides=" not in text

    def test_rolling(self) -> None:
        text = render_recipe(recipe_for_manifest(TPI, variant="rolling", arches=("x86_64",)))

        assert "pkgname=tpi-git\n" in text
        assert "provides=('tpi')\n" in text
        assert "conflicts=('tpi')\n" in text
        assert 'source=("tpi::git+https://github.com/turing-machines/tpi.git")' in text
        assert "pkgver() {" in text
        assert "git describe --long --abbrev=7" in text

    def test_quotes_description(self) -> None:
        m = Manifest(
            name="x",
            version="0.1.0",
            authors=("a",),
            description="it's fine",
            repository="https://h/x",
        )
        text = render_recipe(recipe_for_manifest(m, variant="fixed", arches=("x86_64",)))
        assert "pkgdesc='it'\"'\"'s fine'\n" in text
