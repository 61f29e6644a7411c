from __future__ import annotations

import stat
import tarfile
from pathlib import Path

from releaser.core.result import Err, Ok
from releaser.output.console import MockConsole
from releaser.pipeline.aggregate import PackageFormat
from releaser.pipeline.build import BuildArtifact, expected_binary
from releaser.pipeline.context import PipelineContext
from releaser.pipeline.manifest import Manifest
from releaser.pipeline.packaging import (
    archive_file_name,
    deb_file_name,
    package_all,
    package_family,
    parse_family,
)
from releaser.pipeline.targets import TARGETS, PlatformFamily, Target

TPI = Manifest(
    name="tpi",
    version="1.0.7",
    authors=("Sven Rademakers <sven@turingpi.com>",),
    description="Official Turing-Pi2 CLI tool",
    repository="https://github.com/turing-machines/tpi",
)


def _context(
    tmp_path: Path, targets: tuple[Target, ...] = TARGETS, *, built: bool = True
) -> PipelineContext:
    target_dir = tmp_path / "target"
    builds: list[BuildArtifact] = []
    for target in targets:
        path = expected_binary(target_dir, target, "tpi")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(target.triple.encode())
        if built:
            builds.append(BuildArtifact(target=target, path=path))
    return PipelineContext(
        manifest=TPI,
        targets=targets,
        workspace_root=tmp_path,
        target_dir=target_dir,
        out_dir=tmp_path / "dist",
        bin_name="tpi",
        builds=tuple(builds),
    )


class TestParseFamily:
    def test_known(self) -> None:
        assert parse_family("debian") == Ok(PlatformFamily.DEBIAN)
        assert parse_family(" MacOS ") == Ok(PlatformFamily.MACOS)

    def test_unknown(self) -> None:
        result = parse_family("rpm")
        assert isinstance(result, Err)
        assert result.error.selector == "rpm"
        assert result.error.stage == "package"


def test_deb_file_name() -> None:
    assert deb_file_name("tpi", "1.0.7", "x86_64") == "tpi-1.0.7-x86_64-linux.deb"


class TestDebian:
    def test_one_deb_per_linux_target(self, tmp_path: Path) -> None:
        result = package_family(PlatformFamily.DEBIAN, _context(tmp_path))

        assert isinstance(result, Ok)
        names = sorted(p.path.name for p in result.value)
        assert names == ["tpi-1.0.7-aarch64-linux.deb", "tpi-1.0.7-x86_64-linux.deb"]
        assert all(p.format is PackageFormat.DEB for p in result.value)

        root = tmp_path / "dist" / "debian" / "tpi-1.0.7-x86_64-linux"
        control = (root / "DEBIAN" / "control").read_text(encoding="utf-8")
        assert "Architecture: amd64\n" in control
        binary = root / "usr" / "bin" / "tpi"
        assert binary.read_bytes() == b"x86_64-unknown-linux-gnu"
        assert stat.S_IMODE(binary.stat().st_mode) == 0o755

    def test_missing_build_names_target(self, tmp_path: Path) -> None:
        ctx = _context(tmp_path, built=False)

        result = package_family(PlatformFamily.DEBIAN, ctx)

        assert isinstance(result, Err)
        assert result.error.family is PlatformFamily.DEBIAN
        assert result.error.missing == "aarch64-unknown-linux-gnu"
        assert not (tmp_path / "dist" / "debian").exists()

    def test_missing_binary_file(self, tmp_path: Path) -> None:
        ctx = _context(tmp_path)
        ctx.builds[-1].path.unlink()

        result = package_family(PlatformFamily.DEBIAN, ctx)

        assert isinstance(result, Err)
        assert result.error.missing == "x86_64-unknown-linux-gnu"
        assert "binary not found" in result.error.reason

    def test_unmapped_architecture(self, tmp_path: Path) -> None:
        riscv = Target("riscv64gc-unknown-linux-gnu", "ubuntu-22.04")

        result = package_family(PlatformFamily.DEBIAN, _context(tmp_path, (riscv,)))

        assert isinstance(result, Err)
        assert result.error.family is PlatformFamily.DEBIAN
        assert result.error.missing == "riscv64gc"
        assert "riscv64gc-unknown-linux-gnu" in result.error.reason
        assert not (tmp_path / "dist" / "debian").exists()


class TestArch:
    def test_single_recipe(self, tmp_path: Path) -> None:
        result = package_family(PlatformFamily.ARCH, _context(tmp_path))

        assert isinstance(result, Ok)
        (package,) = result.value
        assert package.key == (PlatformFamily.ARCH, "any")
        assert package.path == tmp_path / "dist" / "arch" / "PKGBUILD"
        assert "arch=('aarch64' 'x86_64')" in package.path.read_text(encoding="utf-8")

    def test_no_linux_targets(self, tmp_path: Path) -> None:
        mac = tuple(t for t in TARGETS if t.os_kind == "macos")
        assert package_family(PlatformFamily.ARCH, _context(tmp_path, mac)) == Ok(())

    def test_manifest_without_repository(self, tmp_path: Path) -> None:
        ctx = _context(tmp_path)
        bare = Manifest(name="tpi", version="1.0.7", authors=("a",), description="d")
        ctx = PipelineContext(
            manifest=bare,
            targets=ctx.targets,
            workspace_root=ctx.workspace_root,
            target_dir=ctx.target_dir,
            out_dir=ctx.out_dir,
            bin_name="tpi",
            builds=ctx.builds,
        )

        result = package_family(PlatformFamily.ARCH, ctx)

        assert isinstance(result, Err)
        assert result.error.missing == "repository"


class TestPassthrough:
    def test_windows(self, tmp_path: Path) -> None:
        result = package_family(PlatformFamily.WINDOWS, _context(tmp_path))

        assert isinstance(result, Ok)
        (package,) = result.value
        assert package.path == tmp_path / "dist" / "win" / "x86_64" / "tpi.exe"
        assert package.format is PackageFormat.EXE

    def test_macos(self, tmp_path: Path) -> None:
        result = package_family(PlatformFamily.MACOS, _context(tmp_path))

        assert isinstance(result, Ok)
        assert sorted(str(p.path.relative_to(tmp_path / "dist")) for p in result.value) == [
            str(Path("apple/aarch64/tpi")),
            str(Path("apple/x86_64/tpi")),
        ]


class TestArchive:
    def test_one_tarball_per_unix_target(self, tmp_path: Path) -> None:
        result = package_family(PlatformFamily.ARCHIVE, _context(tmp_path))

        assert isinstance(result, Ok)
        assert sorted(p.path.name for p in result.value) == [
            "tpi-aarch64-apple-darwin.tar.gz",
            "tpi-aarch64-unknown-linux-gnu.tar.gz",
            "tpi-x86_64-apple-darwin.tar.gz",
            "tpi-x86_64-unknown-linux-gnu.tar.gz",
        ]
        assert all(p.format is PackageFormat.TAR_GZ for p in result.value)
        assert archive_file_name("tpi", "x86_64-apple-darwin") == "tpi-x86_64-apple-darwin.tar.gz"

    def test_binary_under_usr_bin(self, tmp_path: Path) -> None:
        linux = tuple(t for t in TARGETS if t.triple == "x86_64-unknown-linux-gnu")

        result = package_family(PlatformFamily.ARCHIVE, _context(tmp_path, linux))

        assert isinstance(result, Ok)
        (package,) = result.value
        assert package.key == (PlatformFamily.ARCHIVE, "x86_64-unknown-linux-gnu")
        with tarfile.open(package.path, "r:gz") as tar:
            member = tar.getmember("./usr/bin/tpi")
            assert member.mode & 0o777 == 0o755
            assert (member.uid, member.mtime) == (0, 0)
            extracted = tar.extractfile(member)
            assert extracted is not None
            assert extracted.read() == b"x86_64-unknown-linux-gnu"

    def test_windows_is_not_archived(self, tmp_path: Path) -> None:
        windows = tuple(t for t in TARGETS if t.os_kind == "windows")
        assert package_family(PlatformFamily.ARCHIVE, _context(tmp_path, windows)) == Ok(())


class TestPackageAll:
    def test_every_family(self, tmp_path: Path) -> None:
        console = MockConsole()

        result = package_all(_context(tmp_path), console=console)

        assert isinstance(result, Ok)
        keys = {p.key for p in result.value.packages}
        assert keys == {
            (PlatformFamily.DEBIAN, "aarch64"),
            (PlatformFamily.DEBIAN, "x86_64"),
            (PlatformFamily.ARCH, "any"),
            (PlatformFamily.WINDOWS, "x86_64"),
            (PlatformFamily.MACOS, "aarch64"),
            (PlatformFamily.MACOS, "x86_64"),
            (PlatformFamily.ARCHIVE, "aarch64-unknown-linux-gnu"),
            (PlatformFamily.ARCHIVE, "aarch64-apple-darwin"),
            (PlatformFamily.ARCHIVE, "x86_64-apple-darwin"),
            (PlatformFamily.ARCHIVE, "x86_64-unknown-linux-gnu"),
        }
        assert len(console.find("OK ")) == 10

    def test_stops_at_first_failure(self, tmp_path: Path) -> None:
        result = package_all(_context(tmp_path, built=False), console=MockConsole())

        assert isinstance(result, Err)
        assert result.error.family is PlatformFamily.DEBIAN
