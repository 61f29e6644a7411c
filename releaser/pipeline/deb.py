"""Debian binary package assembly.

A ``.deb`` is an ``ar`` archive holding, in this order, ``debian-binary``,
``control.tar.gz`` and ``data.tar.gz``. The archive is built in-process with
fixed timestamps and root ownership so identical inputs give identical bytes.
"""

from __future__ import annotations

import gzip
import io
import tarfile
from dataclasses import dataclass
from pathlib import Path

from releaser.pipeline.manifest import Manifest

__all__ = ["ControlFile", "write_control", "write_deb", "write_tar_gz"]

_AR_MAGIC = b"!<arch>\n"
_DEB_FORMAT = b"2.0\n"


@dataclass(frozen=True, slots=True)
class ControlFile:
    package: str
    version: str
    architecture: str
    maintainer: str
    description: str
    section: str = "base"
    priority: str = "optional"

    @classmethod
    def for_manifest(cls, manifest: Manifest, architecture: str) -> ControlFile:
        return cls(
            package=manifest.name,
            version=manifest.version,
            architecture=architecture,
            maintainer=manifest.maintainer,
            description=manifest.description,
        )

    def render(self) -> str:
        return (
            f"Package: {self.package}\n"
            f"Version: {self.version}\n"
            f"Section: {self.section}\n"
            f"Priority: {self.priority}\n"
            f"Architecture: {self.architecture}\n"
            f"Maintainer: {self.maintainer}\n"
            f"Description: {self.description}\n"
        )


def write_control(control: ControlFile, package_root: Path) -> Path:
    """Write ``<package_root>/DEBIAN/control``."""
    path = package_root / "DEBIAN" / "control"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(control.render(), encoding="utf-8")
    return path


def _tar_gz(root: Path, *, exclude: str | None = None) -> bytes:
    raw = io.BytesIO()
    # mtime=0 keeps the gzip header free of the build time.
    with gzip.GzipFile(fileobj=raw, mode="wb", mtime=0) as gz:
        with tarfile.open(fileobj=gz, mode="w", format=tarfile.GNU_FORMAT) as tar:
            for path in sorted(root.rglob("*")):
                rel = path.relative_to(root)
                if exclude is not None and rel.parts[0] == exclude:
                    continue
                info = tar.gettarinfo(str(path), arcname=f"./{rel.as_posix()}")
                info.uid = info.gid = 0
                info.uname = info.gname = "root"
                info.mtime = 0
                if info.isfile():
                    with path.open("rb") as f:
                        tar.addfile(info, f)
                else:
                    tar.addfile(info)
    return raw.getvalue()


def _ar_member(name: str, data: bytes) -> bytes:
    # name/16, mtime/12, uid/6, gid/6, mode/8, size/10, magic "`\n"
    header = (
        f"{name:<16}{0:<12}{0:<6}{0:<6}{'100644':<8}{len(data):<10}".encode("ascii") + b"`\n"
    )
    padding = b"\n" if len(data) % 2 else b""
    return header + data + padding


def write_deb(package_root: Path, deb_path: Path) -> Path:
    """Assemble ``package_root`` (``DEBIAN/`` + payload tree) into ``deb_path``.

    Raises:
        FileNotFoundError: ``DEBIAN/control`` is missing.
    """
    control_dir = package_root / "DEBIAN"
    if not (control_dir / "control").is_file():
        raise FileNotFoundError(f"missing control file: {control_dir / 'control'}")

    members = [
        _ar_member("debian-binary", _DEB_FORMAT),
        _ar_member("control.tar.gz", _tar_gz(control_dir)),
        _ar_member("data.tar.gz", _tar_gz(package_root, exclude="DEBIAN")),
    ]
    deb_path.parent.mkdir(parents=True, exist_ok=True)
    deb_path.write_bytes(_AR_MAGIC + b"".join(members))
    return deb_path


def write_tar_gz(root: Path, archive_path: Path) -> Path:
    """Write the tree under ``root`` as a reproducible ``.tar.gz``."""
    archive_path.parent.mkdir(parents=True, exist_ok=True)
    archive_path.write_bytes(_tar_gz(root))
    return archive_path
