"""Fan-in of package outputs into one release artifact set.

Every package is keyed by (platform family, architecture). Two packages with
the same key mean the matrix or a packaging strategy is misconfigured; the
merge fails instead of letting one silently replace the other.
"""

from __future__ import annotations

import hashlib
import shutil
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from types import MappingProxyType

from releaser.core.result import Err, Ok, Result
from releaser.pipeline.errors import DuplicateArtifactKey
from releaser.pipeline.manifest import Manifest
from releaser.pipeline.targets import PlatformFamily

__all__ = [
    "ArtifactKey",
    "ArtifactSet",
    "CHECKSUMS_FILE_NAME",
    "PackageArtifact",
    "PackageFormat",
    "StagedRelease",
    "aggregate",
    "asset_name",
    "stage_release_assets",
]

CHECKSUMS_FILE_NAME = "SHA256SUMS"

ArtifactKey = tuple[PlatformFamily, str]


class PackageFormat(Enum):
    DEB = "deb"
    PKGBUILD = "pkgbuild"
    EXE = "exe"
    BINARY = "binary"
    TAR_GZ = "tar.gz"


@dataclass(frozen=True, slots=True)
class PackageArtifact:
    """One distributable file.

    ``arch`` is the slot within the family. Archives use the full target
    triple there, since one architecture spans two operating systems.
    """

    family: PlatformFamily
    arch: str
    format: PackageFormat
    path: Path

    @property
    def key(self) -> ArtifactKey:
        return (self.family, self.arch)


class ArtifactSet(Mapping[ArtifactKey, PackageArtifact]):
    """Read-only mapping of (family, arch) to the package for that slot."""

    __slots__ = ("_items",)

    def __init__(self, items: Mapping[ArtifactKey, PackageArtifact]) -> None:
        self._items = MappingProxyType(dict(items))

    def __getitem__(self, key: ArtifactKey) -> PackageArtifact:
        return self._items[key]

    def __iter__(self) -> Iterator[ArtifactKey]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        keys = ", ".join(f"{f.value}/{a}" for f, a in self._items)
        return f"ArtifactSet({keys})"

    def artifacts(self) -> tuple[PackageArtifact, ...]:
        return tuple(self._items.values())


def aggregate(packages: Iterable[PackageArtifact]) -> Result[ArtifactSet, DuplicateArtifactKey]:
    merged: dict[ArtifactKey, PackageArtifact] = {}
    for package in packages:
        existing = merged.get(package.key)
        if existing is not None:
            return Err(
                DuplicateArtifactKey(
                    family=package.family,
                    arch=package.arch,
                    first=str(existing.path),
                    second=str(package.path),
                )
            )
        merged[package.key] = package
    return Ok(ArtifactSet(merged))


def asset_name(artifact: PackageArtifact, manifest: Manifest) -> str:
    """Flat, release-wide unique file name for a package."""
    stem = f"{manifest.name}-{manifest.version}"
    match artifact.format:
        case PackageFormat.DEB:
            return artifact.path.name
        case PackageFormat.PKGBUILD:
            return f"{stem}.PKGBUILD"
        case PackageFormat.EXE:
            return f"{stem}-{artifact.arch}-windows.exe"
        case PackageFormat.BINARY:
            return f"{stem}-{artifact.arch}-macos"
        case PackageFormat.TAR_GZ:
            return artifact.path.name


@dataclass(frozen=True, slots=True)
class StagedRelease:
    assets: tuple[Path, ...]
    checksums: Path

    @property
    def files(self) -> tuple[Path, ...]:
        """Everything to upload, checksums last."""
        return (*self.assets, self.checksums)


def _sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


def stage_release_assets(
    artifact_set: ArtifactSet, manifest: Manifest, release_dir: Path
) -> StagedRelease:
    """Copy every artifact to ``release_dir`` under its asset name and write checksums.

    Raises:
        OSError: An artifact cannot be copied.
    """
    if release_dir.exists():
        shutil.rmtree(release_dir)
    release_dir.mkdir(parents=True)

    staged: list[Path] = []
    for key in sorted(artifact_set, key=lambda k: (k[0].value, k[1])):
        artifact = artifact_set[key]
        dest = release_dir / asset_name(artifact, manifest)
        shutil.copy2(artifact.path, dest)
        staged.append(dest)

    checksums = release_dir / CHECKSUMS_FILE_NAME
    lines = [f"{_sha256_file(p)}  {p.name}" for p in staged]
    checksums.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return StagedRelease(assets=tuple(staged), checksums=checksums)
