"""The fixed build matrix and the platform families it feeds.

Targets are enumerated statically. Nothing in the pipeline discovers them
from the filesystem; a target is built, packaged and released because it is
listed here (or explicitly selected from this list).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal

__all__ = [
    "DEBIAN_ARCH",
    "OsKind",
    "PlatformFamily",
    "TARGETS",
    "Target",
    "target_by_triple",
]

OsKind = Literal["linux", "macos", "windows"]


@dataclass(frozen=True, slots=True, order=True)
class Target:
    """One (architecture, operating system) pair the tool is compiled for.

    Attributes:
        triple: Rust target triple, e.g. ``x86_64-unknown-linux-gnu``.
        runner_os: CI image the build runs on.
        cross: Build through ``cross`` instead of the native toolchain.
    """

    triple: str
    runner_os: str
    cross: bool = False

    @property
    def arch(self) -> str:
        return self.triple.split("-", 1)[0]

    @property
    def os_kind(self) -> OsKind:
        if "-linux-" in self.triple or self.triple.endswith("-linux"):
            return "linux"
        if "-apple-" in self.triple:
            return "macos"
        if "-windows-" in self.triple:
            return "windows"
        raise ValueError(f"unsupported target triple: {self.triple}")

    @property
    def exe_suffix(self) -> str:
        return ".exe" if self.os_kind == "windows" else ""

    def __str__(self) -> str:
        return self.triple


TARGETS: tuple[Target, ...] = (
    Target("aarch64-unknown-linux-gnu", "ubuntu-22.04", cross=True),
    Target("aarch64-apple-darwin", "macos-13"),
    Target("x86_64-apple-darwin", "macos-13"),
    Target("x86_64-pc-windows-msvc", "windows-2022"),
    Target("x86_64-unknown-linux-gnu", "ubuntu-22.04"),
)


def target_by_triple(triple: str) -> Target | None:
    for target in TARGETS:
        if target.triple == triple:
            return target
    return None


class PlatformFamily(Enum):
    """Packaging ecosystems. The set is closed; dispatch over it is exhaustive."""

    DEBIAN = "debian"
    ARCH = "arch"
    WINDOWS = "windows"
    MACOS = "macos"
    ARCHIVE = "archive"

    def __str__(self) -> str:
        return self.value

    @property
    def os_kinds(self) -> tuple[OsKind, ...]:
        match self:
            case PlatformFamily.DEBIAN | PlatformFamily.ARCH:
                return ("linux",)
            case PlatformFamily.WINDOWS:
                return ("windows",)
            case PlatformFamily.MACOS:
                return ("macos",)
            case PlatformFamily.ARCHIVE:
                return ("linux", "macos")

    def accepts(self, target: Target) -> bool:
        return target.os_kind in self.os_kinds


# Rust arch -> dpkg arch
DEBIAN_ARCH: dict[str, str] = {
    "x86_64": "amd64",
    "aarch64": "arm64",
}
