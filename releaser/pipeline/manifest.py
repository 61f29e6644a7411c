"""Project manifest reading (name, version and package metadata).

The manifest is the single source of truth for every name the pipeline
produces: tag, Debian package, control file, build recipe and release title.
Parsing is pure; the same text always yields the same ``Manifest``.
"""

from __future__ import annotations

import re
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import cast

from releaser.core.result import Err, Ok, Result
from releaser.core.structured import StrDict, as_str_dict, get_str, get_table
from releaser.pipeline.errors import MalformedManifest

__all__ = ["Manifest", "is_semver", "parse_manifest", "read_manifest"]

# Semantic Versioning 2.0.0, https://semver.org
_SEMVER_RE = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
    r"(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+([0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)


@dataclass(frozen=True, slots=True)
class Manifest:
    name: str
    version: str
    authors: tuple[str, ...]
    description: str
    homepage: str | None = None
    repository: str | None = None
    license: str | None = None

    @property
    def maintainer(self) -> str:
        return ", ".join(self.authors)

    @property
    def tag(self) -> str:
        return f"v{self.version}"


def is_semver(version: str) -> bool:
    return _SEMVER_RE.match(version) is not None


def _authors(table: StrDict) -> tuple[str, ...] | None:
    raw = table.get("authors")
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, list):
        return None
    out: list[str] = []
    for item in cast(list[object], raw):
        if isinstance(item, str) and item.strip():
            out.append(item.strip())
    return tuple(out) or None


def parse_manifest(text: str, *, source: str = "Cargo.toml") -> Result[Manifest, MalformedManifest]:
    """Parse manifest text into a Manifest.

    Reads the ``[package]`` table when present, otherwise the top-level table.
    The version is taken literally: it must already be a well-formed semantic
    version, without a ``v`` prefix or surrounding whitespace.
    """
    try:
        data_obj: object = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        return Err(MalformedManifest(source=source, reason=f"invalid TOML: {e}"))

    root = as_str_dict(data_obj)
    if root is None:
        return Err(MalformedManifest(source=source, reason="manifest root must be a table"))
    table = get_table(root, "package") or root

    version = table.get("version")
    if version is None:
        return Err(MalformedManifest(source=source, reason="missing field: version"))
    if not isinstance(version, str):
        return Err(MalformedManifest(source=source, reason="version must be a string"))
    if not is_semver(version):
        return Err(
            MalformedManifest(source=source, reason=f"not a semantic version: {version!r}")
        )

    name = get_str(table, "name")
    if name is None:
        return Err(MalformedManifest(source=source, reason="missing field: name"))

    authors = _authors(table)
    if authors is None:
        return Err(MalformedManifest(source=source, reason="missing field: authors"))

    description = get_str(table, "description")
    if description is None:
        return Err(MalformedManifest(source=source, reason="missing field: description"))

    return Ok(
        Manifest(
            name=name,
            version=version,
            authors=authors,
            description=description,
            homepage=get_str(table, "homepage"),
            repository=get_str(table, "repository"),
            license=get_str(table, "license"),
        )
    )


def read_manifest(path: Path) -> Result[Manifest, MalformedManifest]:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return Err(MalformedManifest(source=str(path), reason="file not found"))
    except (OSError, UnicodeDecodeError) as e:
        return Err(MalformedManifest(source=str(path), reason=f"cannot read: {e}"))
    return parse_manifest(text, source=str(path))
