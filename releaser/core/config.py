"""Typed configuration loading.

The pipeline reads an optional ``releaser.toml`` from the workspace root:

    [release]
    repo = "turing-machines/tpi"
    remote = "origin"
    manifest = "Cargo.toml"
    target_dir = "target"
    out_dir = "dist"

    [build]
    jobs = 5
    targets = ["x86_64-unknown-linux-gnu"]

    [package]
    bin_name = "tpi"

Every key is optional. CLI options take precedence over the file.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_int, get_str, get_str_list, get_table

__all__ = [
    "BuildConfig",
    "CONFIG_FILE_NAME",
    "Config",
    "ConfigError",
    "PackageConfig",
    "ReleaseConfig",
    "load_config",
    "load_config_or_default",
]

CONFIG_FILE_NAME = "releaser.toml"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    """Where the release comes from and where it goes."""

    repo: str | None = None  # owner/name; None means "ask git remote"
    remote: str = "origin"
    manifest: str = "Cargo.toml"
    target_dir: str = "target"
    out_dir: str = "dist"


@dataclass(frozen=True, slots=True)
class BuildConfig:
    # None: one worker per target
    jobs: int | None = None
    # None: the full fixed matrix
    targets: tuple[str, ...] | None = None


@dataclass(frozen=True, slots=True)
class PackageConfig:
    # None: use the manifest package name
    bin_name: str | None = None


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    release: ReleaseConfig = field(default_factory=ReleaseConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    package: PackageConfig = field(default_factory=PackageConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML).

        Raises:
            ValueError: A value is present but has the wrong shape.
        """
        release: StrDict = get_table(data, "release") or {}
        build: StrDict = get_table(data, "build") or {}
        package: StrDict = get_table(data, "package") or {}

        jobs = get_int(build, "jobs")
        if "jobs" in build and (jobs is None or jobs < 1):
            raise ValueError("build.jobs must be a positive integer")

        targets = get_str_list(build, "targets")
        if "targets" in build and not targets:
            raise ValueError("build.targets must be a non-empty list of target triples")

        return cls(
            release=ReleaseConfig(
                repo=get_str(release, "repo"),
                remote=get_str(release, "remote") or "origin",
                manifest=get_str(release, "manifest") or "Cargo.toml",
                target_dir=get_str(release, "target_dir") or "target",
                out_dir=get_str(release, "out_dir") or "dist",
            ),
            build=BuildConfig(jobs=jobs, targets=targets),
            package=PackageConfig(bin_name=get_str(package, "bin_name")),
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to releaser.toml

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_config_or_default(path: Path) -> Result[Config, ConfigError]:
    """Like load_config, but a missing file yields the default Config.

    A file that exists but does not parse is still an error.
    """
    if not path.exists():
        return Ok(Config())
    return load_config(path)
