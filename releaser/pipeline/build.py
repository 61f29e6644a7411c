"""Build matrix: one independent build unit per target.

Units run concurrently and share nothing. The matrix waits for every unit,
then succeeds only if all of them produced their binary; otherwise it reports
every failed target and the pipeline stops before packaging.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from releaser.core.result import Err, Ok, Result
from releaser.output.console import ConsoleProtocol, Style
from releaser.pipeline.errors import BuildFailure, PartialBuildFailure, UnknownTarget
from releaser.pipeline.targets import TARGETS, Target, target_by_triple
from releaser.pipeline.timeouts import BUILD_TIMEOUT_SECONDS
from releaser.platform.process import run as run_process

__all__ = [
    "BuildArtifact",
    "Builder",
    "CargoBuilder",
    "PrebuiltBuilder",
    "run_build_matrix",
    "select_targets",
]


@dataclass(frozen=True, slots=True)
class BuildArtifact:
    target: Target
    path: Path


class Builder(Protocol):
    def build(self, target: Target) -> Result[BuildArtifact, BuildFailure]: ...


def select_targets(triples: tuple[str, ...] | None) -> Result[tuple[Target, ...], UnknownTarget]:
    """Narrow the fixed matrix to ``triples`` (None keeps all of it)."""
    if triples is None:
        return Ok(TARGETS)
    known = tuple(t.triple for t in TARGETS)
    selected: list[Target] = []
    for triple in triples:
        target = target_by_triple(triple)
        if target is None:
            return Err(UnknownTarget(triple=triple, known=known))
        if target not in selected:
            selected.append(target)
    return Ok(tuple(selected))


def expected_binary(target_dir: Path, target: Target, bin_name: str) -> Path:
    return target_dir / target.triple / "release" / f"{bin_name}{target.exe_suffix}"


@dataclass(frozen=True, slots=True)
class CargoBuilder:
    """Compile with cargo, or cross for targets flagged for cross-compilation."""

    workspace_root: Path
    target_dir: Path
    bin_name: str

    def command(self, target: Target) -> list[str]:
        tool = "cross" if target.cross else "cargo"
        return [tool, "build", "--release", "--locked", f"--target={target.triple}"]

    def build(self, target: Target) -> Result[BuildArtifact, BuildFailure]:
        result = run_process(
            self.command(target), cwd=self.workspace_root, timeout=BUILD_TIMEOUT_SECONDS
        )
        if isinstance(result, Err):
            return Err(BuildFailure(target=target, reason=result.error.detail))

        path = expected_binary(self.target_dir, target, self.bin_name)
        if not path.is_file():
            return Err(BuildFailure(target=target, reason=f"output missing: {path}"))
        return Ok(BuildArtifact(target=target, path=path))


@dataclass(frozen=True, slots=True)
class PrebuiltBuilder:
    """Resolve binaries produced by earlier CI jobs without compiling."""

    target_dir: Path
    bin_name: str

    def build(self, target: Target) -> Result[BuildArtifact, BuildFailure]:
        path = expected_binary(self.target_dir, target, self.bin_name)
        if not path.is_file():
            return Err(BuildFailure(target=target, reason=f"prebuilt binary not found: {path}"))
        return Ok(BuildArtifact(target=target, path=path))


def _build_unit(builder: Builder, target: Target) -> Result[BuildArtifact, BuildFailure]:
    try:
        return builder.build(target)
    except Exception as e:  # noqa: BLE001
        return Err(BuildFailure(target=target, reason=f"{type(e).__name__}: {e}"))


def run_build_matrix(
    targets: tuple[Target, ...],
    builder: Builder,
    *,
    console: ConsoleProtocol,
    jobs: int | None = None,
) -> Result[tuple[BuildArtifact, ...], PartialBuildFailure]:
    """Build every target concurrently and evaluate once all have resolved.

    Returns:
        Ok(artifacts) in ``targets`` order when every unit succeeded,
        Err(PartialBuildFailure) listing every failed target otherwise.
    """
    if not targets:
        return Ok(())

    workers = max(1, min(jobs or len(targets), len(targets)))
    built: dict[Target, BuildArtifact] = {}
    failures: list[BuildFailure] = []

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="build") as pool:
        futures: dict[Future[Result[BuildArtifact, BuildFailure]], Target] = {}
        for target in targets:
            console.print(f"build {target.triple} ({target.runner_os})", Style.DIM)
            futures[pool.submit(_build_unit, builder, target)] = target

        for future in as_completed(futures):
            result = future.result()
            if isinstance(result, Ok):
                built[futures[future]] = result.value
                console.success(f"built {futures[future].triple}")
            else:
                failures.append(result.error)
                console.error(f"build {futures[future].triple}: {result.error.reason}")

    if failures:
        order = {t: i for i, t in enumerate(targets)}
        failures.sort(key=lambda f: order[f.target])
        return Err(PartialBuildFailure(failures=tuple(failures), requested=len(targets)))
    return Ok(tuple(built[t] for t in targets))
