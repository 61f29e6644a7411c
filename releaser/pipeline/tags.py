"""Release tag derivation and the idempotency gate.

A version is "already released" exactly when the tag ``v<version>`` exists.
There is no other ledger. A failing existence query is reported as a failure,
never read as "does not exist".
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Protocol

from releaser.core.result import Err, Ok, Result
from releaser.output.console import ConsoleProtocol, Style
from releaser.pipeline.errors import PublishFailed, TagQueryFailed
from releaser.pipeline.timeouts import GIT_NETWORK_TIMEOUT_SECONDS, GIT_TIMEOUT_SECONDS
from releaser.platform.process import run as run_process

__all__ = [
    "GitRemoteTags",
    "TagOutcome",
    "TagQuery",
    "TagRemote",
    "create_tag",
    "head_commit",
    "is_released",
    "tag_for_version",
]

TagOutcome = Literal["created", "already_released"]

# git ls-remote --exit-code: no matching refs
_LS_REMOTE_NO_MATCH = 2


class TagQuery(Protocol):
    def tag_exists(self, tag: str) -> Result[bool, TagQueryFailed]: ...


class TagRemote(TagQuery, Protocol):
    remote: str

    def push_tag(self, tag: str, message: str) -> Result[None, PublishFailed]: ...


def tag_for_version(version: str) -> str:
    return f"v{version}"


def is_released(version: str, query: TagQuery) -> Result[bool, TagQueryFailed]:
    """Return Ok(True) iff the tag for ``version`` exists (exact name match)."""
    return query.tag_exists(tag_for_version(version))


@dataclass(frozen=True, slots=True)
class GitRemoteTags:
    """Tag queries and tag creation against a git remote."""

    workspace_root: Path
    remote: str = "origin"

    def tag_exists(self, tag: str) -> Result[bool, TagQueryFailed]:
        ref = f"refs/tags/{tag}"
        result = run_process(
            ["git", "ls-remote", "--tags", "--exit-code", self.remote, ref],
            cwd=self.workspace_root,
            timeout=GIT_NETWORK_TIMEOUT_SECONDS,
        )
        if isinstance(result, Err):
            if result.error.returncode == _LS_REMOTE_NO_MATCH:
                return Ok(False)
            return Err(TagQueryFailed(tag=tag, reason=result.error.detail))

        for line in result.value.splitlines():
            parts = line.split()
            if len(parts) == 2 and parts[1].removesuffix("^{}") == ref:
                return Ok(True)
        return Ok(False)

    def push_tag(self, tag: str, message: str) -> Result[None, PublishFailed]:
        created = run_process(
            ["git", "tag", "-a", tag, "-m", message],
            cwd=self.workspace_root,
            timeout=GIT_TIMEOUT_SECONDS,
        )
        if isinstance(created, Err):
            return Err(PublishFailed(tag=tag, reason=created.error.detail))

        pushed = run_process(
            ["git", "push", self.remote, f"refs/tags/{tag}"],
            cwd=self.workspace_root,
            timeout=GIT_NETWORK_TIMEOUT_SECONDS,
        )
        if isinstance(pushed, Err):
            # Leave no dangling local tag behind a rejected push.
            run_process(
                ["git", "tag", "-d", tag], cwd=self.workspace_root, timeout=GIT_TIMEOUT_SECONDS
            )
            return Err(PublishFailed(tag=tag, reason=pushed.error.detail))
        return Ok(None)


def create_tag(
    *,
    tags: TagRemote,
    version: str,
    console: ConsoleProtocol,
    dry_run: bool = False,
) -> Result[TagOutcome, TagQueryFailed | PublishFailed]:
    """Create and push the annotated release tag unless it already exists.

    A push that fails because a concurrent run pushed the same tag first is
    reported as ``already_released``.
    """
    tag = tag_for_version(version)
    released = tags.tag_exists(tag)
    if isinstance(released, Err):
        return released
    if released.value:
        console.info(f"{tag} already exists, nothing to tag")
        return Ok("already_released")

    console.print(f"git tag -a {tag} && git push {tags.remote} {tag}", Style.DIM)
    if dry_run:
        return Ok("created")

    pushed = tags.push_tag(tag, f"Release version {version}")
    if isinstance(pushed, Ok):
        console.success(f"tagged {tag}")
        return Ok("created")

    recheck = tags.tag_exists(tag)
    if isinstance(recheck, Ok) and recheck.value:
        console.info(f"{tag} was created concurrently")
        return Ok("already_released")
    return pushed


def head_commit(workspace_root: Path) -> str | None:
    """Commit the release tag should point at, or None outside a git checkout."""
    out = run_process(
        ["git", "rev-parse", "HEAD"], cwd=workspace_root, timeout=GIT_TIMEOUT_SECONDS
    )
    if isinstance(out, Err):
        return None
    return out.value.strip() or None
