"""GitHub access through the ``gh`` CLI.

Reads are idempotent and retried on transient failures. Writes (release
creation) are never retried here; the publisher recovers from a failed write
by re-checking the tag instead.
"""

from __future__ import annotations

import json
import shutil
from dataclasses import dataclass
from pathlib import Path
from time import sleep

from releaser.core.result import Err, Ok, Result
from releaser.core.structured import as_str_dict, get_str
from releaser.pipeline.errors import ConfigInvalid, PublishFailed, TagQueryFailed, ToolMissing
from releaser.pipeline.timeouts import (
    GH_READ_RETRY_ATTEMPTS,
    GH_READ_RETRY_DELAY_SECONDS,
    GH_TIMEOUT_SECONDS,
    GH_UPLOAD_TIMEOUT_SECONDS,
)
from releaser.platform.process import ProcessError
from releaser.platform.process import run as run_process

__all__ = [
    "GhReleaseHost",
    "ReleaseRequest",
    "ensure_gh_auth",
    "ensure_gh_available",
    "resolve_repo",
    "run_gh_read",
]


def _is_transient_gh_error(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    markers = (
        "timed out",
        "timeout",
        "connection reset",
        "connection refused",
        "temporarily unavailable",
        "service unavailable",
        "bad gateway",
        "gateway timeout",
        "tls handshake timeout",
        "network is unreachable",
        "http 429",
        "http 500",
        "http 502",
        "http 503",
        "http 504",
    )
    if error.returncode == -1 and "timed out" in text:
        return True
    return any(marker in text for marker in markers)


def _is_not_found(error: ProcessError) -> bool:
    return "http 404" in f"{error.stderr}\n{error.stdout}".lower()


def run_gh_read(
    *,
    workspace_root: Path,
    cmd: list[str],
    timeout: float = GH_TIMEOUT_SECONDS,
    retry_attempts: int = GH_READ_RETRY_ATTEMPTS,
) -> Result[str, ProcessError]:
    """Run an idempotent gh command, retrying transient failures."""
    attempts = max(1, retry_attempts)
    result = run_process(cmd, cwd=workspace_root, timeout=timeout)
    for attempt in range(1, attempts):
        if isinstance(result, Ok) or not _is_transient_gh_error(result.error):
            break
        sleep(GH_READ_RETRY_DELAY_SECONDS * attempt)
        result = run_process(cmd, cwd=workspace_root, timeout=timeout)
    return result


def ensure_gh_available() -> Result[None, ToolMissing]:
    if shutil.which("gh") is None:
        return Err(ToolMissing(tool="gh", hint="Install GitHub CLI: https://cli.github.com/"))
    return Ok(None)


def ensure_gh_auth(*, workspace_root: Path) -> Result[None, ToolMissing]:
    result = run_process(["gh", "auth", "status"], cwd=workspace_root, timeout=GH_TIMEOUT_SECONDS)
    if isinstance(result, Err):
        return Err(ToolMissing(tool="gh auth", hint="Run: gh auth login (or set GH_TOKEN)"))
    return Ok(None)


def resolve_repo(*, workspace_root: Path) -> Result[str, ConfigInvalid]:
    """owner/name of the GitHub repository the checkout belongs to."""
    result = run_gh_read(
        workspace_root=workspace_root,
        cmd=["gh", "repo", "view", "--json", "nameWithOwner", "--jq", ".nameWithOwner"],
    )
    if isinstance(result, Err):
        return Err(
            ConfigInvalid(
                message=f"cannot resolve repository ({result.error.detail}); pass --repo"
            )
        )
    repo = result.value.strip()
    if "/" not in repo:
        return Err(ConfigInvalid(message=f"unexpected repository name: {repo!r}; pass --repo"))
    return Ok(repo)


@dataclass(frozen=True, slots=True)
class ReleaseRequest:
    """Everything needed to create one tag + release in a single call."""

    tag: str
    title: str
    notes: str
    assets: tuple[Path, ...]
    target_commitish: str | None = None
    generate_notes: bool = True


@dataclass(frozen=True, slots=True)
class GhReleaseHost:
    """Tag queries and release creation against one GitHub repository."""

    workspace_root: Path
    repo: str  # owner/name

    def tag_exists(self, tag: str) -> Result[bool, TagQueryFailed]:
        # git/ref (singular) matches the ref exactly; git/refs would prefix-match.
        endpoint = f"repos/{self.repo}/git/ref/tags/{tag}"
        result = run_gh_read(workspace_root=self.workspace_root, cmd=["gh", "api", endpoint])
        if isinstance(result, Err):
            if _is_not_found(result.error):
                return self._absent_tag(tag)
            return Err(TagQueryFailed(tag=tag, reason=result.error.detail))

        try:
            obj: object = json.loads(result.value)
        except json.JSONDecodeError as e:
            return Err(TagQueryFailed(tag=tag, reason=f"gh api returned invalid JSON: {e}"))

        data = as_str_dict(obj)
        if data is None:
            return Err(TagQueryFailed(tag=tag, reason=f"unexpected ref payload: {endpoint}"))
        return Ok(get_str(data, "ref") == f"refs/tags/{tag}")

    def _absent_tag(self, tag: str) -> Result[bool, TagQueryFailed]:
        # A missing or hidden repository answers 404 as well; only a visible
        # repository makes the 404 mean "no such tag".
        result = run_gh_read(
            workspace_root=self.workspace_root,
            cmd=["gh", "api", f"repos/{self.repo}", "--jq", ".full_name"],
        )
        if isinstance(result, Err):
            return Err(
                TagQueryFailed(
                    tag=tag, reason=f"repository {self.repo} not reachable: {result.error.detail}"
                )
            )
        return Ok(False)

    def create_release(self, request: ReleaseRequest) -> Result[None, PublishFailed]:
        cmd = [
            "gh",
            "release",
            "create",
            request.tag,
            "--repo",
            self.repo,
            "--title",
            request.title,
            "--notes",
            request.notes,
        ]
        if request.generate_notes:
            cmd.append("--generate-notes")
        if request.target_commitish:
            cmd.extend(["--target", request.target_commitish])
        cmd.extend(str(p) for p in request.assets)

        result = run_process(cmd, cwd=self.workspace_root, timeout=GH_UPLOAD_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            return Err(PublishFailed(tag=request.tag, reason=result.error.detail))
        return Ok(None)
