from __future__ import annotations

from pathlib import Path

import pytest

from releaser.core.result import Err, Ok, Result
from releaser.output.console import MockConsole
from releaser.pipeline import tags as tags_mod
from releaser.pipeline.errors import PublishFailed, TagQueryFailed
from releaser.pipeline.tags import GitRemoteTags, create_tag, head_commit, is_released
from releaser.platform.process import ProcessError


def _err(*, returncode: int = 1, stderr: str = "") -> Err[ProcessError]:
    return Err(ProcessError(command=("git",), returncode=returncode, stdout="", stderr=stderr))


class _Tags:
    def __init__(self, existing: set[str]) -> None:
        self.existing = existing
        self.queries: list[str] = []

    def tag_exists(self, tag: str) -> Result[bool, TagQueryFailed]:
        self.queries.append(tag)
        return Ok(tag in self.existing)


class TestIsReleased:
    def test_exact_tag_present(self) -> None:
        tags = _Tags({"v1.0.6", "v1.0.7"})
        assert is_released("1.0.7", tags) == Ok(True)
        assert tags.queries == ["v1.0.7"]

    def test_tag_absent(self) -> None:
        assert is_released("1.0.8", _Tags({"v1.0.7", "v1.0.80"})) == Ok(False)


class TestGitRemoteTags:
    def test_exact_ref_match(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        calls: list[list[str]] = []

        def fake_run(cmd: list[str], *, cwd: Path, timeout: float | None = None):
            del cwd, timeout
            calls.append(cmd)
            return Ok("abc123\trefs/tags/v1.0.7\ndef456\trefs/tags/v1.0.7^{}\n")

        monkeypatch.setattr(tags_mod, "run_process", fake_run)

        result = GitRemoteTags(workspace_root=tmp_path).tag_exists("v1.0.7")

        assert result == Ok(True)
        assert calls == [
            ["git", "ls-remote", "--tags", "--exit-code", "origin", "refs/tags/v1.0.7"]
        ]

    def test_no_match_exit_code(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setattr(tags_mod, "run_process", lambda cmd, **_: _err(returncode=2))

        assert GitRemoteTags(workspace_root=tmp_path).tag_exists("v9.9.9") == Ok(False)

    def test_other_refs_do_not_count(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        monkeypatch.setattr(
            tags_mod, "run_process", lambda cmd, **_: Ok("abc\trefs/tags/v1.0.70\n")
        )

        assert GitRemoteTags(workspace_root=tmp_path).tag_exists("v1.0.7") == Ok(False)

    def test_query_failure_is_not_absence(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        monkeypatch.setattr(
            tags_mod,
            "run_process",
            lambda cmd, **_: _err(returncode=128, stderr="fatal: unable to access remote"),
        )

        result = GitRemoteTags(workspace_root=tmp_path).tag_exists("v1.0.7")

        assert isinstance(result, Err)
        assert result.error.tag == "v1.0.7"
        assert result.error.reason == "fatal: unable to access remote"

    def test_push_failure_deletes_local_tag(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        calls: list[list[str]] = []

        def fake_run(cmd: list[str], *, cwd: Path, timeout: float | None = None):
            del cwd, timeout
            calls.append(cmd)
            if cmd[1] == "push":
                return _err(stderr="! [rejected] v1.0.7 (already exists)")
            return Ok("")

        monkeypatch.setattr(tags_mod, "run_process", fake_run)

        result = GitRemoteTags(workspace_root=tmp_path).push_tag("v1.0.7", "Release version 1.0.7")

        assert isinstance(result, Err)
        assert calls == [
            ["git", "tag", "-a", "v1.0.7", "-m", "Release version 1.0.7"],
            ["git", "push", "origin", "refs/tags/v1.0.7"],
            ["git", "tag", "-d", "v1.0.7"],
        ]


class _Remote:
    def __init__(self, existing: set[str], *, lose_race: bool = False) -> None:
        self.remote = "origin"
        self.existing = existing
        self.lose_race = lose_race
        self.pushed: list[tuple[str, str]] = []

    def tag_exists(self, tag: str) -> Result[bool, TagQueryFailed]:
        return Ok(tag in self.existing)

    def push_tag(self, tag: str, message: str) -> Result[None, PublishFailed]:
        if self.lose_race:
            self.existing.add(tag)
            return Err(PublishFailed(tag=tag, reason="! [rejected] (already exists)"))
        self.pushed.append((tag, message))
        self.existing.add(tag)
        return Ok(None)


class TestCreateTag:
    def test_creates_missing_tag(self) -> None:
        remote = _Remote({"v1.0.6"})
        console = MockConsole()

        result = create_tag(tags=remote, version="1.0.7", console=console)

        assert result == Ok("created")
        assert remote.pushed == [("v1.0.7", "Release version 1.0.7")]
        assert console.has_success()

    def test_existing_tag_is_noop(self) -> None:
        remote = _Remote({"v1.0.7"})

        result = create_tag(tags=remote, version="1.0.7", console=MockConsole())

        assert result == Ok("already_released")
        assert remote.pushed == []

    def test_dry_run_does_not_push(self) -> None:
        remote = _Remote(set())

        result = create_tag(tags=remote, version="1.0.7", console=MockConsole(), dry_run=True)

        assert result == Ok("created")
        assert remote.pushed == []

    def test_lost_race_is_already_released(self) -> None:
        remote = _Remote(set(), lose_race=True)

        result = create_tag(tags=remote, version="2.0.0", console=MockConsole())

        assert result == Ok("already_released")


def test_head_commit(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr(tags_mod, "run_process", lambda cmd, **_: Ok("0123abcd\n"))
    assert head_commit(tmp_path) == "0123abcd"

    monkeypatch.setattr(tags_mod, "run_process", lambda cmd, **_: _err(returncode=128))
    assert head_commit(tmp_path) is None
