"""Release publication with check-then-act race recovery.

The tag namespace on the release host is shared between concurrent runs.
Existence check and creation are not one atomic operation, so a run that
finds the tag present (before creating, or after its own creation failed)
treats the version as released and stops successfully.
"""

from __future__ import annotations

from typing import Literal, Protocol

from releaser.core.result import Err, Ok, Result
from releaser.output.console import ConsoleProtocol, Style
from releaser.pipeline.errors import PublishFailed, TagQueryFailed
from releaser.pipeline.gh import ReleaseRequest

__all__ = ["PublishOutcome", "ReleaseHost", "publish"]

PublishOutcome = Literal["published", "already_released"]


class ReleaseHost(Protocol):
    def tag_exists(self, tag: str) -> Result[bool, TagQueryFailed]: ...

    def create_release(self, request: ReleaseRequest) -> Result[None, PublishFailed]:
        """Create the tag and the release bound to it in one call."""
        ...


def publish(
    host: ReleaseHost,
    request: ReleaseRequest,
    *,
    console: ConsoleProtocol,
) -> Result[PublishOutcome, TagQueryFailed | PublishFailed]:
    exists = host.tag_exists(request.tag)
    if isinstance(exists, Err):
        return exists
    if exists.value:
        console.info(f"{request.tag} already exists; another run published it")
        return Ok("already_released")

    console.print(f"gh release create {request.tag} ({len(request.assets)} assets)", Style.DIM)
    created = host.create_release(request)
    if isinstance(created, Ok):
        console.success(f"published {request.title}")
        return Ok("published")

    recheck = host.tag_exists(request.tag)
    if isinstance(recheck, Ok) and recheck.value:
        console.info(f"{request.tag} was created concurrently; nothing to publish")
        return Ok("already_released")
    return created
