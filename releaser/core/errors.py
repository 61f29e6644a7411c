"""Exit codes for the release CLI.

Every fatal pipeline condition maps to one of these codes so that the invoking
scheduler can tell a configuration mistake from a broken build or an
unreachable release host.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Process exit codes. Values are stable; CI jobs may match on them.

    - 0: Success (including "already released" no-ops)
    - 1: User error (bad manifest, unknown target or platform family)
    - 2: Environment error (missing gh/git/cargo, not authenticated)
    - 3: Build error (one or more matrix targets failed)
    - 4: Network error (tag query or release creation failed)
    - 5: I/O error (cannot read or write pipeline files)
    - 6: Packaging error (missing input, duplicate artifact key)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    BUILD_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5
    PACKAGING_ERROR = 6

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK

    @property
    def is_error(self) -> bool:
        return self != ErrorCode.OK
