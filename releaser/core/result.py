"""Result type for explicit error handling.

Every pipeline stage returns either ``Ok(value)`` or ``Err(error)`` so that
failures travel as values from the stage that detects them to the CLI, which
is the only place that turns them into an exit status.

Usage:
    def read_version(text: str) -> Result[str, MalformedManifest]:
        ...

    match read_version(text):
        case Ok(version):
            print(version)
        case Err(error):
            print(error.reason)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeAlias, TypeVar

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful result carrying ``value``."""

    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failed result carrying ``error``."""

    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result: TypeAlias = Ok[T] | Err[E]
