"""Host interaction: subprocess execution."""

from releaser.platform.process import ProcessError, run

__all__ = ["ProcessError", "run"]
