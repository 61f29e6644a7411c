"""Console output and error presentation."""

from releaser.output.console import ConsoleProtocol, MockConsole, RichConsole, Style

__all__ = ["ConsoleProtocol", "MockConsole", "RichConsole", "Style"]
