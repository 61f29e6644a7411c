"""Release pipeline for multi-platform command-line tools."""

__version__ = "0.3.0"
