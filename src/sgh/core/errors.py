from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class SghError(Exception):
    """Base exception for everything the frontends report to the user."""


class ConfigFileError(SghError):
    """Raised when a configuration file is missing or cannot be read."""

    def __init__(self, path: Union[str, Path], reason: str) -> None:
        self.path = str(path)
        self.reason = reason
        super().__init__(f"{self.path}: {reason}")


class ParseError(SghError):
    """Raised for syntax errors in a configuration file."""

    def __init__(self, message: str, source: str = "<string>", line: Optional[int] = None) -> None:
        self.message = message
        self.source = source
        self.line = line
        super().__init__(message)

    def __str__(self) -> str:
        if self.line is not None:
            return f"{self.source}:{self.line}: {self.message}"
        return f"{self.source}: {self.message}"


class CommandError(SghError):
    """Raised when a command template cannot be rendered or split."""


__all__ = ["SghError", "ConfigFileError", "ParseError", "CommandError"]
