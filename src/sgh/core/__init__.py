from .errors import CommandError, ConfigFileError, ParseError, SghError
from .model import Block, EntryKind, LocalForward, ResolvedHost
from .resolve import resolve

__all__ = [
    "Block",
    "CommandError",
    "ConfigFileError",
    "EntryKind",
    "LocalForward",
    "ParseError",
    "ResolvedHost",
    "SghError",
    "resolve",
]
