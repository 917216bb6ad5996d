from __future__ import annotations

import glob
import logging
import re
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple, Union

from .errors import ConfigFileError, ParseError
from .model import COMMAND_KINDS, Entry, EntryKind

logger = logging.getLogger(__name__)

LINE_RE = re.compile(r"^(?P<key>[^\s=]+)(?:(?:\s*=\s*|\s+)(?P<value>.*))?$")

# Same limit as OpenSSH's readconf
MAX_INCLUDE_DEPTH = 16
DEFAULT_INCLUDE_DIR = Path("~/.ssh")


@dataclass(frozen=True)
class RawBlock:
    patterns: Tuple[str, ...]
    entries: Tuple[Entry, ...] = ()


@dataclass
class _OpenBlock:
    patterns: List[str]
    entries: List[Entry] = field(default_factory=list)
    implicit: bool = False


class _BlockReader:
    """Accumulates blocks across a file and the files it includes."""

    def __init__(self) -> None:
        global_block = _OpenBlock(patterns=["*"], implicit=True)
        self.blocks: List[_OpenBlock] = [global_block]
        # None while inside an unsupported Match block
        self.current: Optional[_OpenBlock] = global_block

    def read_file(self, path: Path, depth: int) -> None:
        text = _read_text(path)
        self.read_text(text, source=str(path), base_dir=path.parent, depth=depth)

    def read_text(self, text: str, *, source: str, base_dir: Path, depth: int) -> None:
        for lineno, raw_line in enumerate(text.splitlines(), start=1):
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue
            m = LINE_RE.match(line)
            if not m:  # pragma: no cover - LINE_RE accepts any non-blank line
                raise ParseError(f"cannot parse line: {line!r}", source, lineno)
            keyword = m.group("key")
            value = (m.group("value") or "").strip()
            lowered = keyword.lower()

            if lowered == "host":
                self.current = _OpenBlock(patterns=_split_args(keyword, value, source, lineno))
                self.blocks.append(self.current)
            elif lowered == "match":
                logger.debug("%s:%d: skipping unsupported Match block", source, lineno)
                self.current = None
            elif lowered == "include":
                if self.current is None:
                    continue
                self._include(_split_args(keyword, value, source, lineno), base_dir, depth, source, lineno)
            else:
                self._add_entry(keyword, value, source, lineno)

    def _add_entry(self, keyword: str, value: str, source: str, lineno: int) -> None:
        kind = EntryKind.from_keyword(keyword)
        if kind is None:
            logger.debug("%s:%d: ignoring unsupported keyword %s", source, lineno, keyword)
            return
        if self.current is None:
            return
        if not value:
            raise ParseError(f"{kind.value} requires an argument", source, lineno)
        if kind not in COMMAND_KINDS:
            value = _unquote(value)
        self.current.entries.append((kind, value))

    def _include(self, patterns: List[str], base_dir: Path, depth: int, source: str, lineno: int) -> None:
        if depth >= MAX_INCLUDE_DEPTH:
            raise ParseError(f"Include nested too deeply (limit {MAX_INCLUDE_DEPTH})", source, lineno)
        for pattern in patterns:
            expanded = Path(pattern).expanduser()
            if not expanded.is_absolute():
                expanded = base_dir / expanded
            matches = sorted(glob.glob(str(expanded)))
            if not matches:
                logger.debug("%s:%d: Include pattern %s matched no files", source, lineno, pattern)
            for match in matches:
                match_path = Path(match)
                if match_path.is_dir():
                    continue
                # Included top-level lines continue the includer's block,
                # and the includer's block is active again afterwards.
                saved = self.current
                self.read_file(match_path, depth + 1)
                self.current = saved

    def finish(self) -> List[RawBlock]:
        return [
            RawBlock(patterns=tuple(b.patterns), entries=tuple(b.entries))
            for b in self.blocks
            if not (b.implicit and not b.entries)
        ]


def _split_args(keyword: str, value: str, source: str, lineno: int) -> List[str]:
    try:
        args = shlex.split(value)
    except ValueError as exc:
        raise ParseError(f"{keyword}: {exc}", source, lineno) from exc
    if not args:
        raise ParseError(f"{keyword} requires at least one argument", source, lineno)
    return args


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return value[1:-1]
    return value


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigFileError(path, "file not found") from None
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigFileError(path, f"cannot read file: {exc}") from exc


def parse_config(
    text: str,
    *,
    source: str = "<string>",
    base_dir: Union[str, Path, None] = None,
) -> List[RawBlock]:
    """Split ssh_config text into ordered blocks.

    Options before the first ``Host`` line form a ``Host *`` block. Relative
    ``Include`` paths are resolved against ``base_dir`` (``~/.ssh`` when not
    given).
    """
    directory = Path(base_dir).expanduser() if base_dir is not None else DEFAULT_INCLUDE_DIR.expanduser()
    reader = _BlockReader()
    reader.read_text(text, source=source, base_dir=directory, depth=0)
    return reader.finish()


def parse_file(path: Union[str, Path]) -> List[RawBlock]:
    config_path = Path(path).expanduser()
    reader = _BlockReader()
    reader.read_file(config_path, depth=0)
    blocks = reader.finish()
    logger.debug("parsed %d block(s) from %s", len(blocks), config_path)
    return blocks


__all__ = ["RawBlock", "parse_config", "parse_file", "MAX_INCLUDE_DEPTH"]
