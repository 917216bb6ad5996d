"""Host resolution pipeline.

Turns parsed blocks into flat host records in four stages:

1. ``spread``             one block per name pattern
2. ``apply_patterns``     wildcard blocks feed matching concrete blocks, then vanish
3. ``default_hostnames``  a block without ``Hostname`` connects to its own name
4. ``merge_identical``    blocks with equal entries collapse into one record

Every stage takes a list of blocks and returns a new list; the blocks handed
in are never modified. None of the stages raise.
"""
from __future__ import annotations

import logging
import re
from typing import Iterable, List, Sequence, Tuple, Union

from .model import Block, Entry, EntryKind, ResolvedHost

logger = logging.getLogger(__name__)

WILDCARD_CHARS = ("*", "?", "!")
HOST_PLACEHOLDER = "%h"

_WILDCARD_REGEX = {"*": ".*", "?": "."}

Matcher = Tuple["re.Pattern[str]", bool]


def is_wildcard(pattern: str) -> bool:
    return any(ch in pattern for ch in WILDCARD_CHARS)


def compile_pattern(pattern: str) -> Matcher:
    """Compile an ssh_config host pattern into ``(regex, negated)``.

    ``*`` matches any run of characters and ``?`` exactly one; everything
    else, ``.`` included, is literal. A leading ``!`` negates the pattern and
    is not part of the regex.
    """
    negated = pattern.startswith("!")
    if negated:
        pattern = pattern[1:]
    expr = "".join(_WILDCARD_REGEX.get(ch) or re.escape(ch) for ch in pattern)
    return re.compile(f"^{expr}$"), negated


def pattern_matches(matcher: Matcher, name: str) -> bool:
    regex, negated = matcher
    return (regex.match(name) is not None) != negated


def _is_pattern_block(block: Block) -> bool:
    return bool(block.patterns) and is_wildcard(block.patterns[0])


def spread(blocks: Iterable[Block]) -> List[Block]:
    """Split multi-pattern blocks into one block per pattern, keeping order."""
    spread_blocks: List[Block] = []
    for block in blocks:
        if not block.patterns:
            spread_blocks.append(block.copy())
            continue
        for pattern in block.patterns:
            clone = block.copy()
            clone.patterns = [pattern]
            spread_blocks.append(clone)
    return spread_blocks


def apply_patterns(blocks: Iterable[Block]) -> List[Block]:
    """Propagate wildcard block entries into matching concrete blocks.

    A concrete block keeps its own scalar entries; inherited ones are only
    inserted when absent, so the first block to set a key wins. Inherited
    local forwards are always appended. Wildcard blocks are dropped from
    the result whether or not they matched anything.
    """
    hosts = spread(blocks)
    sources = [(block, compile_pattern(block.patterns[0])) for block in hosts if _is_pattern_block(block)]
    targets = [block for block in hosts if block.patterns and not _is_pattern_block(block)]

    for source, matcher in sources:
        for target in targets:
            if not pattern_matches(matcher, target.patterns[0]):
                continue
            for kind, value in source.entries.items():
                target.entries.setdefault(kind, value)
            target.local_forwards.extend(source.local_forwards)

    return [block for block in hosts if not _is_pattern_block(block)]


def default_hostnames(blocks: Iterable[Block]) -> List[Block]:
    """Give every block without a ``Hostname`` its own name as destination."""
    hosts = [block.copy() for block in blocks]
    for host in hosts:
        if host.get(EntryKind.HOSTNAME) is None and host.patterns:
            host.update((EntryKind.HOSTNAME, host.patterns[0]))
    return hosts


def merge_identical(blocks: Iterable[Block]) -> List[Block]:
    """Collapse blocks whose scalar entries are exactly equal.

    Walks from the last block to the first. A block merges into the nearest
    earlier block with the same entries, unless one of its values contains
    ``%h``: those depend on the host name and cannot be shared. The earlier
    block takes the later one's patterns and local forwards, and for
    entries the later values win.
    """
    hosts = [block.copy() for block in blocks]
    for i in range(len(hosts) - 1, 0, -1):
        current = hosts[i]
        if current.has_placeholder(HOST_PLACEHOLDER):
            continue
        for j in range(i - 1, -1, -1):
            target = hosts[j]
            if target.entries != current.entries:
                continue
            target.patterns.extend(current.patterns)
            target.entries.update(current.entries)
            target.local_forwards.extend(current.local_forwards)
            del hosts[i]
            break
    return hosts


def resolve_blocks(blocks: Iterable[Block]) -> List[Block]:
    """Run the four stages and return the resolved blocks."""
    blocks = list(blocks)
    applied = apply_patterns(blocks)
    defaulted = default_hostnames(applied)
    merged = merge_identical(defaulted)
    logger.debug(
        "resolved %d block(s): %d after pattern application, %d after merge",
        len(blocks),
        len(applied),
        len(merged),
    )
    return merged


BlockInput = Union[Block, Tuple[Sequence[str], Sequence[Entry]]]


def _as_block(item: BlockInput) -> Block:
    if isinstance(item, Block):
        return item
    if isinstance(item, tuple):
        patterns, entries = item
    else:
        patterns, entries = item.patterns, item.entries
    return Block.from_entries(patterns, entries)


def resolve(blocks: Iterable[BlockInput]) -> List[ResolvedHost]:
    """Resolve parsed blocks into host records.

    Accepts ``Block`` instances, parser ``RawBlock`` records or plain
    ``(patterns, entries)`` pairs, where ``entries`` is a sequence of
    ``(EntryKind, value)`` in file order.
    """
    return [ResolvedHost.from_block(block) for block in resolve_blocks(_as_block(b) for b in blocks)]


__all__ = [
    "WILDCARD_CHARS",
    "HOST_PLACEHOLDER",
    "is_wildcard",
    "compile_pattern",
    "pattern_matches",
    "spread",
    "apply_patterns",
    "default_hostnames",
    "merge_identical",
    "resolve_blocks",
    "resolve",
]
