from __future__ import annotations

from typing import Iterable, List, Optional

from .model import ResolvedHost

SUBSTRING = 0
SUBSEQUENCE = 1


def _is_subsequence(needle: str, haystack: str) -> bool:
    it = iter(haystack)
    return all(ch in it for ch in needle)


def fuzzy_match(query: str, candidate: str) -> Optional[int]:
    """Case-insensitive match rank of ``query`` in ``candidate``.

    Returns ``SUBSTRING`` for a contiguous hit, ``SUBSEQUENCE`` for an
    in-order scattered hit and ``None`` when the query does not match.
    """
    q = query.lower()
    c = candidate.lower()
    if q in c:
        return SUBSTRING
    if _is_subsequence(q, c):
        return SUBSEQUENCE
    return None


def _search_fields(host: ResolvedHost) -> List[str]:
    fields = [host.name, *host.aliases, host.destination]
    if host.user:
        fields.append(host.user)
    return fields


def filter_hosts(hosts: Iterable[ResolvedHost], query: str) -> List[ResolvedHost]:
    """Return hosts matching ``query`` on name, aliases, destination or user.

    Substring hits come first, then subsequence-only hits; each group keeps
    the input order. An empty query returns everything.
    """
    hosts = list(hosts)
    q = query.strip()
    if not q:
        return hosts
    ranked = []
    for index, host in enumerate(hosts):
        ranks = [r for r in (fuzzy_match(q, f) for f in _search_fields(host)) if r is not None]
        if ranks:
            ranked.append((min(ranks), index, host))
    return [host for _, _, host in sorted(ranked, key=lambda item: item[:2])]


def sort_hosts(hosts: Iterable[ResolvedHost]) -> List[ResolvedHost]:
    return sorted(hosts, key=lambda h: h.name.lower())


def find_host(hosts: Iterable[ResolvedHost], name: str) -> ResolvedHost | None:
    """Find a host by exact name, falling back to its aliases."""
    hosts = list(hosts)
    for host in hosts:
        if host.name == name:
            return host
    for host in hosts:
        if name in host.aliases:
            return host
    return None


__all__ = ["SUBSTRING", "SUBSEQUENCE", "fuzzy_match", "filter_hosts", "sort_hosts", "find_host"]
