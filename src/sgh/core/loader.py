from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Union

from .model import ResolvedHost
from .parser import parse_file
from .resolve import resolve

logger = logging.getLogger(__name__)

SYSTEM_CONFIG = Path("/etc/ssh/ssh_config")
USER_CONFIG = Path("~/.ssh/config")
DEFAULT_CONFIG_PATHS = (str(SYSTEM_CONFIG), str(USER_CONFIG))


def load_file(path: Union[str, Path]) -> List[ResolvedHost]:
    """Parse and resolve a single configuration file."""
    hosts = resolve(parse_file(path))
    logger.debug("loaded %d host(s) from %s", len(hosts), path)
    return hosts


def load_hosts(paths: Iterable[Union[str, Path]]) -> List[ResolvedHost]:
    """Resolve each path on its own and concatenate the results in order.

    Hosts are not merged across files. A missing system-wide config is
    skipped since most machines do not have one; any other missing file
    raises ``ConfigFileError``.
    """
    hosts: List[ResolvedHost] = []
    for raw in paths:
        path = Path(raw).expanduser()
        if path == SYSTEM_CONFIG and not path.exists():
            logger.info("skipping missing system config %s", path)
            continue
        hosts.extend(load_file(path))
    return hosts


__all__ = ["DEFAULT_CONFIG_PATHS", "SYSTEM_CONFIG", "USER_CONFIG", "load_file", "load_hosts"]
