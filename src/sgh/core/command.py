"""Render command templates against a host and run them.

Templates are Jinja2 strings evaluated with the fields of
``ResolvedHost.to_dict()``: ``name``, ``aliases``, ``user``,
``destination``, ``port``, ``proxy_command``, ``local_forwards`` and
``options``. Undefined names are an error rather than an empty string.
"""
from __future__ import annotations

import logging
import shlex
import subprocess
from typing import Callable, List, Optional

import click
from jinja2 import Environment, StrictUndefined, TemplateError

from .errors import CommandError
from .model import ResolvedHost

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE = 'ssh "{{ name }}"'

_ENV = Environment(undefined=StrictUndefined)

Runner = Callable[..., "subprocess.CompletedProcess[bytes]"]


def render_command(template: str, host: ResolvedHost) -> str:
    try:
        return _ENV.from_string(template).render(**host.to_dict())
    except TemplateError as exc:
        raise CommandError(f"cannot render template {template!r}: {exc}") from exc


def split_command(rendered: str) -> List[str]:
    try:
        args = shlex.split(rendered)
    except ValueError as exc:
        raise CommandError(f"failed to parse command: {rendered}") from exc
    if not args:
        raise CommandError("command template rendered to an empty command")
    return args


def run_command_template(template: str, host: ResolvedHost, *, runner: Optional[Runner] = None) -> int:
    """Render ``template`` for ``host``, run it and return its exit code."""
    rendered = render_command(template, host)
    args = split_command(rendered)
    click.echo(f"Running command: {rendered}")
    logger.info("running %s for host %s", args, host.name)
    run = runner or subprocess.run
    try:
        result = run(args)
    except FileNotFoundError as exc:
        raise CommandError(f"command not found: {args[0]}") from exc
    return result.returncode


def run_session(
    host: ResolvedHost,
    template: str = DEFAULT_TEMPLATE,
    *,
    on_start: Optional[str] = None,
    on_end: Optional[str] = None,
    runner: Optional[Runner] = None,
) -> int:
    """Run the start hook, the main command and the end hook in order.

    Stops at the first non-zero exit code and returns it.
    """
    for step in (on_start, template, on_end):
        if step is None:
            continue
        code = run_command_template(step, host, runner=runner)
        if code != 0:
            logger.warning("command for %s exited with %d", host.name, code)
            return code
    return 0


__all__ = ["DEFAULT_TEMPLATE", "render_command", "split_command", "run_command_template", "run_session"]
