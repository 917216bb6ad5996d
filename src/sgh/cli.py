from __future__ import annotations

import json
import logging
from typing import List, Optional, Sequence

import click

from .core import loader
from .core.command import DEFAULT_TEMPLATE, run_session
from .core.errors import SghError
from .core.model import ResolvedHost
from .core.util import filter_hosts, find_host, sort_hosts
from . import __version__

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
CONFIG_ENVVAR = "SGH_CONFIG"

template_option = click.option(
    "--template", "-t", default=DEFAULT_TEMPLATE, show_default=True, help="Jinja2 template of the command to execute"
)
on_start_option = click.option(
    "--on-session-start-template", "on_start", default=None, help="Template of a command to run before the session"
)
on_end_option = click.option(
    "--on-session-end-template", "on_end", default=None, help="Template of a command to run after the session"
)


@click.group(invoke_without_command=True)
@click.version_option(__version__)
@click.option(
    "--config",
    "-c",
    "config_paths",
    multiple=True,
    type=click.Path(dir_okay=False),
    envvar=CONFIG_ENVVAR,
    default=loader.DEFAULT_CONFIG_PATHS,
    show_default=True,
    help="SSH config file to read (repeatable)",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
)
@click.pass_context
def main(ctx: click.Context, config_paths: Sequence[str], log_level: str) -> None:
    """sgh: pick a host from your SSH config and connect to it."""
    logging.basicConfig(level=getattr(logging, log_level.upper()), format=LOG_FORMAT)
    ctx.obj = list(config_paths)
    if ctx.invoked_subcommand is None:
        ctx.invoke(tui)


def _load(ctx: click.Context) -> List[ResolvedHost]:
    try:
        return loader.load_hosts(ctx.obj)
    except SghError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1)


def _format_host(host: ResolvedHost) -> str:
    target = host.destination
    if host.user:
        target = f"{host.user}@{target}"
    if host.port:
        target = f"{target}:{host.port}"
    line = f"{host.name}\t{target}"
    if host.aliases:
        line += f"\t({host.aliases_display})"
    return line


@main.command("list")
@click.option("--search", "-s", default="", help="Only show hosts matching this filter")
@click.option("--sort", "sort_by_name", is_flag=True, help="Sort hosts by name")
@click.option("--json", "as_json", is_flag=True, help="Output JSON for scripting")
@click.pass_context
def list_hosts(ctx: click.Context, search: str, sort_by_name: bool, as_json: bool) -> None:
    """Print the resolved hosts."""
    hosts = _load(ctx)
    if sort_by_name:
        hosts = sort_hosts(hosts)
    hosts = filter_hosts(hosts, search)
    if as_json:
        click.echo(json.dumps([h.to_dict() for h in hosts], indent=2))
        return
    for host in hosts:
        click.echo(_format_host(host))
        for lf in host.local_forwards:
            click.echo(f"\tLocalForward {lf}")


@main.command()
@click.argument("name")
@template_option
@on_start_option
@on_end_option
@click.pass_context
def run(ctx: click.Context, name: str, template: str, on_start: Optional[str], on_end: Optional[str]) -> None:
    """Run the command template against host NAME (name or alias)."""
    host = find_host(_load(ctx), name)
    if host is None:
        click.echo(f"Unknown host '{name}'. Run `sgh list` to see available hosts.", err=True)
        raise SystemExit(1)
    try:
        code = run_session(host, template, on_start=on_start, on_end=on_end)
    except SghError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1)
    raise SystemExit(code)


@main.command()
@click.option("--search", "-s", default="", help="Initial search filter")
@click.option("--sort", "sort_by_name", is_flag=True, help="Sort hosts by name")
@click.option("--show-proxy-command", is_flag=True, help="Show the ProxyCommand column")
@template_option
@on_start_option
@on_end_option
@click.option("--exit", "-e", "exit_after", is_flag=True, help="Exit after the SSH session ends")
@click.pass_context
def tui(
    ctx: click.Context,
    search: str,
    sort_by_name: bool,
    show_proxy_command: bool,
    template: str,
    on_start: Optional[str],
    on_end: Optional[str],
    exit_after: bool,
) -> None:  # pragma: no cover - UI launcher
    """Launch the Textual TUI interface."""
    hosts = _load(ctx)
    try:
        from .tui.app import AppConfig, SghApp
    except ImportError as exc:
        raise SystemExit(f"TUI not available: {exc}")
    config = AppConfig(
        config_paths=list(ctx.obj),
        search_filter=search,
        sort_by_name=sort_by_name,
        show_proxy_command=show_proxy_command,
        command_template=template,
        command_template_on_session_start=on_start,
        command_template_on_session_end=on_end,
        exit_after_ssh_session_ends=exit_after,
    )
    app = SghApp(config, hosts)
    app.run()
    raise SystemExit(app.return_code or 0)


__all__ = ["main"]
