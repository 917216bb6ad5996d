from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.widgets import DataTable, Footer, Header, Input, Static

from ..core import loader
from ..core.command import DEFAULT_TEMPLATE, run_session
from ..core.errors import SghError
from ..core.model import ResolvedHost
from ..core.util import filter_hosts, sort_hosts

logger = logging.getLogger(__name__)


@dataclass
class AppConfig:
    config_paths: List[str] = field(default_factory=lambda: list(loader.DEFAULT_CONFIG_PATHS))
    search_filter: str = ""
    sort_by_name: bool = False
    show_proxy_command: bool = False
    command_template: str = DEFAULT_TEMPLATE
    command_template_on_session_start: Optional[str] = None
    command_template_on_session_end: Optional[str] = None
    exit_after_ssh_session_ends: bool = False


def table_columns(show_proxy_command: bool) -> Tuple[str, ...]:
    columns = ("Name", "Aliases", "User", "Destination", "Port")
    if show_proxy_command:
        columns += ("Proxy",)
    return columns


def host_row(host: ResolvedHost, show_proxy_command: bool) -> Tuple[str, ...]:
    row = (host.name, host.aliases_display, host.user or "", host.destination, host.port or "")
    if show_proxy_command:
        row += (host.proxy_command or "",)
    return row


def format_local_forwards(host: Optional[ResolvedHost]) -> str:
    if host is None:
        return "No host selected"
    if not host.local_forwards:
        return "LocalForwards: none"
    lines = ["LocalForwards:"]
    lines.extend(f"  {lf.local_port} → {lf.remote_host}:{lf.remote_port}" for lf in host.local_forwards)
    return "\n".join(lines)


def session_exit_code(code: Optional[int], exit_after: bool) -> Optional[int]:
    """Return the status the app should exit with, or ``None`` to keep running.

    ``code`` is ``None`` when the session could not be started. A failing
    command always ends the app with its status.
    """
    if code is None:
        return 1 if exit_after else None
    if code != 0:
        return code
    return 0 if exit_after else None


class SghApp(App[None]):  # pragma: no cover - UI glue
    """Searchable host table; Enter runs the command template for the highlighted host."""

    TITLE = "sgh"
    CSS = """
    #search {
        margin: 0 1;
    }

    #hosts {
        height: 1fr;
    }

    #forwards {
        height: auto;
        max-height: 8;
        border: round $secondary;
        padding: 0 1;
    }

    #status {
        height: 1;
        padding: 0 1;
        background: $boost;
    }

    #status.error {
        background: $error;
    }
    """

    BINDINGS = [
        Binding("escape", "quit", "Quit"),
        Binding("ctrl+c", "quit", "Quit", show=False),
        Binding("enter", "connect", "Connect"),
        Binding("down", "cursor_down", "Down", show=False),
        Binding("up", "cursor_up", "Up", show=False),
        Binding("ctrl+r", "reload", "Reload"),
    ]

    def __init__(self, config: AppConfig, hosts: Optional[Sequence[ResolvedHost]] = None, **kwargs):
        super().__init__(**kwargs)
        self.config = config
        self.hosts: List[ResolvedHost] = list(hosts) if hosts is not None else []
        self.visible_hosts: List[ResolvedHost] = []
        self._loaded = hosts is not None

    def compose(self) -> ComposeResult:
        yield Header()
        yield Input(value=self.config.search_filter, placeholder="Search hosts…", id="search")
        with Vertical(id="body"):
            yield DataTable(id="hosts", cursor_type="row", zebra_stripes=True)
            yield Static(id="forwards")
        yield Static(id="status")
        yield Footer()

    def on_mount(self) -> None:
        self.search_input = self.query_one("#search", Input)
        self.host_table = self.query_one("#hosts", DataTable)
        self.forwards_panel = self.query_one("#forwards", Static)
        self.status_line = self.query_one("#status", Static)
        self.host_table.add_columns(*table_columns(self.config.show_proxy_command))
        if not self._loaded:
            self.load_hosts()
        self.refresh_table()
        self.search_input.focus()

    # ---------------------------------------------------------------- data
    def load_hosts(self) -> None:
        try:
            self.hosts = loader.load_hosts(self.config.config_paths)
        except SghError as exc:
            logger.exception("Failed to load hosts")
            self.set_status(str(exc), error=True)
            return
        self._loaded = True
        self.set_status(f"Loaded {len(self.hosts)} host(s)")

    def refresh_table(self) -> None:
        hosts = sort_hosts(self.hosts) if self.config.sort_by_name else self.hosts
        self.visible_hosts = filter_hosts(hosts, self.search_input.value)
        self.host_table.clear(columns=False)
        for host in self.visible_hosts:
            self.host_table.add_row(*host_row(host, self.config.show_proxy_command))
        if self.visible_hosts:
            self.host_table.move_cursor(row=0)
        self.forwards_panel.update(format_local_forwards(self.selected_host()))

    def selected_host(self) -> Optional[ResolvedHost]:
        row = self.host_table.cursor_row
        if 0 <= row < len(self.visible_hosts):
            return self.visible_hosts[row]
        return None

    def set_status(self, message: str, *, error: bool = False) -> None:
        self.status_line.set_class(error, "error")
        self.status_line.update(message)

    # ---------------------------------------------------------------- events
    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input is self.search_input:
            self.refresh_table()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self.action_connect()

    def on_data_table_row_highlighted(self, event: DataTable.RowHighlighted) -> None:
        self.forwards_panel.update(format_local_forwards(self.selected_host()))

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        event.stop()
        self.action_connect()

    # ---------------------------------------------------------------- actions
    def action_cursor_down(self) -> None:
        self.host_table.action_cursor_down()

    def action_cursor_up(self) -> None:
        self.host_table.action_cursor_up()

    def action_reload(self) -> None:
        self.load_hosts()
        self.refresh_table()

    def action_connect(self) -> None:
        host = self.selected_host()
        if host is None:
            self.set_status("No host selected", error=True)
            return
        with self.suspend():
            try:
                code = run_session(
                    host,
                    self.config.command_template,
                    on_start=self.config.command_template_on_session_start,
                    on_end=self.config.command_template_on_session_end,
                )
            except SghError as exc:
                logger.error("Session for %s failed: %s", host.name, exc)
                code = None
                message = str(exc)
        exit_code = session_exit_code(code, self.config.exit_after_ssh_session_ends)
        if exit_code is not None:
            self.exit(return_code=exit_code)
            return
        if code is None:
            self.set_status(message, error=True)
        else:
            self.set_status(f"Session with {host.name} ended")


__all__ = ["AppConfig", "SghApp", "format_local_forwards", "host_row", "session_exit_code", "table_columns"]
