"""pylpm - Main Textual application."""

import logging
from queue import Empty, Queue

from rich.markup import escape
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.css.query import NoMatches
from textual.widgets import DataTable, Footer, Input, Static

from pylpm import control
from pylpm.commands import (
    HELP_TEXT,
    Action,
    Command,
    CommandError,
    format_expansion,
    format_groups,
    parse_command,
)
from pylpm.config import AppConfig
from pylpm.models import ProcessEntry, Snapshot
from pylpm.monitor import SnapshotMonitor
from pylpm.render import COLUMNS, row_cells, summary_line
from pylpm.snapshot import SnapshotBuilder
from pylpm.views import GroupKey, ViewState, children_of, group_by_owner, group_by_parent, owned_by

logger = logging.getLogger(__name__)


class HeaderStats(Static):
    """Header widget showing snapshot totals and the active view."""

    DEFAULT_CSS = """
    HeaderStats {
        height: auto;
        min-height: 2;
        padding: 0 1;
        background: $surface;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize HeaderStats."""
        super().__init__("Fetching process list...", *args, **kwargs)
        self._summary: str = ""
        self._view_label: str = ""

    def update_stats(self, snapshot: Snapshot, cpu_count: int, view_label: str) -> None:
        """Update the header from a snapshot and the current view."""
        self._summary = summary_line(snapshot, cpu_count)
        self._view_label = view_label
        self.update(f"{self._summary}\nView: {escape(view_label)}")


class ProcessTable(Container):
    """Container for the process data table."""

    DEFAULT_CSS = """
    ProcessTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize ProcessTable."""
        super().__init__(*args, **kwargs)
        self._row_pids: list[int] = []

    @property
    def row_pids(self) -> list[int]:
        """Pids of the displayed rows, top to bottom."""
        return list(self._row_pids)

    def compose(self) -> ComposeResult:
        """Compose the process table."""
        yield DataTable(id="process-table")

    def on_mount(self) -> None:
        """Initialize the data table when mounted."""
        table = self.query_one("#process-table", DataTable)
        table.cursor_type = "row"
        for label, key, width in COLUMNS:
            table.add_column(label, key=key, width=width)

    def update_rows(
        self, rows: list[ProcessEntry], high_cpu: float = 10.0, high_memory: float = 5.0
    ) -> None:
        """
        Show rows in the given order.

        When the order is unchanged, cells are updated in place to avoid
        re-rendering the whole table; otherwise the table is rebuilt.
        """
        table = self.query_one("#process-table", DataTable)
        new_pids = [proc.pid for proc in rows]

        if new_pids == self._row_pids:
            for proc in rows:
                cells = row_cells(proc, high_cpu, high_memory)
                for (_, key, _), value in zip(COLUMNS, cells):
                    table.update_cell(str(proc.pid), key, value)
            return

        cursor_row = table.cursor_row
        table.clear()
        for proc in rows:
            table.add_row(*row_cells(proc, high_cpu, high_memory), key=str(proc.pid))
        self._row_pids = new_pids
        if rows:
            table.move_cursor(row=min(cursor_row, len(rows) - 1))

    def highlighted_pid(self) -> int | None:
        """Pid under the cursor, if any."""
        table = self.query_one("#process-table", DataTable)
        if not self._row_pids or not 0 <= table.cursor_row < len(self._row_pids):
            return None
        return self._row_pids[table.cursor_row]

    def focus_table(self) -> None:
        self.query_one("#process-table", DataTable).focus()


class CommandInput(Input):
    """Command line, hidden until requested."""

    BINDINGS = [Binding("escape", "cancel", "Cancel", show=False)]

    def action_cancel(self) -> None:
        """Hide without running anything."""
        self.value = ""
        self.display = False
        self.app.query_one(ProcessTable).focus_table()


class PylpmApp(App):
    """Main pylpm application."""

    TITLE = "pylpm"
    SUB_TITLE = "Linux Process Manager"

    CSS = """
    Screen {
        layout: vertical;
    }

    #header-stats {
        dock: top;
    }

    #output {
        height: auto;
        max-height: 12;
        padding: 0 1;
    }

    #command {
        display: none;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("f5", "refresh", "Refresh"),
        ("f6", "sort", "Sort"),
        ("r", "reverse", "Reverse"),
        ("p", "pause", "Pause"),
        ("k", "terminate", "Terminate"),
        ("slash", "command", "Command"),
    ]

    def __init__(
        self,
        config: AppConfig | None = None,
        builder: SnapshotBuilder | None = None,
    ) -> None:
        """Initialize the PylpmApp."""
        super().__init__()
        self._app_config = config or AppConfig()
        self._builder = builder or SnapshotBuilder.for_root(self._app_config.proc_root)
        self._update_queue: Queue[Snapshot] = Queue()
        self._monitor = SnapshotMonitor(
            self._builder, self._update_queue, poll_rate=self._app_config.interval
        )
        self._current_snapshot = Snapshot()
        self._view_state = ViewState(
            sort_key=self._app_config.sort_key, descending=self._app_config.descending
        )

    @property
    def current_snapshot(self) -> Snapshot:
        """The snapshot currently on screen."""
        return self._current_snapshot

    @property
    def view_state(self) -> ViewState:
        return self._view_state

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield HeaderStats(id="header-stats")
        yield ProcessTable()
        yield Static("Type / for commands, 'help' for the list.", id="output", markup=False)
        yield CommandInput(placeholder="command (help, sort cpu d, filter name ssh, ...)", id="command")
        yield Footer()

    def on_mount(self) -> None:
        """Start the snapshot monitor when the app is mounted."""
        self._monitor.start()
        self.set_interval(0.5, self._check_for_updates)

    def _check_for_updates(self) -> None:
        """Take the most recent snapshot off the queue, if any."""
        snapshot = None
        while True:
            try:
                snapshot = self._update_queue.get_nowait()
            except Empty:
                break

        if snapshot is not None:
            self.show_snapshot(snapshot)

    def show_snapshot(self, snapshot: Snapshot) -> None:
        """Replace the current snapshot and redraw."""
        self._current_snapshot = snapshot
        self._show_rows()

    def _show_rows(self) -> None:
        rows = self._view_state.apply(self._current_snapshot.entries)
        try:
            header = self.query_one("#header-stats", HeaderStats)
            header.update_stats(self._current_snapshot, self._builder.host.cpu_count, self._view_state.describe())
            self.query_one(ProcessTable).update_rows(
                rows, self._app_config.high_cpu_percent, self._app_config.high_memory_percent
            )
        except NoMatches:
            # Not mounted yet
            return

    def _say(self, message: str) -> None:
        self.query_one("#output", Static).update(message)

    def run_command(self, text: str) -> str:
        """Parse and execute one command line, returning the message shown."""
        try:
            message = self.execute_command(parse_command(text))
        except CommandError as exc:
            message = str(exc)
        self._say(message)
        return message

    def execute_command(self, command: Command) -> str:
        """
        Execute a parsed command.

        Raises:
            CommandError: If the command cannot be applied.
        """
        action = command.action

        if action is Action.REFRESH:
            self._refresh_now()
            return "Refreshing process list..."

        if action is Action.AUTO:
            if command.interval is None:
                self._monitor.stop()
                return "Auto-refresh stopped."
            self._monitor.poll_rate = command.interval
            self._monitor.start()
            return f"Auto-refreshing every {self._monitor.poll_rate:g} seconds."

        if action is Action.SORT:
            self._view_state.set_sort(command.sort_key, command.descending)
            self._show_rows()
            order = "descending" if command.descending else "ascending"
            return f"Displayed processes in {order} order of {command.sort_key.value}."

        if action is Action.FILTER:
            try:
                self._view_state.set_filter(command.filter_key, command.value)
            except ValueError as exc:
                raise CommandError(str(exc)) from exc
            self._show_rows()
            return "Filtered processes displayed."

        if action is Action.RESET:
            self._view_state.reset()
            self._show_rows()
            return "Showing all processes."

        if action in (Action.TERMINATE, Action.KILL):
            return self._send_signal(command.pid, force=action is Action.KILL)

        if action is Action.GROUP:
            if command.group_key is GroupKey.OWNER:
                groups = group_by_owner(self._current_snapshot.entries)
            else:
                groups = group_by_parent(self._current_snapshot.entries)
            return format_groups(groups, command.group_key)

        if action is Action.EXPAND:
            self._view_state.set_expand(command.group_key, command.value)
            self._show_rows()
            if command.group_key is GroupKey.OWNER:
                members = owned_by(self._current_snapshot.entries, command.value)
            else:
                members = children_of(self._current_snapshot.entries, int(command.value))
            return format_expansion(members, command.group_key, command.value)

        if action is Action.EXIT:
            self.action_quit()
            return "Exiting."

        return HELP_TEXT

    def _refresh_now(self) -> None:
        if self._monitor.is_running:
            self._monitor.refresh()
        else:
            self.show_snapshot(self._builder.build())

    def _send_signal(self, pid: int, force: bool) -> str:
        try:
            if force:
                control.kill(pid)
            else:
                control.terminate(pid)
        except control.TerminationError as exc:
            logger.warning("%s", exc)
            if force:
                return str(exc)
            return f"{exc}. Type 'kill {pid}' to force kill with SIGKILL."
        self._refresh_now()
        if force:
            return f"Process {pid} forcefully terminated with SIGKILL."
        return f"Process {pid} terminated with SIGTERM."

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Run the submitted command and hide the command line."""
        text = event.value
        event.input.value = ""
        event.input.display = False
        self.query_one(ProcessTable).focus_table()
        if text.strip():
            self.run_command(text)

    def action_command(self) -> None:
        """Show and focus the command line."""
        command_input = self.query_one("#command", CommandInput)
        command_input.display = True
        command_input.focus()

    def action_refresh(self) -> None:
        self._refresh_now()

    def action_sort(self) -> None:
        """Cycle through sort keys."""
        key = self._view_state.cycle_sort()
        self._show_rows()
        self.notify(f"Sort: {key.value.upper()}")

    def action_reverse(self) -> None:
        """Flip the sort order."""
        if self._view_state.sort_key is None:
            return
        self._view_state.descending = not self._view_state.descending
        self._show_rows()

    def action_pause(self) -> None:
        """Toggle auto-refresh."""
        if self._monitor.is_running:
            self._monitor.stop()
            self.notify("Auto-refresh paused")
        else:
            self._monitor.start()
            self.notify(f"Auto-refresh every {self._monitor.poll_rate:g}s")

    def action_terminate(self) -> None:
        """Send SIGTERM to the highlighted process."""
        pid = self.query_one(ProcessTable).highlighted_pid()
        if pid is None:
            return
        self._say(self._send_signal(pid, force=False))

    def action_quit(self) -> None:
        """Handle quit action with graceful cleanup."""
        self._monitor.stop()
        self.exit()


def run(config: AppConfig, builder: SnapshotBuilder | None = None) -> None:
    """Run the TUI until the user quits."""
    PylpmApp(config, builder).run()
