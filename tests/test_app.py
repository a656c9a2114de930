"""Tests for pylpm application."""

import pytest
from textual.widgets import DataTable

from pylpm import control
from pylpm.app import CommandInput, HeaderStats, ProcessTable, PylpmApp
from pylpm.config import AppConfig
from pylpm.models import ProcessEntry, Snapshot
from pylpm.views import SortKey


@pytest.fixture
def populated(fake_proc):
    """Three processes: init (root), sshd (root) and bash (alice)."""
    fake_proc.add(1, "init", ppid=0, uid="0", rss_kb=4096)
    fake_proc.add(200, "sshd", ppid=1, uid="0", rss_kb=8192)
    fake_proc.add(300, "bash", ppid=200, uid="1000", utime=150, stime=50, start_time=10000)
    return fake_proc


@pytest.fixture
def app(populated, builder):
    return PylpmApp(AppConfig(proc_root=populated.root), builder=builder)


@pytest.mark.asyncio
async def test_app_creation(app):
    """Test PylpmApp can be instantiated."""
    assert app.title == "pylpm"
    assert app.sub_title == "Linux Process Manager"


@pytest.mark.asyncio
async def test_app_has_monitor(app):
    """Test PylpmApp has SnapshotMonitor initialized."""
    assert app._monitor is not None
    assert app._update_queue is not None
    assert app._monitor.poll_rate == 2.0


@pytest.mark.asyncio
async def test_app_compose(app):
    """Test PylpmApp composes correctly."""
    async with app.run_test() as pilot:
        assert pilot.app.query_one("#header-stats") is not None
        assert pilot.app.query_one("#process-table") is not None
        assert pilot.app.query_one("#output") is not None
        assert pilot.app.query_one("#command", CommandInput).display is False


@pytest.mark.asyncio
async def test_app_quit_binding(app):
    """Test that 'q' binding triggers quit."""
    async with app.run_test() as pilot:
        await pilot.press("q")
        assert pilot.app._exit
        assert not pilot.app._monitor.is_running


@pytest.mark.asyncio
async def test_app_receives_updates_from_monitor(app):
    """Test that the app shows snapshots published by the monitor."""
    async with app.run_test() as pilot:
        await pilot.pause(1.5)

        assert app._monitor.is_running
        process_table = pilot.app.query_one(ProcessTable)
        assert sorted(process_table.row_pids) == [1, 200, 300]
        assert len(app.current_snapshot) == 3

        header = pilot.app.query_one("#header-stats", HeaderStats)
        assert "Processes: 3" in header._summary
        assert header._view_label == "all processes"


@pytest.mark.asyncio
async def test_app_sort_binding(app):
    """Test that F6 binding cycles sort key."""
    async with app.run_test() as pilot:
        assert app.view_state.sort_key is None

        await pilot.press("f6")
        assert app.view_state.sort_key is SortKey.MEMORY
        assert app.view_state.descending is True

        await pilot.press("r")
        assert app.view_state.descending is False


@pytest.mark.asyncio
async def test_sort_command_orders_rows(app, builder):
    async with app.run_test() as pilot:
        app.show_snapshot(builder.build())

        message = app.run_command("sort pid d")

        assert message == "Displayed processes in descending order of pid."
        assert pilot.app.query_one(ProcessTable).row_pids == [300, 200, 1]


@pytest.mark.asyncio
async def test_filter_and_reset_commands(app, builder):
    async with app.run_test() as pilot:
        app.show_snapshot(builder.build())
        process_table = pilot.app.query_one(ProcessTable)

        assert app.run_command("filter owner alice") == "Filtered processes displayed."
        assert process_table.row_pids == [300]

        app.run_command("reset")
        assert sorted(process_table.row_pids) == [1, 200, 300]


@pytest.mark.asyncio
async def test_invalid_filter_threshold(app):
    async with app.run_test():
        message = app.run_command("filter cpu lots")
        assert "Invalid threshold" in message
        assert app.view_state.filter_key is None


@pytest.mark.asyncio
async def test_group_and_expand_commands(app, builder):
    async with app.run_test() as pilot:
        app.show_snapshot(builder.build())

        groups = app.run_command("group owner")
        assert "[+] root (2 processes)" in groups
        assert "[+] alice (1 processes)" in groups

        children = app.run_command("expand pid 1")
        assert "PID 200 | Name: sshd | Owner: root" in children
        assert pilot.app.query_one(ProcessTable).row_pids == [200]


@pytest.mark.asyncio
async def test_unknown_command(app):
    async with app.run_test():
        assert app.run_command("dance").startswith("Unknown command")
        assert "Available commands" in app.run_command("help")


@pytest.mark.asyncio
async def test_auto_command_controls_monitor(app):
    async with app.run_test():
        assert app.run_command("auto off") == "Auto-refresh stopped."
        assert not app._monitor.is_running

        assert app.run_command("auto 5") == "Auto-refreshing every 5 seconds."
        assert app._monitor.is_running
        assert app._monitor.poll_rate == 5.0


@pytest.mark.asyncio
async def test_terminate_command(app, monkeypatch):
    sent: list[int] = []
    monkeypatch.setattr(control, "terminate", sent.append)

    async with app.run_test():
        assert app.run_command("terminate 300") == "Process 300 terminated with SIGTERM."
        assert sent == [300]


@pytest.mark.asyncio
async def test_terminate_failure_suggests_kill(app, monkeypatch):
    def refuse(pid: int) -> None:
        raise control.TerminationError(f"SIGTERM to {pid} failed: permission denied")

    monkeypatch.setattr(control, "terminate", refuse)

    async with app.run_test():
        message = app.run_command("terminate 1")
        assert "permission denied" in message
        assert "kill 1" in message


@pytest.mark.asyncio
async def test_command_line_input(app):
    """Commands typed after '/' are run on Enter."""
    async with app.run_test() as pilot:
        command_input = pilot.app.query_one("#command", CommandInput)

        await pilot.press("slash")
        assert command_input.display is True
        assert command_input.has_focus

        await pilot.press("s", "o", "r", "t", "space", "p", "i", "d", "space", "d", "enter")
        assert app.view_state.sort_key is SortKey.PID
        assert app.view_state.descending is True
        assert command_input.display is False


@pytest.mark.asyncio
async def test_command_line_escape(app):
    async with app.run_test() as pilot:
        command_input = pilot.app.query_one("#command", CommandInput)

        await pilot.press("slash", "x", "escape")
        assert command_input.display is False
        assert command_input.value == ""


@pytest.mark.asyncio
async def test_process_table_update_in_place(app):
    """Rows keep their order when the same pids arrive again."""
    async with app.run_test() as pilot:
        process_table = pilot.app.query_one(ProcessTable)
        rows = [ProcessEntry(pid=10, name="a"), ProcessEntry(pid=20, name="b")]
        process_table.update_rows(rows)
        assert process_table.row_pids == [10, 20]

        process_table.update_rows([ProcessEntry(pid=10, name="a", cpu_percent=50.0), rows[1]])
        assert process_table.row_pids == [10, 20]

        process_table.update_rows([rows[1]])
        assert process_table.row_pids == [20]


@pytest.mark.asyncio
async def test_bracketed_process_name_is_shown(app):
    async with app.run_test() as pilot:
        app.show_snapshot(Snapshot(entries=[ProcessEntry(pid=5, name="[/x]evil", owner="[b]")]))

        assert pilot.app.query_one(ProcessTable).row_pids == [5]
        table = pilot.app.query_one("#process-table", DataTable)
        assert table.get_cell("5", "name").plain == "[/x]evil"

        app.show_snapshot(Snapshot(entries=[ProcessEntry(pid=5, name="[/y]evil")]))
        assert table.get_cell("5", "name").plain == "[/y]evil"


@pytest.mark.asyncio
async def test_unreadable_root_shows_error(tmp_path, host):
    from pylpm.snapshot import SnapshotBuilder

    app = PylpmApp(AppConfig(proc_root=tmp_path / "missing"), SnapshotBuilder.for_root(tmp_path / "missing", host))
    async with app.run_test() as pilot:
        app.show_snapshot(Snapshot(error="Error opening /missing"))
        header = pilot.app.query_one("#header-stats", HeaderStats)
        assert "Error opening" in header._summary
        assert pilot.app.query_one(ProcessTable).row_pids == []
