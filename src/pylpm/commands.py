"""The interactive command language."""

from dataclasses import dataclass
from enum import Enum

from pylpm.models import ProcessEntry
from pylpm.monitor import DEFAULT_INTERVAL, MIN_INTERVAL
from pylpm.views import FilterKey, GroupKey, SortKey

HELP_TEXT = """\
Available commands:
  refresh              Reload the process list now.
  auto [seconds|off]   Auto-refresh every [seconds] seconds (default 2), or stop.
  sort KEY [a|d]       Sort by memory/priority/pid/ppid/name/cpu, ascending or descending.
  filter KEY VALUE     Filter by memory/priority/cpu (above VALUE) or name/owner (contains VALUE).
  reset                Clear filter and expansion.
  terminate PID        Terminate a process with SIGTERM.
  kill PID             Force kill a process with SIGKILL.
  group owner|parent   Group processes by owner or parent PID.
  expand owner NAME    Show processes owned by NAME.
  expand pid PID       Show children of PID.
  help                 Show this help message.
  exit                 Quit."""


class CommandError(Exception):
    """Raised for input that is not a valid command."""


class Action(Enum):
    REFRESH = "refresh"
    AUTO = "auto"
    SORT = "sort"
    FILTER = "filter"
    RESET = "reset"
    TERMINATE = "terminate"
    KILL = "kill"
    GROUP = "group"
    EXPAND = "expand"
    HELP = "help"
    EXIT = "exit"


@dataclass(slots=True, frozen=True)
class Command:
    """A parsed command. Only the fields relevant to the action are set."""

    action: Action
    interval: float | None = None  # AUTO; None means stop
    sort_key: SortKey | None = None
    descending: bool = False
    filter_key: FilterKey | None = None
    group_key: GroupKey | None = None
    value: str = ""  # Filter value or expand target
    pid: int = 0


def _enum_arg(enum_type, token: str, what: str):
    try:
        return enum_type(token.lower())
    except ValueError:
        choices = "/".join(member.value for member in enum_type)
        raise CommandError(f"Invalid {what} '{token}'. Use {choices}.") from None


def _pid_arg(token: str) -> int:
    try:
        pid = int(token)
    except ValueError:
        raise CommandError(f"Invalid PID '{token}'.") from None
    if pid <= 0:
        raise CommandError(f"Invalid PID '{token}'.")
    return pid


def _parse_auto(args: list[str]) -> Command:
    if not args:
        return Command(Action.AUTO, interval=DEFAULT_INTERVAL)
    if args[0].lower() in ("off", "stop"):
        return Command(Action.AUTO, interval=None)
    try:
        interval = float(args[0])
    except ValueError:
        raise CommandError(f"Invalid interval '{args[0]}'.") from None
    return Command(Action.AUTO, interval=max(MIN_INTERVAL, interval))


def _parse_sort(args: list[str]) -> Command:
    if not args:
        raise CommandError("Usage: sort KEY [a|d]")
    key = _enum_arg(SortKey, args[0], "sort option")
    order = args[1].lower() if len(args) > 1 else "a"
    if order not in ("a", "d"):
        raise CommandError(f"Invalid order '{args[1]}'. Use a or d.")
    return Command(Action.SORT, sort_key=key, descending=order == "d")


def _parse_filter(args: list[str]) -> Command:
    if len(args) < 2:
        raise CommandError("Usage: filter KEY VALUE")
    key = _enum_arg(FilterKey, args[0], "filter option")
    value = " ".join(args[1:])
    try:
        if key in (FilterKey.MEMORY, FilterKey.CPU):
            float(value)
        elif key is FilterKey.PRIORITY:
            int(value)
    except ValueError:
        raise CommandError(f"Invalid threshold '{value}' for {key.value}.") from None
    return Command(Action.FILTER, filter_key=key, value=value)


def _parse_expand(args: list[str]) -> Command:
    if len(args) < 2:
        raise CommandError("Usage: expand owner NAME | expand pid PID")
    target = args[0].lower()
    if target == "owner":
        return Command(Action.EXPAND, group_key=GroupKey.OWNER, value=" ".join(args[1:]))
    if target == "pid":
        return Command(Action.EXPAND, group_key=GroupKey.PARENT, value=str(_pid_arg(args[1])))
    raise CommandError(f"Invalid expand target '{args[0]}'. Use owner or pid.")


def parse_command(text: str) -> Command:
    """
    Parse one line of user input.

    Raises:
        CommandError: If the line is empty or not a valid command.
    """
    words = text.split()
    if not words:
        raise CommandError("Empty command. Type 'help' for options.")

    name, args = words[0].lower(), words[1:]
    try:
        action = Action(name)
    except ValueError:
        raise CommandError(f"Unknown command: '{text.strip()}'. Type 'help' for options.") from None

    if action is Action.AUTO:
        return _parse_auto(args)
    if action is Action.SORT:
        return _parse_sort(args)
    if action is Action.FILTER:
        return _parse_filter(args)
    if action is Action.EXPAND:
        return _parse_expand(args)
    if action in (Action.TERMINATE, Action.KILL):
        if not args:
            raise CommandError(f"Usage: {action.value} PID")
        return Command(action, pid=_pid_arg(args[0]))
    if action is Action.GROUP:
        if not args:
            raise CommandError("Usage: group owner|parent")
        return Command(action, group_key=_enum_arg(GroupKey, args[0], "group type"))
    return Command(action)


def format_groups(groups: dict, key: GroupKey) -> str:
    """Render a group summary with a hint on how to expand it."""
    if key is GroupKey.OWNER:
        lines = ["Grouped by owner:", ""]
        lines += [f"[+] {owner} ({len(members)} processes)" for owner, members in groups.items()]
        lines += ["", "Type 'expand owner NAME' to view details."]
    else:
        lines = ["Grouped by parent PID:", ""]
        lines += [f"[+] PID {ppid} ({len(members)} children)" for ppid, members in groups.items()]
        lines += ["", "Type 'expand pid PID' to view children."]
    return "\n".join(lines)


def format_expansion(entries: list[ProcessEntry], key: GroupKey, value: str) -> str:
    """Render the members of one expanded group."""
    if not entries:
        if key is GroupKey.OWNER:
            return "Owner group not found."
        return f"No children found for PID {value}."

    if key is GroupKey.OWNER:
        lines = [f"Processes owned by: {value}"]
        lines += [f"  PID {p.pid} | Name: {p.name} | PPID: {p.ppid}" for p in entries]
    else:
        lines = [f"Children of PID {value}:"]
        lines += [f"  PID {p.pid} | Name: {p.name} | Owner: {p.owner}" for p in entries]
    return "\n".join(lines)
