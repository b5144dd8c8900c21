"""Screen layout for the proctop dashboard."""

from collections.abc import Sequence

from rich.text import Text

from proctop.models import ProcessSnapshot, SystemMetrics
from proctop.sorting import SortKey, SortState

GAUGE_WIDTH = 30
USER_WIDTH = 10
NAME_WIDTH = 24

# summary, CPU gauge, memory gauge, status, column header, rule
FIXED_HEADER_ROWS = 6

HELP = "q:quit c/m/p/n/u/s/x or 1-7:sort r:reverse k:kill"

# (title, format spec, sort key) in display order
COLUMNS: list[tuple[str, str, SortKey | None]] = [
    ("PID", ">7", SortKey.PID),
    ("PPID", ">7", None),
    ("USER", f"<{USER_WIDTH}", SortKey.USER),
    ("S", "<1", SortKey.STATE),
    ("CPU%", ">6", SortKey.CPU),
    ("MEM%", ">6", SortKey.MEM),
    ("RES", ">7", SortKey.RSS),
    ("VIRT", ">7", None),
    ("NAME", "", SortKey.NAME),
]


# C0 control characters and DEL, which would break a row across lines
_CONTROL_CHARS = {code: "?" for code in [*range(0x20), 0x7F]}


def printable(value: str) -> str:
    """Replace control characters so a cell stays on one screen line."""
    return value.translate(_CONTROL_CHARS)


def format_kb(size: int) -> str:
    """Format a size in KB as human-readable string."""
    for unit in ["K", "M", "G", "T"]:
        if size < 1024:
            return f"{size:5.1f}{unit}" if unit != "K" else f"{size:5d}{unit}"
        size = size / 1024
    return f"{size:.1f}P"


def gauge(label: str, percent: float | None, color: str) -> Text:
    """Draw a fixed-width block gauge, e.g. ``CPU [████░░░░]  50.0%``."""
    filled = 0
    if percent is not None:
        filled = min(max(int(percent / 100.0 * GAUGE_WIDTH), 0), GAUGE_WIDTH)
    value = f"{percent:5.1f}%" if percent is not None else "  n/a"
    return Text.assemble(
        f"{label:<3} [",
        ("█" * filled, color),
        ("░" * (GAUGE_WIDTH - filled), "dim"),
        f"] {value}",
    )


def summary_line(system: SystemMetrics) -> Text:
    """One-line system summary."""
    used_mb = system.used_kb // 1024
    total_mb = system.total_kb // 1024
    return Text.assemble(
        ("CPU: ", "bold"),
        f"{system.cpu_percent:5.1f}%  ",
        ("Mem: ", "bold"),
        f"{used_mb}/{total_mb} MB  ",
        ("Tasks: ", "bold"),
        f"{system.total_processes}, {system.running_processes} running",
    )


def status_line(sort_state: SortState | None, message: str) -> Text:
    """Operator message, or the active sort and key help."""
    if message:
        return Text(message, style="bold yellow")
    if sort_state is None:
        return Text(HELP, style="dim")
    arrow = "▼" if sort_state.descending else "▲"
    return Text.assemble(
        f"Sort: {sort_state.key.value.upper()} {arrow}  ",
        (HELP, "dim"),
    )


def header_line(sort_state: SortState | None) -> Text:
    """Column titles, with the active sort column highlighted."""
    text = Text(style="bold")
    for i, (title, spec, key) in enumerate(COLUMNS):
        if i:
            text.append(" ")
        style = "reverse" if sort_state is not None and key is sort_state.key else ""
        text.append(format(title, spec), style=style)
    return text


def process_row(proc: ProcessSnapshot) -> Text:
    """Format one table row; every cell is truncated to its own width."""
    owner = printable(proc.owner)[:USER_WIDTH]
    name = printable(proc.name)[:NAME_WIDTH]
    cpu = f"{proc.cpu_percent:6.1f}" if proc.cpu_percent is not None else f"{'-':>6}"
    mem = f"{proc.memory_percent:6.1f}" if proc.memory_percent is not None else f"{'-':>6}"
    style = "green" if proc.state == "R" else ""
    return Text(
        f"{proc.pid:>7} {proc.ppid:>7} {owner:<{USER_WIDTH}} "
        f"{proc.state[:1]:1} {cpu} {mem} {format_kb(proc.rss_kb):>7} "
        f"{format_kb(proc.vms_kb):>7} {name}",
        style=style,
    )


def body_rows(process_count: int, rows: int) -> int:
    """Number of table rows that fit below the fixed header."""
    return max(0, min(process_count, rows - FIXED_HEADER_ROWS))


def render(
    system: SystemMetrics,
    processes: Sequence[ProcessSnapshot],
    rows: int,
    cols: int,
    sort_state: SortState | None = None,
    message: str = "",
) -> list[Text]:
    """
    Lay out the dashboard for a terminal of ``rows`` x ``cols`` cells.

    Returns one Text per screen line, each truncated to ``cols``. When the
    terminal is smaller than the fixed header only the summary is returned.
    """
    summary = summary_line(system)
    if rows < FIXED_HEADER_ROWS or cols <= 0:
        if cols > 0:
            summary.truncate(cols)
        return [summary]

    lines = [
        summary,
        gauge("CPU", system.cpu_percent, "green"),
        gauge("Mem", system.memory_percent, "cyan"),
        status_line(sort_state, message),
        header_line(sort_state),
        Text("─" * cols, style="dim"),
    ]
    lines.extend(process_row(proc) for proc in processes[: body_rows(len(processes), rows)])

    for line in lines:
        line.truncate(cols)
    return lines
