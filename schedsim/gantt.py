from __future__ import annotations

from typing import Dict, List

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import GanttEvent

COLORS = ["red", "green", "yellow", "blue", "magenta", "cyan"]


def _time_marks(events: List[GanttEvent], offset: int = 0) -> str:
    """
    Boundary times placed under the column where each slice ends; marks that
    would collide with the previous one are skipped.
    """
    marks = str(events[0].start)
    column = offset
    for event in events:
        column += max(1, event.duration)
        if len(marks) < column:
            marks = marks.ljust(column) + str(event.end)
    return marks


def render_gantt(events: List[GanttEvent]) -> str:
    """
    Plain-text Gantt chart; idle stretches are drawn with dots.
    """
    if not events:
        return "(no execution)"

    line = "|"
    labels = " "
    for event in events:
        width = max(1, event.duration)
        line += ("." if event.is_idle else "=") * width
        labels += ("" if event.is_idle else event.pid[:width]).ljust(width)
    line += "|"

    return "\n".join(["Gantt Chart:", line, labels.rstrip(), _time_marks(events, offset=1)])


def build_rich_gantt(events: List[GanttEvent]) -> tuple[Panel, str]:
    """
    Build a Rich Panel containing a colored Gantt chart and a string with time marks.
    """
    if not events:
        return Panel("No execution", title="Gantt Chart"), ""

    pid_to_color: Dict[str, str] = {}

    def pid_color(pid: str) -> str:
        if pid not in pid_to_color:
            pid_to_color[pid] = COLORS[len(pid_to_color) % len(COLORS)]
        return pid_to_color[pid]

    timeline = Text()
    labels = Text()

    for event in events:
        width = max(1, event.duration)
        if event.is_idle:
            timeline.append("." * width, style="dim")
            labels.append(" " * width)
            continue
        timeline.append(" " * width, style=f"on {pid_color(event.pid)}")
        labels.append(event.pid[:width].ljust(width), style="bold")

    table = Table.grid(padding=(0, 0))
    table.add_row(timeline)
    table.add_row(labels)

    return Panel.fit(table, title="Gantt Chart"), _time_marks(events)
