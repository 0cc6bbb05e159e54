from __future__ import annotations

from typing import Iterable, List

from .models import GanttEvent


def compact_timeline(events: Iterable[GanttEvent]) -> List[GanttEvent]:
    """
    Merge raw Gantt events into the minimal ordered sequence.

    Consecutive events for the same pid whose boundaries touch are merged
    into one; zero-length events are dropped. The input is not modified.
    """
    merged: List[GanttEvent] = []
    current = None

    for event in events:
        if event.start == event.end:
            continue
        if current is not None and current.pid == event.pid and current.end == event.start:
            current.end = event.end
            continue
        if current is not None:
            merged.append(current)
        current = GanttEvent(pid=event.pid, start=event.start, end=event.end)

    if current is not None:
        merged.append(current)
    return merged
