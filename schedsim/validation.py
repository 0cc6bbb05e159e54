from __future__ import annotations

from typing import Any, List, Mapping, Optional, Sequence, Union

from .errors import ValidationError
from .models import Process

RawProcess = Union[Process, Mapping[str, Any]]

_ID_KEYS = ("id", "pid", "name")
_ARRIVAL_KEYS = ("arrivalTime", "arrival_time", "arrival")
_BURST_KEYS = ("burstTime", "burst_time", "burst", "executionTime")

_MISSING = object()


def _lookup(record: Mapping[str, Any], keys: Sequence[str]) -> Any:
    for key in keys:
        value = record.get(key)
        if value is not None and value != "":
            return value
    return _MISSING


def _as_int(value: Any) -> Optional[int]:
    """
    Interpret `value` as an integer, or return None if it is not one.

    Numeric strings are accepted so rows read from CSV or text files can be
    validated directly.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _normalize(record: RawProcess) -> dict:
    if isinstance(record, Process):
        return {
            "pid": record.pid,
            "arrival_time": record.arrival_time,
            "burst_time": record.burst_time,
            "priority": record.priority,
        }
    if not isinstance(record, Mapping):
        return {"pid": _MISSING, "arrival_time": _MISSING, "burst_time": _MISSING, "priority": _MISSING}
    return {
        "pid": _lookup(record, _ID_KEYS),
        "arrival_time": _lookup(record, _ARRIVAL_KEYS),
        "burst_time": _lookup(record, _BURST_KEYS),
        "priority": _lookup(record, ("priority",)),
    }


def _check(records: Sequence[RawProcess]) -> tuple[List[str], List[Process]]:
    if not records:
        return ["No valid processes found"], []

    errors: List[str] = []
    processes: List[Process] = []
    seen: set[str] = set()

    for index, record in enumerate(records, start=1):
        fields = _normalize(record)
        problems: List[str] = []

        pid = fields["pid"]
        if pid is _MISSING or not str(pid).strip():
            label = f"Process {index}"
            problems.append("Missing id")
            pid = None
        else:
            pid = str(pid).strip()
            label = f"Process {index} ({pid})"
            if pid in seen:
                problems.append(f"Duplicate id '{pid}'")
            seen.add(pid)

        arrival = _as_int(fields["arrival_time"]) if fields["arrival_time"] is not _MISSING else None
        if arrival is None or arrival < 0:
            problems.append("Invalid arrival time (must be an integer >= 0)")

        burst = _as_int(fields["burst_time"]) if fields["burst_time"] is not _MISSING else None
        if burst is None or burst <= 0:
            problems.append("Invalid burst time (must be > 0)")

        priority: Optional[int] = 0
        if fields["priority"] is not _MISSING:
            priority = _as_int(fields["priority"])
            if priority is None:
                problems.append("Invalid priority")

        if problems:
            errors.extend(f"{label}: {problem}" for problem in problems)
            continue

        processes.append(Process(pid=pid, arrival_time=arrival, burst_time=burst, priority=priority))

    return errors, processes


def check_processes(records: Sequence[RawProcess]) -> List[str]:
    """
    Return a list of per-process error messages (empty when the input is valid).
    """
    errors, _ = _check(records)
    return errors


def validate_processes(records: Sequence[RawProcess]) -> List[Process]:
    """
    Validate raw process records and convert them into Process objects.

    Raises ValidationError carrying every problem found when any record is
    malformed or the list is empty.
    """
    errors, processes = _check(records)
    if errors:
        raise ValidationError(errors)
    return processes
