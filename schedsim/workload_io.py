from __future__ import annotations

import csv
import io
import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List

from .errors import WorkloadFormatError
from .models import Process
from .validation import validate_processes

logger = logging.getLogger(__name__)

RawRecord = Dict[str, Any]

_FIELD_SPLIT = re.compile(r"[\s,;|]+")


def load_workload(path: str | Path) -> List[Process]:
    """
    Load a workload file (JSON, CSV or plain text) into validated Process objects.
    """
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            content = f.read()
    except UnicodeDecodeError as exc:
        raise WorkloadFormatError([f"{path.name}: not valid UTF-8 text ({exc.reason})"]) from exc

    records = parse_workload(content, filename=path.name)
    processes = validate_processes(records)
    logger.info("Loaded %d processes from %s", len(processes), path)
    return processes


def parse_workload(content: str, filename: str = "") -> List[RawRecord]:
    """
    Detect the format of `content` and parse it into raw process records.

    Records are dicts with `id`, `arrival_time`, `burst_time` and
    `priority`; values are not validated here.
    """
    text = content.strip()
    if not text:
        return []

    if text.startswith(("{", "[")):
        logger.debug("Parsing %s as JSON", filename or "workload")
        return parse_json(text)

    first_line = text.splitlines()[0].lower()
    if filename.lower().endswith(".csv") or "," in first_line:
        if any(word in first_line for word in ("id", "arrival", "burst")):
            logger.debug("Parsing %s as CSV", filename or "workload")
            return parse_csv(text)

    legacy = parse_counted(text)
    if legacy:
        logger.debug("Parsing %s as counted rows", filename or "workload")
        return legacy
    return parse_lines(text)


def _is_comment(line: str) -> bool:
    return line.startswith("#") or line.startswith("//")


def parse_lines(content: str) -> List[RawRecord]:
    """
    One process per line: `id arrival burst [priority]`.

    Fields may be separated by whitespace, ',', ';' or '|'. Lines starting
    with '#' or '//' are skipped, as are lines with fewer than three fields.
    """
    records: List[RawRecord] = []
    for line in content.splitlines():
        line = line.strip()
        if not line or _is_comment(line):
            continue
        parts = [p for p in _FIELD_SPLIT.split(line) if p]
        if len(parts) < 3:
            continue
        records.append(
            {
                "id": parts[0],
                "arrival_time": parts[1],
                "burst_time": parts[2],
                "priority": parts[3] if len(parts) > 3 else None,
            }
        )
    return records


def _column_field(header: str) -> str | None:
    header = header.strip().lower()
    if "arrival" in header:
        return "arrival_time"
    if "burst" in header or "execution" in header or "cpu" in header:
        return "burst_time"
    if "priority" in header:
        return "priority"
    if "id" in header or "name" in header or "process" in header:
        return "id"
    return None


def parse_csv(content: str) -> List[RawRecord]:
    """
    CSV with a header row; columns are matched loosely by name.
    """
    reader = csv.reader(io.StringIO(content.strip()))
    rows = [row for row in reader if any(cell.strip() for cell in row)]
    if len(rows) < 2:
        return []

    fields = [_column_field(h) for h in rows[0]]
    records: List[RawRecord] = []
    for row in rows[1:]:
        record: RawRecord = {"id": None, "arrival_time": None, "burst_time": None, "priority": None}
        for name, value in zip(fields, row):
            if name is not None:
                record[name] = value.strip()
        records.append(record)
    return records


def _record_from_mapping(entry: Any, index: int) -> RawRecord:
    if not isinstance(entry, dict):
        raise WorkloadFormatError([f"Process {index}: expected an object, got {type(entry).__name__}"])

    def first(*keys: str, default: Any = None) -> Any:
        for key in keys:
            if entry.get(key) is not None:
                return entry[key]
        return default

    return {
        "id": first("id", "pid", "name", default=f"P{index}"),
        "arrival_time": first("arrivalTime", "arrival_time", "arrival", default=0),
        "burst_time": first("burstTime", "burst_time", "burst", "executionTime"),
        "priority": first("priority"),
    }


def parse_json(content: str) -> List[RawRecord]:
    """
    JSON array of process objects, or an object with a `processes` array.

    Missing ids default to P1, P2, ... and a missing arrival time to 0.
    """
    try:
        raw = json.loads(content)
    except json.JSONDecodeError as exc:
        raise WorkloadFormatError([f"Invalid JSON format: {exc}"]) from exc

    if isinstance(raw, dict):
        raw = raw.get("processes")
    if not isinstance(raw, list):
        raise WorkloadFormatError(["JSON workload must be a list of process objects"])

    return [_record_from_mapping(entry, index) for index, entry in enumerate(raw, start=1)]


def parse_counted(content: str) -> List[RawRecord]:
    """
    Legacy format: the first line holds the process count, followed by one
    `arrival burst [priority]` row per process. Ids are assigned P1..Pn.

    Returns an empty list when the content is not in this format.
    """
    lines = [line.strip() for line in content.splitlines() if line.strip() and not line.strip().startswith("#")]
    if not lines:
        return []

    header = lines[0].split()
    if len(header) != 1 or not header[0].isdigit():
        return []

    count = int(header[0])
    records: List[RawRecord] = []
    for index, line in enumerate(lines[1 : count + 1], start=1):
        parts = line.split()
        if len(parts) < 2:
            continue
        records.append(
            {
                "id": f"P{index}",
                "arrival_time": parts[0],
                "burst_time": parts[1],
                "priority": parts[2] if len(parts) > 2 else None,
            }
        )
    return records
