import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from schedsim.errors import ValidationError
from schedsim.models import Process
from schedsim.registry import run_algorithm
from schedsim.store import ResultStore


def _result(name="FCFS"):
    return run_algorithm(name, [Process("P1", 0, 3), Process("P2", 1, 2)])


def test_save_writes_json_record(tmp_path: Path):
    store = ResultStore(tmp_path / "results")
    path = store.save(_result(), test_case="small")

    record = json.loads(path.read_text())
    assert record["algorithm"] == "FCFS"
    assert record["test_case"] == "small"
    assert record["result"]["timeline"][0] == {"pid": "P1", "start": 0, "end": 3}


def test_history_filters_and_orders_newest_first(tmp_path: Path):
    store = ResultStore(tmp_path)
    base = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    store.save(_result("FCFS"), test_case="a", created_at=base)
    store.save(_result("RR"), test_case="b", created_at=base + timedelta(minutes=1))
    store.save(_result("RR"), test_case="a", created_at=base + timedelta(minutes=2))

    records = store.history()
    assert len(records) == 3
    assert records[0]["created_at"] > records[-1]["created_at"]

    assert [r["test_case"] for r in store.history(algorithm="rr")] == ["a", "b"]
    assert [r["algorithm"] for r in store.history(test_case="a")] == ["RR", "FCFS"]
    assert len(store.history(limit=1)) == 1


def test_history_of_missing_directory_is_empty(tmp_path: Path):
    assert ResultStore(tmp_path / "nope").history() == []


def test_history_rejects_negative_limit(tmp_path: Path):
    store = ResultStore(tmp_path)
    store.save(_result())
    with pytest.raises(ValidationError):
        store.history(limit=-1)
    assert store.history(limit=0) == []
