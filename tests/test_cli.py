import json
from pathlib import Path

import pytest

from schedsim.cli import main
from schedsim.gantt import render_gantt
from schedsim.models import IDLE, GanttEvent


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    monkeypatch.setenv("COLUMNS", "200")


def _workload(tmp_path: Path) -> Path:
    p = tmp_path / "w.json"
    p.write_text(
        '[{"id":"P1","arrivalTime":0,"burstTime":5,"priority":2},'
        '{"id":"P2","arrivalTime":1,"burstTime":3,"priority":1},'
        '{"id":"P3","arrivalTime":2,"burstTime":8,"priority":3}]'
    )
    return p


def test_run_prints_tables(tmp_path: Path, capsys):
    assert main(["run", "-a", "fcfs", "-w", str(_workload(tmp_path))]) == 0
    out = capsys.readouterr().out
    assert "FCFS" in out
    assert "Per-process metrics" in out
    assert "System metrics" in out


def test_run_json_output(tmp_path: Path, capsys):
    assert main(["run", "-a", "rr", "-q", "3", "-w", str(_workload(tmp_path)), "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["algorithm"] == "RR"
    assert data["options"]["quantum"] == 3
    assert data["timeline"][0] == {"pid": "P1", "start": 0, "end": 3}


def test_run_plain_gantt(tmp_path: Path, capsys):
    assert main(["run", "-a", "sjf", "-w", str(_workload(tmp_path)), "--plain"]) == 0
    assert "Gantt Chart:" in capsys.readouterr().out


def test_run_save_and_history(tmp_path: Path, capsys):
    store = tmp_path / "store"
    assert main(["run", "-a", "aging", "-w", str(_workload(tmp_path)), "--save", str(store), "--test-case", "demo"]) == 0
    assert len(list(store.glob("*.json"))) == 1

    capsys.readouterr()
    assert main(["history", "--store", str(store), "-a", "aging"]) == 0
    out = capsys.readouterr().out
    assert "AGING" in out
    assert "demo" in out


def test_unknown_algorithm_exits_with_error(tmp_path: Path, capsys):
    assert main(["run", "-a", "nope", "-w", str(_workload(tmp_path))]) == 2
    assert "not found" in capsys.readouterr().out


def test_invalid_workload_exits_with_error(tmp_path: Path, capsys):
    p = tmp_path / "bad.txt"
    p.write_text("P1 0 0\n")
    assert main(["run", "-a", "fcfs", "-w", str(p)]) == 2
    assert "Invalid burst time" in capsys.readouterr().out


def test_compare_reports_bad_algorithm(tmp_path: Path, capsys):
    code = main(["compare", "-w", str(_workload(tmp_path)), "-a", "FCFS", "NOT_REAL", "SJF", "--json"])
    assert code == 0
    data = json.loads(capsys.readouterr().out)
    assert list(data["results"]) == ["FCFS", "SJF"]
    assert data["errors"][0]["algorithm"] == "NOT_REAL"
    assert data["ranking"]["avg_waiting_time"]["algorithm"] in {"FCFS", "SJF"}


def test_list_command(capsys):
    assert main(["list"]) == 0
    out = capsys.readouterr().out
    assert "PRIORITY_NON_PREEMPTIVE" in out


def test_render_gantt_marks_idle():
    text = render_gantt([GanttEvent(IDLE, 0, 2), GanttEvent("A", 2, 5)])
    lines = text.splitlines()
    assert lines[1] == "|..===|"
    assert lines[2].strip() == "A"
    assert lines[3].startswith("0")
    assert lines[3].endswith("5")


def test_non_utf8_workload_exits_with_error(tmp_path: Path, capsys):
    p = tmp_path / "w.txt"
    p.write_bytes(b"P1 0 5\nP2 1 \xff\xfe 3\n")
    assert main(["run", "-a", "fcfs", "-w", str(p)]) == 2
    assert "not valid UTF-8" in capsys.readouterr().out


def test_compare_rejects_non_positive_workers(tmp_path: Path, capsys):
    assert main(["compare", "-w", str(_workload(tmp_path)), "--workers", "-1"]) == 2
    assert "max_workers must be at least 1" in capsys.readouterr().out


def test_history_rejects_negative_limit(tmp_path: Path, capsys):
    assert main(["history", "--store", str(tmp_path), "--limit", "-1"]) == 2
    assert "limit must be a non-negative integer" in capsys.readouterr().out
