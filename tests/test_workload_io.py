from pathlib import Path

import pytest

from schedsim.errors import ValidationError, WorkloadFormatError
from schedsim.models import Process
from schedsim.workload_io import load_workload, parse_workload


def test_load_json(tmp_path: Path):
    p = tmp_path / "w.json"
    p.write_text('[{"pid":"A","arrival_time":0,"burst_time":3,"priority":1},'
                 '{"pid":"B","arrival_time":1,"burst_time":2}]')
    procs = load_workload(p)
    assert isinstance(procs[0], Process)
    assert procs[1].priority == 0
    assert procs[1].arrival_time == 1


def test_load_json_object_with_camel_case(tmp_path: Path):
    p = tmp_path / "w.json"
    p.write_text('{"processes": [{"arrivalTime": 2, "burstTime": 4}, {"name": "X", "burst": 1}]}')
    procs = load_workload(p)
    assert procs == [Process("P1", 2, 4, 0), Process("X", 0, 1, 0)]


def test_load_csv(tmp_path: Path):
    p = tmp_path / "w.csv"
    p.write_text("pid,arrival_time,burst_time,priority\nA,0,3,1\nB,1,2,\n")
    procs = load_workload(p)
    assert procs[0].pid == "A"
    assert procs[0].priority == 1
    assert procs[1].priority == 0


def test_csv_headers_match_loosely():
    records = parse_workload("Process Name, Arrival, CPU Burst\nA, 0, 3\n")
    assert records == [{"id": "A", "arrival_time": "0", "burst_time": "3", "priority": None}]


def test_line_format_with_comments_and_mixed_separators():
    text = "# id arrival burst priority\nP1 0 5 2\n// skipped\nP2;1;3\nP3 | 2 | 8 | 1\n"
    records = parse_workload(text)
    assert [r["id"] for r in records] == ["P1", "P2", "P3"]
    assert records[1]["priority"] is None
    assert records[2]["priority"] == "1"


def test_counted_legacy_format(tmp_path: Path):
    p = tmp_path / "w.txt"
    p.write_text("3\n0 5 2\n1 3\n2 8 1\n")
    procs = load_workload(p)
    assert [proc.pid for proc in procs] == ["P1", "P2", "P3"]
    assert procs[2] == Process("P3", 2, 8, 1)


def test_invalid_json_raises_format_error():
    with pytest.raises(WorkloadFormatError):
        parse_workload("[{oops}]")


def test_invalid_rows_fail_validation(tmp_path: Path):
    p = tmp_path / "w.txt"
    p.write_text("P1 0 0\nP1 x 3\n")
    with pytest.raises(ValidationError) as excinfo:
        load_workload(p)
    assert len(excinfo.value.errors) == 3


def test_load_rejects_non_utf8_bytes(tmp_path: Path):
    p = tmp_path / "w.txt"
    p.write_bytes(b"P1 0 5\nP2 1 \xff\xfe 3\n")
    with pytest.raises(WorkloadFormatError) as excinfo:
        load_workload(p)
    assert "w.txt: not valid UTF-8 text" in str(excinfo.value)
