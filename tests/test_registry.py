import pytest

from schedsim.algorithms import schedule_feedback, schedule_srt
from schedsim.errors import UnknownAlgorithmError
from schedsim.models import Process
from schedsim.registry import canonical_name, describe, list_names, resolve, run_algorithm


def test_list_names_is_fixed():
    assert list_names() == [
        "FCFS",
        "SJF",
        "SRT",
        "RR",
        "HRRN",
        "FEEDBACK",
        "AGING",
        "PRIORITY_PREEMPTIVE",
        "PRIORITY_NON_PREEMPTIVE",
    ]
    assert set(describe()) == set(list_names())


def test_lookup_is_case_insensitive():
    assert resolve("srt") is schedule_srt
    assert canonical_name("Priority-Non-Preemptive") == "PRIORITY_NON_PREEMPTIVE"
    assert canonical_name("priority preemptive") == "PRIORITY_PREEMPTIVE"


def test_aliases():
    assert resolve("mlfq") is schedule_feedback
    assert canonical_name("srtf") == "SRT"
    assert canonical_name("round-robin") == "RR"


def test_unknown_name_lists_valid_names():
    with pytest.raises(UnknownAlgorithmError) as excinfo:
        resolve("NOT_REAL")
    assert excinfo.value.valid_names == list_names()
    assert "FCFS" in str(excinfo.value)


def test_run_algorithm_uses_canonical_name():
    res = run_algorithm("rr", [Process("P1", 0, 3)], {"quantum": 1})
    assert res.algorithm == "RR"
    assert res.options.quantum == 1
