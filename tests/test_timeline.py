from schedsim.models import IDLE, GanttEvent
from schedsim.timeline import compact_timeline


def _events(*triples):
    return [GanttEvent(pid, start, end) for pid, start, end in triples]


def test_merges_unit_fragments_of_same_process():
    raw = _events(("P1", 0, 1), ("P1", 1, 2), ("P1", 2, 3), ("P2", 3, 4), ("P2", 4, 5))
    assert compact_timeline(raw) == _events(("P1", 0, 3), ("P2", 3, 5))


def test_does_not_merge_across_a_gap():
    raw = _events(("P1", 0, 2), ("P1", 3, 5))
    assert compact_timeline(raw) == raw


def test_drops_zero_length_events():
    raw = _events((IDLE, 0, 0), ("P1", 0, 2), ("P2", 2, 2), ("P1", 2, 4))
    assert compact_timeline(raw) == _events(("P1", 0, 4))


def test_idle_runs_are_merged_too():
    raw = _events((IDLE, 0, 1), (IDLE, 1, 3), ("P1", 3, 4))
    assert compact_timeline(raw) == _events((IDLE, 0, 3), ("P1", 3, 4))


def test_compaction_is_idempotent():
    raw = _events(("A", 0, 1), ("A", 1, 2), ("B", 2, 3), (IDLE, 3, 3), ("B", 3, 4), ("A", 4, 6))
    once = compact_timeline(raw)
    assert compact_timeline(once) == once


def test_input_is_left_untouched():
    raw = _events(("A", 0, 1), ("A", 1, 2))
    compact_timeline(raw)
    assert raw == _events(("A", 0, 1), ("A", 1, 2))


def test_empty_input():
    assert compact_timeline([]) == []
