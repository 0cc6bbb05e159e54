import pytest

from schedsim.errors import ValidationError
from schedsim.options import DEFAULT_LEVELS, FeedbackLevel, SchedulerOptions, resolve_options


def test_defaults():
    opts = resolve_options()
    assert opts.quantum == 2
    assert opts.levels == DEFAULT_LEVELS
    assert [lv.quantum for lv in opts.levels] == [1, 2, 4]
    assert opts.aging_interval == 1
    assert opts.aging_amount == 1
    assert opts.preemptive is True


def test_camel_and_snake_case_keys():
    opts = resolve_options({"agingInterval": 3, "aging_amount": 2, "preemptive": False})
    assert (opts.aging_interval, opts.aging_amount, opts.preemptive) == (3, 2, False)


def test_levels_from_mappings_and_pairs():
    opts = resolve_options({"levels": [{"quantum": 3, "priority": 0}, (6, 1)]})
    assert opts.levels == (FeedbackLevel(3, 0), FeedbackLevel(6, 1))


def test_instance_is_returned_unchanged():
    opts = SchedulerOptions(quantum=7)
    assert resolve_options(opts) is opts


def test_none_values_and_unknown_keys_are_ignored():
    assert resolve_options({"quantum": None, "colour": "blue"}) == SchedulerOptions()


def test_invalid_values_are_all_reported():
    with pytest.raises(ValidationError) as excinfo:
        resolve_options({"quantum": 0, "aging_interval": -1, "preemptive": "yes", "levels": []})
    assert len(excinfo.value.errors) == 4


def test_invalid_level_entry():
    with pytest.raises(ValidationError) as excinfo:
        resolve_options({"levels": [{"quantum": 0}]})
    assert excinfo.value.errors == ["levels[0]: quantum must be a positive integer"]


def test_to_dict_is_json_friendly():
    assert resolve_options({"quantum": 3}).to_dict()["levels"][2] == {"quantum": 4, "priority": 2}


@pytest.mark.parametrize(
    "kwargs, message",
    [
        ({"quantum": 0}, "quantum must be a positive integer"),
        ({"levels": ()}, "levels must contain at least one level"),
        ({"levels": (FeedbackLevel(quantum=0, priority=0),)}, "levels[0]: quantum must be a positive integer"),
        ({"aging_interval": -1}, "aging_interval must be a non-negative integer"),
    ],
)
def test_direct_construction_is_validated(kwargs, message):
    with pytest.raises(ValidationError) as excinfo:
        SchedulerOptions(**kwargs)
    assert excinfo.value.errors == [message]


def test_with_overrides_is_validated():
    with pytest.raises(ValidationError):
        SchedulerOptions().with_overrides(quantum=-3)
