from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, List, Mapping, Optional, Tuple, Union

from .errors import ValidationError


@dataclass(frozen=True)
class FeedbackLevel:
    quantum: int
    priority: int


DEFAULT_QUANTUM = 2
DEFAULT_LEVELS: Tuple[FeedbackLevel, ...] = (
    FeedbackLevel(quantum=1, priority=0),
    FeedbackLevel(quantum=2, priority=1),
    FeedbackLevel(quantum=4, priority=2),
)
DEFAULT_AGING_INTERVAL = 1
DEFAULT_AGING_AMOUNT = 1


@dataclass(frozen=True)
class SchedulerOptions:
    """
    Resolved options for one algorithm invocation.

    Every algorithm receives the full record and reads only what it uses:
    `quantum` (RR), `levels` (Feedback), `aging_interval`/`aging_amount`
    (Aging, an interval of 0 disables aging) and `preemptive` (Aging and
    preemptive Priority).
    """

    quantum: int = DEFAULT_QUANTUM
    levels: Tuple[FeedbackLevel, ...] = field(default=DEFAULT_LEVELS)
    aging_interval: int = DEFAULT_AGING_INTERVAL
    aging_amount: int = DEFAULT_AGING_AMOUNT
    preemptive: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "levels", tuple(self.levels))

        errors: List[str] = []
        if not _is_int(self.quantum) or self.quantum <= 0:
            errors.append("quantum must be a positive integer")
        if not self.levels:
            errors.append("levels must contain at least one level")
        for idx, level in enumerate(self.levels):
            if not _is_int(level.quantum) or level.quantum <= 0:
                errors.append(f"levels[{idx}]: quantum must be a positive integer")
        for name in ("aging_interval", "aging_amount"):
            value = getattr(self, name)
            if not _is_int(value) or value < 0:
                errors.append(f"{name} must be a non-negative integer")
        if errors:
            raise ValidationError(errors)

    def with_overrides(self, **changes: Any) -> "SchedulerOptions":
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return {
            "quantum": self.quantum,
            "levels": [{"quantum": lv.quantum, "priority": lv.priority} for lv in self.levels],
            "aging_interval": self.aging_interval,
            "aging_amount": self.aging_amount,
            "preemptive": self.preemptive,
        }


OptionsLike = Union[SchedulerOptions, Mapping[str, Any], None]

# Accepted spellings for each option key.
_KEY_ALIASES = {
    "quantum": "quantum",
    "levels": "levels",
    "aging_interval": "aging_interval",
    "agingInterval": "aging_interval",
    "aging_amount": "aging_amount",
    "agingAmount": "aging_amount",
    "preemptive": "preemptive",
}


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _resolve_levels(raw: Any, errors: List[str]) -> Optional[Tuple[FeedbackLevel, ...]]:
    if isinstance(raw, (str, bytes)) or not hasattr(raw, "__iter__"):
        errors.append("levels must be a list of {quantum, priority} entries")
        return None

    start = len(errors)
    levels: List[FeedbackLevel] = []
    for idx, entry in enumerate(raw):
        if isinstance(entry, FeedbackLevel):
            quantum, priority = entry.quantum, entry.priority
        elif isinstance(entry, Mapping):
            quantum, priority = entry.get("quantum"), entry.get("priority", idx)
        elif isinstance(entry, (tuple, list)) and len(entry) == 2:
            quantum, priority = entry
        else:
            errors.append(f"levels[{idx}]: expected a {{quantum, priority}} entry, got {entry!r}")
            continue

        if not _is_int(quantum) or quantum <= 0:
            errors.append(f"levels[{idx}]: quantum must be a positive integer")
            continue
        if not _is_int(priority):
            errors.append(f"levels[{idx}]: priority must be an integer")
            continue
        levels.append(FeedbackLevel(quantum=quantum, priority=priority))

    if not levels and len(errors) == start:
        errors.append("levels must contain at least one level")
    return tuple(levels)


def resolve_options(raw: OptionsLike = None, base: Optional[SchedulerOptions] = None) -> SchedulerOptions:
    """
    Merge user supplied options over the defaults (or over `base`).

    Accepts a SchedulerOptions instance, a mapping with snake_case or
    camelCase keys, or None. Unknown keys are ignored; invalid values raise
    ValidationError listing every problem.
    """
    resolved = base or SchedulerOptions()
    if raw is None:
        return resolved
    if isinstance(raw, SchedulerOptions):
        return raw
    if not isinstance(raw, Mapping):
        raise ValidationError([f"options must be a mapping, got {type(raw).__name__}"])

    errors: List[str] = []
    changes: dict = {}

    for key, value in raw.items():
        name = _KEY_ALIASES.get(key)
        if name is None or value is None:
            continue

        if name == "quantum":
            if not _is_int(value) or value <= 0:
                errors.append("quantum must be a positive integer")
            else:
                changes["quantum"] = value
        elif name in ("aging_interval", "aging_amount"):
            if not _is_int(value) or value < 0:
                errors.append(f"{name} must be a non-negative integer")
            else:
                changes[name] = value
        elif name == "preemptive":
            if not isinstance(value, bool):
                errors.append("preemptive must be a boolean")
            else:
                changes["preemptive"] = value
        elif name == "levels":
            levels = _resolve_levels(value, errors)
            if levels:
                changes["levels"] = levels

    if errors:
        raise ValidationError(errors)
    return resolved.with_overrides(**changes)
