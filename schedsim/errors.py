from __future__ import annotations

from typing import Iterable, List, Sequence


class SchedulerError(Exception):
    """Base class for every error raised by schedsim."""


class ValidationError(SchedulerError, ValueError):
    """
    Malformed input: process records, options or workload text.

    `errors` holds one human readable message per problem found.
    """

    def __init__(self, errors: Iterable[str]):
        self.errors: List[str] = list(errors)
        super().__init__("; ".join(self.errors) or "invalid input")


class WorkloadFormatError(ValidationError):
    pass


class UnknownAlgorithmError(SchedulerError, LookupError):
    def __init__(self, name: str, valid_names: Sequence[str]):
        self.name = name
        self.valid_names = list(valid_names)
        super().__init__(f"Algorithm '{name}' not found. Available: {', '.join(self.valid_names)}")


class InternalInvariantViolation(SchedulerError, RuntimeError):
    """
    A simulation could not make progress on valid input. Always a bug.
    """


class PartialComparisonFailure(SchedulerError):
    def __init__(self, errors):
        self.errors = list(errors)
        names = ", ".join(e.algorithm for e in self.errors)
        super().__init__(f"{len(self.errors)} algorithm(s) failed during comparison: {names}")
