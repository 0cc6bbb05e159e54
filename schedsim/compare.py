from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .errors import PartialComparisonFailure, SchedulerError, ValidationError
from .models import Process, ScheduleResult
from .options import OptionsLike, SchedulerOptions, resolve_options
from .registry import canonical_name, run_algorithm

logger = logging.getLogger(__name__)

# (metric attribute on AggregateMetrics, True when larger is better)
RANKED_METRICS: Tuple[Tuple[str, bool], ...] = (
    ("avg_waiting_time", False),
    ("avg_turnaround_time", False),
    ("avg_response_time", False),
    ("cpu_utilization", True),
    ("throughput", True),
)

AlgorithmRequest = Union[str, Tuple[str, OptionsLike]]


@dataclass
class ComparisonError:
    algorithm: str
    error: str
    kind: str


@dataclass
class MetricLeader:
    algorithm: str
    value: float


@dataclass
class ComparisonResult:
    results: Dict[str, ScheduleResult] = field(default_factory=dict)
    ranking: Dict[str, MetricLeader] = field(default_factory=dict)
    errors: List[ComparisonError] = field(default_factory=list)

    def raise_for_errors(self) -> None:
        if self.errors:
            raise PartialComparisonFailure(self.errors)

    def to_dict(self) -> dict:
        return {
            "results": {name: result.to_dict() for name, result in self.results.items()},
            "ranking": {metric: asdict(leader) for metric, leader in self.ranking.items()},
            "errors": [asdict(err) for err in self.errors],
        }


def _options_for(name: str, requested: OptionsLike, options: Optional[Mapping[str, Any]]) -> OptionsLike:
    """
    Pick the options for one algorithm.

    Explicit per-request options win. Otherwise `options` is either a plain
    options mapping shared by every algorithm, or keyed by algorithm name
    with an optional "default" entry.
    """
    if requested is not None:
        return requested
    if options is None or isinstance(options, SchedulerOptions):
        return options

    per_algorithm = {}
    for key, value in options.items():
        if key == "default":
            continue
        try:
            per_algorithm[canonical_name(key)] = value
        except SchedulerError:
            continue

    if per_algorithm or "default" in options:
        return per_algorithm.get(name, options.get("default"))
    return options


def _rank(results: Dict[str, ScheduleResult]) -> Dict[str, MetricLeader]:
    ranking: Dict[str, MetricLeader] = {}
    for metric, higher_is_better in RANKED_METRICS:
        best: Optional[MetricLeader] = None
        for name, result in results.items():
            value = getattr(result.aggregate, metric)
            if best is None or (value > best.value if higher_is_better else value < best.value):
                best = MetricLeader(algorithm=name, value=value)
        if best is not None:
            ranking[metric] = best
    return ranking


def _run_one(name: str, processes: Sequence[Process], options: OptionsLike) -> ScheduleResult:
    return run_algorithm(name, list(processes), resolve_options(options))


def compare_algorithms(
    processes: Sequence[Process],
    algorithms: Iterable[AlgorithmRequest],
    options: Optional[Mapping[str, Any]] = None,
    max_workers: Optional[int] = None,
) -> ComparisonResult:
    """
    Run several algorithms over the same validated process list and rank them.

    Runs are independent and execute in a thread pool; ranking only happens
    after every run has finished or failed. A failing algorithm (unknown
    name, invalid options, or an exception during simulation) is reported in
    `errors` and left out of the ranking; the others are unaffected. Results
    and ties follow the order in which algorithms were requested.
    """
    if max_workers is not None and max_workers < 1:
        raise ValidationError([f"max_workers must be at least 1, got {max_workers}"])

    comparison = ComparisonResult()
    jobs: List[Tuple[str, OptionsLike]] = []

    for request in algorithms:
        if isinstance(request, str):
            raw_name, requested = request, None
        else:
            raw_name, requested = request

        try:
            name = canonical_name(raw_name)
        except SchedulerError as exc:
            logger.warning("Skipping %s: %s", raw_name, exc)
            comparison.errors.append(ComparisonError(algorithm=str(raw_name), error=str(exc), kind=type(exc).__name__))
            continue

        if any(name == queued for queued, _ in jobs):
            comparison.errors.append(
                ComparisonError(algorithm=str(raw_name), error=f"{name} requested more than once", kind="DuplicateAlgorithm")
            )
            continue
        jobs.append((name, _options_for(name, requested, options)))

    if jobs:
        workers = max_workers or min(len(jobs), os.cpu_count() or 1)
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [(name, pool.submit(_run_one, name, processes, opts)) for name, opts in jobs]

            for name, future in futures:
                try:
                    comparison.results[name] = future.result()
                except SchedulerError as exc:
                    logger.warning("%s failed during comparison: %s", name, exc)
                    comparison.errors.append(ComparisonError(algorithm=name, error=str(exc), kind=type(exc).__name__))
                except Exception as exc:  # noqa: BLE001
                    logger.exception("%s raised an unexpected error during comparison", name)
                    comparison.errors.append(ComparisonError(algorithm=name, error=str(exc), kind=type(exc).__name__))

    comparison.ranking = _rank(comparison.results)
    return comparison
