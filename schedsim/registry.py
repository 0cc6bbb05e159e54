from __future__ import annotations

import logging
import time
from typing import Callable, Dict, List

from .algorithms import (
    schedule_aging,
    schedule_fcfs,
    schedule_feedback,
    schedule_hrrn,
    schedule_priority_non_preemptive,
    schedule_priority_preemptive,
    schedule_rr,
    schedule_sjf,
    schedule_srt,
)
from .errors import UnknownAlgorithmError
from .models import Process, ScheduleResult
from .options import OptionsLike

logger = logging.getLogger(__name__)

Algorithm = Callable[[List[Process], OptionsLike], ScheduleResult]

ALGORITHMS: Dict[str, Algorithm] = {
    "FCFS": schedule_fcfs,
    "SJF": schedule_sjf,
    "SRT": schedule_srt,
    "RR": schedule_rr,
    "HRRN": schedule_hrrn,
    "FEEDBACK": schedule_feedback,
    "AGING": schedule_aging,
    "PRIORITY_PREEMPTIVE": schedule_priority_preemptive,
    "PRIORITY_NON_PREEMPTIVE": schedule_priority_non_preemptive,
}

ALIASES: Dict[str, str] = {
    "SRTF": "SRT",
    "MLFQ": "FEEDBACK",
    "ROUND_ROBIN": "RR",
    "PRIORITY": "PRIORITY_NON_PREEMPTIVE",
}

DESCRIPTIONS: Dict[str, str] = {
    "FCFS": "First Come First Serve - non-preemptive, executes in arrival order",
    "SJF": "Shortest Job First - non-preemptive, selects shortest burst time",
    "SRT": "Shortest Remaining Time - preemptive SJF",
    "RR": "Round Robin - preemptive with time quantum",
    "HRRN": "Highest Response Ratio Next - non-preemptive, considers waiting time",
    "FEEDBACK": "Multilevel Feedback Queue - multiple queues with growing quanta",
    "AGING": "Priority with Aging - prevents starvation",
    "PRIORITY_PREEMPTIVE": "Priority Scheduling - preemptive by priority",
    "PRIORITY_NON_PREEMPTIVE": "Priority Scheduling - non-preemptive by priority",
}


def canonical_name(name: str) -> str:
    """
    Normalize a user supplied algorithm name to its registry key.

    Matching is case-insensitive and treats '-' and spaces like '_'.
    Raises UnknownAlgorithmError when nothing matches.
    """
    key = "_".join(str(name).strip().upper().replace("-", " ").replace("_", " ").split())
    key = ALIASES.get(key, key)
    if key not in ALGORITHMS:
        raise UnknownAlgorithmError(str(name), list_names())
    return key


def resolve(name: str) -> Algorithm:
    return ALGORITHMS[canonical_name(name)]


def list_names() -> List[str]:
    return list(ALGORITHMS)


def describe() -> Dict[str, str]:
    return {name: DESCRIPTIONS[name] for name in ALGORITHMS}


def run_algorithm(name: str, processes: List[Process], options: OptionsLike = None) -> ScheduleResult:
    """
    Resolve `name` and run it on an already validated process list.
    """
    func = resolve(name)

    started = time.perf_counter()
    result = func(processes, options)
    elapsed_ms = (time.perf_counter() - started) * 1000

    logger.debug("Ran %s on %d processes in %.3f ms", result.algorithm, len(processes), elapsed_ms)
    return result
