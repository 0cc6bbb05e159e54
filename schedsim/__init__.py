"""
schedsim package.

Discrete-event simulation of CPU scheduling algorithms (FCFS, SJF, SRT,
Round Robin, HRRN, Multilevel Feedback Queue, Priority with Aging and
static Priority), with timeline compaction, per-process and aggregate
metrics, multi-algorithm comparison and a command-line interface.
"""

from .compare import compare_algorithms
from .models import GanttEvent, Process, ScheduleResult
from .registry import list_names, resolve, run_algorithm
from .validation import validate_processes

__all__ = [
    "GanttEvent",
    "Process",
    "ScheduleResult",
    "compare_algorithms",
    "list_names",
    "resolve",
    "run_algorithm",
    "validate_processes",
]
