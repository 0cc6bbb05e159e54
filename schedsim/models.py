from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import List, Optional

from .options import SchedulerOptions

IDLE = "IDLE"


@dataclass(frozen=True)
class Process:
    pid: str
    arrival_time: int
    burst_time: int
    priority: int = 0


@dataclass
class ProcessRunState:
    """
    Mutable per-run copy of a Process, owned by a single algorithm invocation.

    The optional fields at the bottom are only populated by the algorithms
    that need them (Aging, Feedback, HRRN).
    """

    pid: str
    arrival_time: int
    burst_time: int
    priority: int
    remaining_time: int
    start_time: Optional[int] = None
    completion_time: Optional[int] = None
    completed: bool = False

    effective_priority: Optional[int] = None
    last_aged_at: Optional[int] = None
    current_level: Optional[int] = None
    response_ratio: Optional[float] = None

    @classmethod
    def from_process(cls, process: Process) -> "ProcessRunState":
        return cls(
            pid=process.pid,
            arrival_time=process.arrival_time,
            burst_time=process.burst_time,
            priority=process.priority,
            remaining_time=process.burst_time,
        )

    def execute(self, now: int, amount: int) -> None:
        """
        Consume `amount` units of CPU starting at `now`.
        """
        if amount <= 0 or amount > self.remaining_time:
            raise ValueError(f"{self.pid}: cannot run {amount} units with {self.remaining_time} remaining")

        if self.start_time is None:
            self.start_time = now

        self.remaining_time -= amount
        if self.remaining_time == 0:
            self.completed = True
            self.completion_time = now + amount


@dataclass
class GanttEvent:
    """
    One contiguous slice of execution (or idleness) in the Gantt chart.
    """

    pid: str
    start: int
    end: int

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"Gantt event for {self.pid} ends before it starts ({self.start} > {self.end})")

    @property
    def duration(self) -> int:
        return self.end - self.start

    @property
    def is_idle(self) -> bool:
        return self.pid == IDLE


@dataclass
class ProcessMetrics:
    pid: str
    arrival_time: int
    burst_time: int
    priority: int
    start_time: int
    completion_time: int
    turnaround_time: int
    waiting_time: int
    response_time: int
    final_priority: Optional[int] = None
    final_level: Optional[int] = None
    response_ratio: Optional[float] = None


@dataclass
class AggregateMetrics:
    avg_waiting_time: float = 0.0
    avg_turnaround_time: float = 0.0
    avg_response_time: float = 0.0
    cpu_utilization: float = 0.0
    throughput: float = 0.0
    idle_time: int = 0
    context_switches: int = 0
    total_processes: int = 0
    total_burst_time: int = 0
    total_time: int = 0
    first_arrival: int = 0
    last_completion: int = 0


@dataclass
class ScheduleResult:
    algorithm: str
    options: SchedulerOptions
    processes: List[ProcessMetrics] = field(default_factory=list)
    timeline: List[GanttEvent] = field(default_factory=list)
    aggregate: AggregateMetrics = field(default_factory=AggregateMetrics)

    def to_dict(self) -> dict:
        return {
            "algorithm": self.algorithm,
            "options": self.options.to_dict(),
            "timeline": [asdict(event) for event in self.timeline],
            "processes": [asdict(p) for p in self.processes],
            "aggregate": asdict(self.aggregate),
        }
