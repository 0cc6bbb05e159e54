from __future__ import annotations

from typing import List

from .errors import InternalInvariantViolation
from .models import AggregateMetrics, GanttEvent, ProcessMetrics, ProcessRunState


def compute_process_metrics(state: ProcessRunState) -> ProcessMetrics:
    """
    Derive turnaround, waiting and response time from a finished run state.
    """
    if not state.completed or state.start_time is None or state.completion_time is None:
        raise InternalInvariantViolation(f"{state.pid} did not run to completion")

    turnaround_time = state.completion_time - state.arrival_time
    waiting_time = turnaround_time - state.burst_time
    response_time = state.start_time - state.arrival_time

    if waiting_time < 0 or response_time < 0:
        raise InternalInvariantViolation(
            f"{state.pid}: negative waiting ({waiting_time}) or response ({response_time}) time"
        )

    return ProcessMetrics(
        pid=state.pid,
        arrival_time=state.arrival_time,
        burst_time=state.burst_time,
        priority=state.priority,
        start_time=state.start_time,
        completion_time=state.completion_time,
        turnaround_time=turnaround_time,
        waiting_time=waiting_time,
        response_time=response_time,
        final_priority=state.effective_priority,
        final_level=state.current_level,
        response_ratio=state.response_ratio,
    )


def compute_aggregate_metrics(processes: List[ProcessMetrics], timeline: List[GanttEvent]) -> AggregateMetrics:
    """
    Compute averages, CPU utilization, throughput, idle time and context
    switches for one run.

    `timeline` must already be compacted; otherwise preemption fragments
    would be counted as context switches.
    """
    if not processes:
        return AggregateMetrics()

    n = len(processes)
    summary = summarize_process_metrics(processes)

    total_burst_time = sum(p.burst_time for p in processes)
    first_arrival = min(p.arrival_time for p in processes)
    last_completion = max(p.completion_time for p in processes)
    total_time = last_completion - first_arrival

    cpu_utilization = total_burst_time / total_time * 100 if total_time > 0 else 0.0
    throughput = n / total_time if total_time > 0 else 0.0

    idle_time = sum(event.duration for event in timeline if event.is_idle)
    busy_events = sum(1 for event in timeline if not event.is_idle)

    return AggregateMetrics(
        avg_waiting_time=summary["avg_waiting"],
        avg_turnaround_time=summary["avg_turnaround"],
        avg_response_time=summary["avg_response"],
        cpu_utilization=cpu_utilization,
        throughput=throughput,
        idle_time=idle_time,
        context_switches=max(0, busy_events - 1),
        total_processes=n,
        total_burst_time=total_burst_time,
        total_time=total_time,
        first_arrival=first_arrival,
        last_completion=last_completion,
    )


def summarize_process_metrics(processes: List[ProcessMetrics]) -> dict:
    """
    Return averages of the key per-process metrics for quick comparison.
    """
    if not processes:
        return {"avg_waiting": 0.0, "avg_turnaround": 0.0, "avg_response": 0.0}

    n = len(processes)
    return {
        "avg_waiting": sum(p.waiting_time for p in processes) / n,
        "avg_turnaround": sum(p.turnaround_time for p in processes) / n,
        "avg_response": sum(p.response_time for p in processes) / n,
    }
