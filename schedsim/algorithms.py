from __future__ import annotations

import logging
from collections import deque
from typing import Callable, Deque, List, Optional

from .errors import InternalInvariantViolation
from .metrics import compute_aggregate_metrics, compute_process_metrics
from .models import IDLE, GanttEvent, Process, ProcessRunState, ScheduleResult
from .options import OptionsLike, SchedulerOptions, resolve_options
from .timeline import compact_timeline

logger = logging.getLogger(__name__)

# criterion(state, now) -> primary sort key; smaller runs first.
Criterion = Callable[[ProcessRunState, int], object]
# hook(running_state, slice_start, slice_end), called after every dispatch.
AdvanceHook = Callable[[ProcessRunState, int, int], None]


def _arrival_order(state: ProcessRunState) -> tuple:
    return (state.arrival_time, state.pid)


def _init_states(processes: List[Process]) -> List[ProcessRunState]:
    return sorted((ProcessRunState.from_process(p) for p in processes), key=_arrival_order)


def _iteration_cap(states: List[ProcessRunState]) -> int:
    # Every iteration either consumes at least one unit of CPU or idles up to
    # an arrival, so this bound is never reached by a correct loop.
    return sum(s.burst_time for s in states) + len(states) + 1


def _next_arrival(states: List[ProcessRunState], time: int) -> Optional[int]:
    future = [s.arrival_time for s in states if not s.completed and s.arrival_time > time]
    return min(future) if future else None


def _stalled(algorithm: str, time: int, states: List[ProcessRunState]) -> InternalInvariantViolation:
    pending = [s.pid for s in states if not s.completed]
    logger.error("%s stalled at t=%d with unfinished processes: %s", algorithm, time, ", ".join(pending))
    return InternalInvariantViolation(
        f"{algorithm} could not make progress at t={time} (unfinished: {', '.join(pending)})"
    )


def _idle_until_next_arrival(
    algorithm: str, events: List[GanttEvent], states: List[ProcessRunState], time: int
) -> int:
    """
    Emit an IDLE event up to the next arrival and return the new clock value.
    """
    nxt = _next_arrival(states, time)
    if nxt is None:
        raise _stalled(algorithm, time, states)
    events.append(GanttEvent(pid=IDLE, start=time, end=nxt))
    return nxt


def _dispatch(
    algorithm: str, events: List[GanttEvent], state: ProcessRunState, time: int, run_for: int
) -> int:
    if run_for <= 0:
        raise _stalled(algorithm, time, [state])
    state.execute(time, run_for)
    events.append(GanttEvent(pid=state.pid, start=time, end=time + run_for))
    return time + run_for


def _finish(
    algorithm: str,
    options: SchedulerOptions,
    events: List[GanttEvent],
    states: List[ProcessRunState],
) -> ScheduleResult:
    timeline = compact_timeline(events)
    metrics = [compute_process_metrics(s) for s in sorted(states, key=_arrival_order)]

    result = ScheduleResult(algorithm=algorithm, options=options, processes=metrics, timeline=timeline)
    result.aggregate = compute_aggregate_metrics(metrics, timeline)
    logger.debug(
        "%s finished: %d processes, %d raw events compacted to %d",
        algorithm,
        len(metrics),
        len(events),
        len(timeline),
    )
    return result


def _run_decision_loop(
    algorithm: str,
    states: List[ProcessRunState],
    criterion: Criterion,
    preemptive: bool,
    on_advance: Optional[AdvanceHook] = None,
) -> List[GanttEvent]:
    """
    Shared simulation loop for the decision-point algorithms (SJF, SRT,
    HRRN, Priority, Aging).

    At every decision point the ready process with the smallest
    (criterion, arrival_time, pid) is dispatched, either until it completes
    or, when preemptive, for exactly one time unit. When nothing is ready
    the clock jumps to the next arrival through an explicit IDLE event.
    """
    events: List[GanttEvent] = []
    time = 0
    unfinished = len(states)

    for _ in range(_iteration_cap(states)):
        if unfinished == 0:
            break

        ready = [s for s in states if not s.completed and s.arrival_time <= time]
        if not ready:
            time = _idle_until_next_arrival(algorithm, events, states, time)
            continue

        now = time
        current = min(ready, key=lambda s: (criterion(s, now), s.arrival_time, s.pid))
        run_for = min(1, current.remaining_time) if preemptive else current.remaining_time
        time = _dispatch(algorithm, events, current, now, run_for)

        if on_advance is not None:
            on_advance(current, now, time)
        if current.completed:
            unfinished -= 1

    if unfinished:
        raise _stalled(algorithm, time, states)
    return events


def schedule_fcfs(processes: List[Process], options: OptionsLike = None) -> ScheduleResult:
    """
    First-Come First-Serve (non-preemptive).
    """
    options = resolve_options(options)
    states = _init_states(processes)

    events: List[GanttEvent] = []
    time = 0
    for state in states:
        if time < state.arrival_time:
            events.append(GanttEvent(pid=IDLE, start=time, end=state.arrival_time))
            time = state.arrival_time
        time = _dispatch("FCFS", events, state, time, state.burst_time)

    return _finish("FCFS", options, events, states)


def schedule_sjf(processes: List[Process], options: OptionsLike = None) -> ScheduleResult:
    """
    Shortest Job First (non-preemptive).

    At each decision point, among processes that have arrived and are not yet
    completed, choose the one with the smallest burst time.
    """
    options = resolve_options(options)
    states = _init_states(processes)
    events = _run_decision_loop("SJF", states, lambda s, now: s.burst_time, preemptive=False)
    return _finish("SJF", options, events, states)


def schedule_srt(processes: List[Process], options: OptionsLike = None) -> ScheduleResult:
    """
    Shortest Remaining Time (preemptive SJF), re-evaluated every time unit.
    """
    options = resolve_options(options)
    states = _init_states(processes)
    events = _run_decision_loop("SRT", states, lambda s, now: s.remaining_time, preemptive=True)
    return _finish("SRT", options, events, states)


def schedule_rr(processes: List[Process], options: OptionsLike = None) -> ScheduleResult:
    """
    Round Robin with a fixed time quantum.

    Processes that arrive while a slice is running are enqueued before the
    preempted process goes back to the tail of the queue.
    """
    options = resolve_options(options)
    quantum = options.quantum
    states = _init_states(processes)

    ready: Deque[ProcessRunState] = deque()
    events: List[GanttEvent] = []
    time = 0
    next_index = 0
    unfinished = len(states)

    def enqueue_new_arrivals(current_time: int) -> None:
        nonlocal next_index
        while next_index < len(states) and states[next_index].arrival_time <= current_time:
            ready.append(states[next_index])
            next_index += 1

    enqueue_new_arrivals(time)

    for _ in range(_iteration_cap(states)):
        if unfinished == 0:
            break

        if not ready:
            time = _idle_until_next_arrival("RR", events, states, time)
            enqueue_new_arrivals(time)
            continue

        current = ready.popleft()
        time = _dispatch("RR", events, current, time, min(quantum, current.remaining_time))
        enqueue_new_arrivals(time)

        if current.completed:
            unfinished -= 1
        else:
            ready.append(current)

    if unfinished:
        raise _stalled("RR", time, states)
    return _finish("RR", options, events, states)


def _response_ratio(state: ProcessRunState, now: int) -> float:
    return (now - state.arrival_time + state.burst_time) / state.burst_time


def schedule_hrrn(processes: List[Process], options: OptionsLike = None) -> ScheduleResult:
    """
    Highest Response Ratio Next (non-preemptive).

    Response ratio = (waiting time + burst time) / burst time, recomputed at
    every completion; the highest ratio runs next.
    """
    options = resolve_options(options)
    states = _init_states(processes)

    def record_ratio(state: ProcessRunState, start: int, end: int) -> None:
        state.response_ratio = _response_ratio(state, start)

    events = _run_decision_loop(
        "HRRN",
        states,
        lambda s, now: -_response_ratio(s, now),
        preemptive=False,
        on_advance=record_ratio,
    )
    return _finish("HRRN", options, events, states)


def schedule_feedback(processes: List[Process], options: OptionsLike = None) -> ScheduleResult:
    """
    Multilevel Feedback Queue.

    - New arrivals enter level 0 (the first configured level).
    - Each level is served round-robin with its own quantum; a lower level is
      only served when every level above it is empty.
    - A process that exhausts its quantum without finishing is demoted one
      level, never below the last one. There is no promotion.
    - A running slice is never cut short by an arrival.
    """
    options = resolve_options(options)
    levels = options.levels
    states = _init_states(processes)

    queues: List[Deque[ProcessRunState]] = [deque() for _ in levels]
    events: List[GanttEvent] = []
    time = 0
    next_index = 0
    unfinished = len(states)

    def enqueue_new_arrivals(current_time: int) -> None:
        nonlocal next_index
        while next_index < len(states) and states[next_index].arrival_time <= current_time:
            state = states[next_index]
            state.current_level = 0
            queues[0].append(state)
            next_index += 1

    enqueue_new_arrivals(time)

    for _ in range(_iteration_cap(states)):
        if unfinished == 0:
            break

        level = next((idx for idx, queue in enumerate(queues) if queue), None)
        if level is None:
            time = _idle_until_next_arrival("FEEDBACK", events, states, time)
            enqueue_new_arrivals(time)
            continue

        current = queues[level].popleft()
        time = _dispatch("FEEDBACK", events, current, time, min(levels[level].quantum, current.remaining_time))
        enqueue_new_arrivals(time)

        if current.completed:
            unfinished -= 1
            continue

        lower = min(level + 1, len(levels) - 1)
        if lower != level:
            logger.debug("FEEDBACK: demoted %s from level %d to %d at t=%d", current.pid, level, lower, time)
        current.current_level = lower
        queues[lower].append(current)

    if unfinished:
        raise _stalled("FEEDBACK", time, states)
    return _finish("FEEDBACK", options, events, states)


def _age_waiting(
    states: List[ProcessRunState],
    running: ProcessRunState,
    end: int,
    interval: int,
    amount: int,
) -> None:
    """
    Lower the effective priority of every process that waited up to `end`.

    Each full `interval` spent waiting since the last adjustment lowers the
    value by `amount`, never below zero (values already below zero stay put).
    """
    running.last_aged_at = end
    if interval <= 0 or amount <= 0:
        return

    for state in states:
        if state is running or state.completed or state.arrival_time > end:
            continue
        ticks = (end - state.last_aged_at) // interval
        if ticks <= 0:
            continue

        floor = min(state.effective_priority, 0)
        aged = max(floor, state.effective_priority - amount * ticks)
        if aged != state.effective_priority:
            logger.debug("AGING: %s effective priority %d -> %d at t=%d", state.pid, state.effective_priority, aged, end)
        state.effective_priority = aged
        state.last_aged_at += ticks * interval


def schedule_aging(processes: List[Process], options: OptionsLike = None) -> ScheduleResult:
    """
    Priority scheduling with aging.

    Lower numeric priority means more urgent. While a process waits in the
    ready set without running, its effective priority drops by
    `aging_amount` for every `aging_interval` time units, so long-waiting
    processes eventually outrank newer urgent ones. With `preemptive` the
    selection is re-evaluated every time unit, otherwise each dispatched
    process runs to completion. An `aging_interval` of 0 disables aging.
    """
    options = resolve_options(options)
    states = _init_states(processes)
    for state in states:
        state.effective_priority = state.priority
        state.last_aged_at = state.arrival_time

    def age(running: ProcessRunState, start: int, end: int) -> None:
        _age_waiting(states, running, end, options.aging_interval, options.aging_amount)

    events = _run_decision_loop(
        "AGING",
        states,
        lambda s, now: s.effective_priority,
        preemptive=options.preemptive,
        on_advance=age,
    )
    return _finish("AGING", options, events, states)


def schedule_priority_preemptive(processes: List[Process], options: OptionsLike = None) -> ScheduleResult:
    """
    Static priority scheduling, preemptive unless `preemptive` is False.

    Lower numeric priority value means higher priority; ties go to the
    earlier arrival, then the smaller pid.
    """
    options = resolve_options(options)
    states = _init_states(processes)
    events = _run_decision_loop(
        "PRIORITY_PREEMPTIVE",
        states,
        lambda s, now: s.priority,
        preemptive=options.preemptive,
    )
    return _finish("PRIORITY_PREEMPTIVE", options, events, states)


def schedule_priority_non_preemptive(processes: List[Process], options: OptionsLike = None) -> ScheduleResult:
    """
    Static priority scheduling (non-preemptive); the `preemptive` option is ignored.
    """
    options = resolve_options(options).with_overrides(preemptive=False)
    states = _init_states(processes)
    events = _run_decision_loop(
        "PRIORITY_NON_PREEMPTIVE",
        states,
        lambda s, now: s.priority,
        preemptive=False,
    )
    return _finish("PRIORITY_NON_PREEMPTIVE", options, events, states)
