from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import List, Optional

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .compare import RANKED_METRICS, ComparisonResult, compare_algorithms
from .errors import SchedulerError
from .gantt import build_rich_gantt, render_gantt
from .models import ScheduleResult
from .options import FeedbackLevel
from .registry import canonical_name, describe, list_names, run_algorithm
from .store import ResultStore
from .workload_io import load_workload

logger = logging.getLogger(__name__)

METRIC_LABELS = {
    "avg_waiting_time": "Avg waiting",
    "avg_turnaround_time": "Avg turnaround",
    "avg_response_time": "Avg response",
    "cpu_utilization": "CPU utilization",
    "throughput": "Throughput",
}


def _levels(value: str) -> List[FeedbackLevel]:
    """
    Parse `--levels 1,2,4` into feedback levels with priorities 0, 1, 2, ...
    """
    try:
        quanta = [int(part) for part in value.split(",") if part.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected comma separated integers, got {value!r}") from None
    if not quanta:
        raise argparse.ArgumentTypeError("at least one level is required")
    return [FeedbackLevel(quantum=q, priority=idx) for idx, q in enumerate(quanta)]


def _add_option_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--quantum",
        "-q",
        type=int,
        default=None,
        help="Time quantum for round robin (default: 2).",
    )
    parser.add_argument(
        "--levels",
        type=_levels,
        default=None,
        help="Comma separated quanta of the feedback queue levels (default: 1,2,4).",
    )
    parser.add_argument(
        "--aging-interval",
        type=int,
        default=None,
        help="Time units of waiting per aging step; 0 disables aging (default: 1).",
    )
    parser.add_argument(
        "--aging-amount",
        type=int,
        default=None,
        help="Priority decrease per aging step (default: 1).",
    )
    parser.add_argument(
        "--non-preemptive",
        action="store_true",
        help="Run AGING and PRIORITY_PREEMPTIVE without preemption.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON instead of tables.",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="schedsim",
        description="CPU scheduling simulator (FCFS, SJF, SRT, RR, HRRN, Feedback, Aging, Priority).",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run a scheduling algorithm on a workload file.")
    run_parser.add_argument(
        "--algorithm",
        "-a",
        required=True,
        help="Algorithm to use (see `schedsim list`).",
    )
    run_parser.add_argument(
        "--workload",
        "-w",
        required=True,
        help="Path to a JSON, CSV or text workload file.",
    )
    _add_option_flags(run_parser)
    run_parser.add_argument(
        "--plain",
        action="store_true",
        help="Draw the Gantt chart as plain text.",
    )
    run_parser.add_argument(
        "--save",
        metavar="DIR",
        default=None,
        help="Store the result as JSON in DIR.",
    )
    run_parser.add_argument(
        "--test-case",
        default=None,
        help="Test case reference recorded with --save.",
    )

    compare_parser = subparsers.add_parser(
        "compare",
        help="Run multiple algorithms on the same workload and rank them.",
    )
    compare_parser.add_argument(
        "--workload",
        "-w",
        required=True,
        help="Path to a JSON, CSV or text workload file.",
    )
    compare_parser.add_argument(
        "--algorithms",
        "-a",
        nargs="+",
        default=list_names(),
        help="Algorithms to compare (default: all).",
    )
    compare_parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Worker threads (default: one per algorithm, capped at the CPU count).",
    )
    _add_option_flags(compare_parser)

    subparsers.add_parser("list", help="List the available algorithms.")

    history_parser = subparsers.add_parser("history", help="Show results stored with `run --save`.")
    history_parser.add_argument(
        "--store",
        required=True,
        metavar="DIR",
        help="Directory passed to `run --save`.",
    )
    history_parser.add_argument("--algorithm", "-a", default=None, help="Only show this algorithm.")
    history_parser.add_argument("--test-case", default=None, help="Only show this test case.")
    history_parser.add_argument("--limit", type=int, default=20, help="Maximum rows (default: 20).")

    return parser


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _options_from_args(args: argparse.Namespace) -> dict:
    options = {
        "quantum": args.quantum,
        "levels": args.levels,
        "aging_interval": args.aging_interval,
        "aging_amount": args.aging_amount,
    }
    if args.non_preemptive:
        options["preemptive"] = False
    return {key: value for key, value in options.items() if value is not None}


def _print_result(result: ScheduleResult, console: Console, plain: bool = False) -> None:
    console.print(f"[bold]Algorithm:[/bold] {result.algorithm}")
    if result.algorithm == "RR":
        console.print(f"[bold]Quantum:[/bold] {result.options.quantum}")
    elif result.algorithm == "FEEDBACK":
        quanta = ", ".join(str(level.quantum) for level in result.options.levels)
        console.print(f"[bold]Levels:[/bold] {quanta}")
    elif result.algorithm == "AGING":
        console.print(
            f"[bold]Aging:[/bold] every {result.options.aging_interval} by {result.options.aging_amount}"
            f" ({'preemptive' if result.options.preemptive else 'non-preemptive'})"
        )

    console.print()

    if plain:
        console.print(render_gantt(result.timeline), markup=False, highlight=False)
    else:
        panel, time_marks = build_rich_gantt(result.timeline)
        console.print(panel)
        if time_marks:
            console.print(time_marks, highlight=False)

    console.print()

    headers = [
        "PID",
        "Arrive",
        "Burst",
        "Priority",
        "Start",
        "Complete",
        "Wait",
        "Turnaround",
        "Response",
    ]
    extra = None
    if result.algorithm == "AGING":
        extra = ("Final priority", "final_priority")
    elif result.algorithm == "FEEDBACK":
        extra = ("Final level", "final_level")
    elif result.algorithm == "HRRN":
        extra = ("Ratio", "response_ratio")
    if extra:
        headers.append(extra[0])

    proc_table = Table(title="Per-process metrics", box=box.SIMPLE_HEAVY)
    for h in headers:
        justify = "center" if h in {"PID", "Priority"} else "right"
        proc_table.add_column(h, justify=justify)

    for p in result.processes:
        row = [
            p.pid,
            str(p.arrival_time),
            str(p.burst_time),
            str(p.priority),
            str(p.start_time),
            str(p.completion_time),
            str(p.waiting_time),
            str(p.turnaround_time),
            str(p.response_time),
        ]
        if extra:
            value = getattr(p, extra[1])
            row.append(f"{value:.2f}" if isinstance(value, float) else str(value))
        proc_table.add_row(*row)

    console.print(proc_table)
    console.print()

    agg = result.aggregate
    sys_table = Table(title="System metrics", box=box.SIMPLE_HEAVY)
    sys_table.add_column("Metric")
    sys_table.add_column("Value", justify="right")

    sys_table.add_row("Avg waiting", f"{agg.avg_waiting_time:.2f}")
    sys_table.add_row("Avg turnaround", f"{agg.avg_turnaround_time:.2f}")
    sys_table.add_row("Avg response", f"{agg.avg_response_time:.2f}")
    sys_table.add_row("Throughput (proc/time)", f"{agg.throughput:.4f}")
    sys_table.add_row("CPU utilization", f"{agg.cpu_utilization:.2f}%")
    sys_table.add_row("Idle time", str(agg.idle_time))
    sys_table.add_row("Context switches", str(agg.context_switches))

    console.print(sys_table)


def _print_comparison(comparison: ComparisonResult, console: Console) -> None:
    summary_table = Table(title="Algorithm comparison", box=box.SIMPLE_HEAVY)
    summary_table.add_column("Algorithm")
    for metric, _ in RANKED_METRICS:
        summary_table.add_column(METRIC_LABELS[metric], justify="right")

    for name, result in comparison.results.items():
        cells = []
        for metric, _ in RANKED_METRICS:
            value = getattr(result.aggregate, metric)
            text = f"{value:.4f}" if metric == "throughput" else f"{value:.2f}"
            leader = comparison.ranking.get(metric)
            if leader is not None and leader.algorithm == name:
                text = f"[bold green]{text}[/bold green]"
            cells.append(text)
        summary_table.add_row(name, *cells)

    console.print(summary_table)

    for err in comparison.errors:
        console.print(f"{err.algorithm}: {err.error}", style="red", markup=False)


def _print_history(records: List[dict], console: Console) -> None:
    table = Table(title="Stored results", box=box.SIMPLE_HEAVY)
    table.add_column("Created")
    table.add_column("Algorithm")
    table.add_column("Test case")
    table.add_column("Avg waiting", justify="right")
    table.add_column("Avg turnaround", justify="right")

    for record in records:
        aggregate = record.get("result", {}).get("aggregate", {})
        table.add_row(
            str(record.get("created_at", ""))[:19].replace("T", " "),
            str(record.get("algorithm", "")),
            record.get("test_case") or "",
            f"{aggregate.get('avg_waiting_time', 0.0):.2f}",
            f"{aggregate.get('avg_turnaround_time', 0.0):.2f}",
        )
    console.print(table)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    console = Console()

    try:
        if args.command == "run":
            processes = load_workload(Path(args.workload))
            result = run_algorithm(args.algorithm, processes, _options_from_args(args))
            if args.save:
                path = ResultStore(args.save).save(result, test_case=args.test_case)
                if not args.json:
                    console.print(f"[dim]Saved to {path}[/dim]")
            if args.json:
                console.print_json(json.dumps(result.to_dict()))
            else:
                _print_result(result, console, plain=args.plain)
            return 0

        if args.command == "compare":
            processes = load_workload(Path(args.workload))
            comparison = compare_algorithms(
                processes,
                args.algorithms,
                options=_options_from_args(args),
                max_workers=args.workers,
            )
            if args.json:
                console.print_json(json.dumps(comparison.to_dict()))
            else:
                _print_comparison(comparison, console)
            return 0 if comparison.results else 2

        if args.command == "list":
            table = Table(title="Algorithms", box=box.SIMPLE_HEAVY)
            table.add_column("Name")
            table.add_column("Description")
            for name, description in describe().items():
                table.add_row(name, description)
            console.print(table)
            return 0

        if args.command == "history":
            algorithm = canonical_name(args.algorithm) if args.algorithm else None
            records = ResultStore(args.store).history(
                algorithm=algorithm,
                test_case=args.test_case,
                limit=args.limit,
            )
            _print_history(records, console)
            return 0
    except SchedulerError as exc:
        logger.debug("Command failed", exc_info=True)
        console.print(f"Error: {exc}", style="red", markup=False)
        return 2
    except OSError as exc:
        console.print(f"Error: {exc}", style="red", markup=False)
        return 2

    parser.error(f"Unknown command: {args.command}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
