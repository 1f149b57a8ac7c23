from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from .allocators.first_fit import MemorySpace
from .common import NO_FIT
from .config import settings
from .telemetrics import get_logger
from .trace import ReplayResult, Trace, load_trace, replay


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="First-fit memory space simulator")
    parser.add_argument(
        "--log-level",
        type=str,
        default=settings.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    replay_parser = subparsers.add_parser(
        "replay", help="Replay an allocation trace against a fresh memory space."
    )
    replay_parser.add_argument("trace", type=Path, help="Path to trace JSON file")
    replay_parser.add_argument(
        "--capacity",
        type=int,
        default=None,
        help="Override the capacity recorded in the trace",
    )
    replay_parser.add_argument(
        "--output-dir",
        type=Path,
        default=settings.outputs_dir,
        help="Directory to place replay outputs",
    )
    replay_parser.add_argument(
        "--name",
        type=str,
        default=None,
        help="Optional run name, defaults to trace stem",
    )

    demo_parser = subparsers.add_parser(
        "demo", help="Walk through a scripted allocate/release/defragment session."
    )
    demo_parser.add_argument(
        "--capacity",
        type=int,
        default=settings.default_capacity,
        help="Size of the managed address range",
    )

    args = parser.parse_args(argv)
    get_logger(level=getattr(logging, args.log_level, logging.WARNING))

    if args.command == "replay":
        return command_replay(args.trace, args.output_dir, args.name, args.capacity)
    if args.command == "demo":
        return command_demo(args.capacity)

    parser.error(f"Unknown command {args.command}")
    return 1


def command_replay(
    trace_path: Path,
    output_dir: Path,
    name: Optional[str],
    capacity: Optional[int],
) -> int:
    trace = _load_trace_or_exit(trace_path)
    if capacity is not None:
        trace = Trace(capacity=capacity, ops=trace.ops)
    space = MemorySpace(trace.capacity)
    result = replay(trace, space)

    task_name = name or trace_path.stem
    output_dir.mkdir(parents=True, exist_ok=True)
    _write_replay_outputs(task_name, output_dir, result, space)

    print(
        f"[replay] {len(result.steps)} ops written to {output_dir / (task_name + '_steps.txt')};"
        f" failed allocations={result.failed_allocations};"
        f" peak allocated={result.peak_allocated};"
        f" free fragments={result.usage.free_fragments}"
        f" (fragmentation {result.usage.fragmentation:.2f})"
    )
    return 0


def command_demo(capacity: int) -> int:
    space = MemorySpace(capacity)
    unit = max(capacity // 5, 1)

    def show(action: str) -> None:
        print(f"== {action}")
        print(space.debug_string())

    show("initial")
    first = space.allocate(unit)
    show(f"allocate({unit}) -> {first}")
    second = space.allocate(unit + unit // 2)
    show(f"allocate({unit + unit // 2}) -> {second}")
    if first != NO_FIT:
        space.release(first)
        show(f"release({first})")
    third = space.allocate(max(unit // 2, 1))
    show(f"allocate({max(unit // 2, 1)}) -> {third}")
    if second != NO_FIT:
        space.release(second)
        show(f"release({second})")
    space.defragment()
    show("defragment()")
    return 0


def _write_replay_outputs(task_name: str, output_dir: Path, result: ReplayResult, space: MemorySpace) -> None:
    steps_path = output_dir / f"{task_name}_steps.txt"
    with steps_path.open("w", encoding="utf-8") as fh:
        for step in result.steps:
            fh.write(f"{step.describe()}\n")

    layout_path = output_dir / f"{task_name}_layout.txt"
    with layout_path.open("w", encoding="utf-8") as fh:
        fh.write(space.debug_string())
        fh.write("\n")


def _load_trace_or_exit(trace_path: Path) -> Trace:
    if not trace_path.exists():
        print(f"Trace file not found: {trace_path}", file=sys.stderr)
        raise SystemExit(2)
    return load_trace(trace_path)


if __name__ == "__main__":
    raise SystemExit(main())
