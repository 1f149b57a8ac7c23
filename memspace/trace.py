"""Replay recorded allocation workloads against a memory space."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .allocators.first_fit import MemorySpace, UsageReport
from .common import NO_FIT, TraceFormatError
from .telemetrics import LOGGER

LOGGER = LOGGER.getChild('Trace')

OPS = ("ALLOC", "FREE", "DEFRAG")


@dataclass(frozen=True)
class TraceOp:
    """One step of a workload.

    ``value`` is the length for ``ALLOC`` and the address for ``FREE``. A ``FREE``
    may name an earlier allocation through ``label`` instead of an address.
    """

    op: str
    value: Optional[int] = None
    label: Optional[str] = None

    @property
    def is_alloc(self) -> bool:
        return self.op == "ALLOC"

    @property
    def is_free(self) -> bool:
        return self.op == "FREE"

    @property
    def is_defrag(self) -> bool:
        return self.op == "DEFRAG"


@dataclass
class Trace:
    capacity: int
    ops: List[TraceOp] = field(default_factory=list)


@dataclass
class TraceStep:
    op: TraceOp
    address: Optional[int]
    free_total: int
    allocated_total: int

    def describe(self) -> str:
        if self.op.is_defrag:
            action = "DEFRAG"
        elif self.op.is_alloc:
            action = f"ALLOC {self.op.value}"
        elif self.op.value is not None:
            action = f"FREE {self.op.value}"
        else:
            action = f"FREE {self.op.label}"
        if self.op.label and not self.op.is_free:
            action += f" [{self.op.label}]"
        result = "" if self.address is None else f" -> {self.address}"
        return f"{action}{result} free={self.free_total} allocated={self.allocated_total}"


@dataclass
class ReplayResult:
    steps: List[TraceStep]
    usage: UsageReport
    failed_allocations: int
    peak_allocated: int


def load_trace(path: Path) -> Trace:
    """Load a workload description from a JSON file."""

    if path.suffix.lower() == ".json":
        try:
            payload = json.loads(path.read_text())
        except json.JSONDecodeError as exc:
            raise TraceFormatError(f"Trace file {path} is not valid JSON: {exc}") from exc
        return parse_trace(payload)
    raise ValueError(f"Unsupported trace file: {path}")


def _int_field(raw_op: Dict[str, Any], key: str, position: int) -> int:
    try:
        return int(raw_op[key])
    except (TypeError, ValueError) as exc:
        raise TraceFormatError(f"{key} at position {position} must be an integer, got {raw_op[key]!r}") from exc


def parse_trace(payload: Dict[str, Any]) -> Trace:
    try:
        capacity = int(payload["Capacity"])
        raw_ops = payload["Ops"]
    except (KeyError, TypeError, ValueError) as exc:
        raise TraceFormatError(f"Trace needs an integer Capacity and an Ops list: {exc}") from exc
    if not isinstance(raw_ops, list):
        raise TraceFormatError(f"Ops must be a list, got {type(raw_ops).__name__}")

    ops: List[TraceOp] = []
    for position, raw_op in enumerate(raw_ops):
        if not isinstance(raw_op, dict):
            raise TraceFormatError(f"Op at position {position} must be an object, got {raw_op!r}")
        op = str(raw_op.get("Op", "")).upper()
        label = raw_op.get("Label")
        if op == "ALLOC":
            if "Size" not in raw_op:
                raise TraceFormatError(f"ALLOC at position {position} has no Size")
            size = _int_field(raw_op, "Size", position)
            if size <= 0:
                raise TraceFormatError(f"ALLOC at position {position} needs a positive Size, got {size}")
            ops.append(TraceOp(op, size, label))
        elif op == "FREE":
            if "Address" in raw_op:
                ops.append(TraceOp(op, _int_field(raw_op, "Address", position), label))
            elif label is not None:
                ops.append(TraceOp(op, None, label))
            else:
                raise TraceFormatError(f"FREE at position {position} needs an Address or a Label")
        elif op == "DEFRAG":
            ops.append(TraceOp(op))
        else:
            raise TraceFormatError(f"Unknown op {raw_op.get('Op')!r} at position {position}, expected one of {OPS}")
    return Trace(capacity=capacity, ops=ops)


def replay(trace: Union[Trace, List[TraceOp]], space: Optional[MemorySpace] = None) -> ReplayResult:
    if isinstance(trace, Trace):
        ops = trace.ops
        if space is None:
            space = MemorySpace(trace.capacity)
    else:
        ops = trace
    if space is None:
        raise ValueError("A memory space is required when replaying a bare op list")

    labels: Dict[str, int] = {}
    steps: List[TraceStep] = []
    failed = 0
    peak = space.usage().allocated_total

    for op in ops:
        address: Optional[int] = None
        if op.is_alloc:
            address = space.allocate(op.value)
            if address == NO_FIT:
                failed += 1
            elif op.label is not None:
                labels[op.label] = address
        elif op.is_free:
            labelled = labels.pop(op.label, None) if op.label is not None else None
            target = op.value if op.value is not None else labelled
            if target is None:
                LOGGER.debug(f'FREE of unknown label {op.label!r} ignored')
            else:
                space.release(target)
        else:
            space.defragment()

        usage = space.usage()
        peak = max(peak, usage.allocated_total)
        steps.append(TraceStep(op, address, usage.free_total, usage.allocated_total))

    LOGGER.info(f'replayed {len(ops)} ops, {failed} allocations failed')
    return ReplayResult(
        steps=steps,
        usage=space.usage(),
        failed_allocations=failed,
        peak_allocated=peak,
    )


__all__ = [
    "TraceOp",
    "Trace",
    "TraceStep",
    "ReplayResult",
    "load_trace",
    "parse_trace",
    "replay",
]
