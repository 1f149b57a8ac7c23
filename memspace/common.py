"""Common records and errors shared across the allocator components."""
from __future__ import annotations

from dataclasses import dataclass

NO_FIT = -1


class MemSpaceError(Exception):
    """Base class for every error raised by the package."""


class SequenceIndexError(MemSpaceError, IndexError):
    pass


class BlockNotFoundError(MemSpaceError, ValueError):
    pass


class TraceFormatError(MemSpaceError, ValueError):
    pass


@dataclass
class Block:
    """Half-open address range ``[base_address, base_address + length)``."""

    base_address: int
    length: int

    def __post_init__(self) -> None:
        if self.base_address < 0:
            raise ValueError(f"base_address must not be negative, got {self.base_address}")
        if self.length <= 0:
            raise ValueError(f"length must be positive, got {self.length}")

    @property
    def end(self) -> int:
        return self.base_address + self.length

    def is_adjacent_to(self, other: Block) -> bool:
        return self.end == other.base_address

    def copy(self) -> Block:
        return Block(self.base_address, self.length)

    def __str__(self) -> str:
        return f"({self.base_address} , {self.length})"


__all__ = [
    "NO_FIT",
    "Block",
    "MemSpaceError",
    "SequenceIndexError",
    "BlockNotFoundError",
    "TraceFormatError",
]
