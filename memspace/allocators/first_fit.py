"""First-fit allocator over a 1-D address space with explicit defragmentation."""
from __future__ import annotations

from dataclasses import dataclass

from ..common import NO_FIT, Block
from ..sequence import BlockSequence
from ..telemetrics import LOGGER

LOGGER = LOGGER.getChild('FirstFit')


@dataclass
class UsageReport:
    capacity: int
    free_total: int
    allocated_total: int
    free_fragments: int
    largest_free: int
    allocations: int

    @property
    def fragmentation(self) -> float:
        if not self.free_total:
            return 0.0
        return 1.0 - self.largest_free / self.free_total


class MemorySpace:
    """Managed address range ``[0, max_size)`` split into free and allocated blocks.

    ``allocate`` scans the free list in list order, which is the order blocks were
    released in, not address order. Released blocks are appended to the free list
    untouched; adjacent free blocks only merge when ``defragment`` is called.
    """

    def __init__(self, max_size: int) -> None:
        if max_size <= 0:
            raise ValueError(f"max_size must be positive, got {max_size}")
        self._max_size = max_size
        self.allocated_list = BlockSequence()
        self.free_list = BlockSequence()
        self.free_list.add_last(Block(0, max_size))

    @property
    def max_size(self) -> int:
        return self._max_size

    def allocate(self, length: int) -> int:
        if length <= 0:
            raise ValueError(f"length must be positive, got {length}")

        cursor = self.free_list.iterate()
        while cursor.has_next():
            node = cursor.current
            free_block = node.block
            if free_block.length >= length:
                allocated = Block(free_block.base_address, length)
                self.allocated_list.add_last(allocated)
                if free_block.length == length:
                    self.free_list.remove_node(node)
                else:
                    free_block.base_address += length
                    free_block.length -= length
                LOGGER.debug(f'allocated {allocated} from free list')
                return allocated.base_address
            next(cursor)

        LOGGER.debug(f'no free block fits length {length}')
        return NO_FIT

    def release(self, address: int) -> None:
        cursor = self.allocated_list.iterate()
        while cursor.has_next():
            node = cursor.current
            if node.block.base_address == address:
                self.allocated_list.remove_node(node)
                self.free_list.add_last(node.block.copy())
                LOGGER.debug(f'released {node.block}')
                return
            next(cursor)

        LOGGER.debug(f'release of {address} ignored, address is not allocated')

    def defragment(self) -> None:
        self.free_list = self.free_list.sorted_by_address()

        merged = 0
        current = self.free_list.first
        while current is not None and current.next is not None:
            if current.block.is_adjacent_to(current.next.block):
                current.block.length += current.next.block.length
                self.free_list.remove_node(current.next)
                merged += 1
            else:
                current = current.next

        LOGGER.debug(f'defragmented free list, {merged} merges, {len(self.free_list)} blocks left')

    def usage(self) -> UsageReport:
        free_total = 0
        largest_free = 0
        for block in self.free_list:
            free_total += block.length
            largest_free = max(largest_free, block.length)
        return UsageReport(
            capacity=self._max_size,
            free_total=free_total,
            allocated_total=self.allocated_list.total_length(),
            free_fragments=len(self.free_list),
            largest_free=largest_free,
            allocations=len(self.allocated_list),
        )

    def debug_string(self) -> str:
        return f"{self.free_list.debug_string()}\n{self.allocated_list.debug_string()}"

    def __str__(self) -> str:
        return self.debug_string()


__all__ = ["MemorySpace", "UsageReport"]
