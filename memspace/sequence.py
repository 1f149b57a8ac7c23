"""Singly linked sequence of blocks backing the free and allocated lists."""
from __future__ import annotations

from typing import Iterable, List, Optional

from .common import Block, BlockNotFoundError, SequenceIndexError


class Node:
    __slots__ = ("block", "next")

    def __init__(self, block: Block, next: Optional[Node] = None) -> None:
        self.block = block
        self.next = next

    def __repr__(self) -> str:
        return f"Node({self.block})"


class BlockCursor:
    """Forward-only traversal over a sequence.

    ``current`` is the node whose block the next call to ``next()`` yields, so a
    caller can remove it by identity without scanning the list a second time.
    The cursor yields at most as many blocks as the sequence held when it was
    created.
    """

    def __init__(self, first: Optional[Node], size: int) -> None:
        self.current = first
        self._remaining = size

    def __iter__(self) -> BlockCursor:
        return self

    def has_next(self) -> bool:
        return self.current is not None and self._remaining > 0

    def __next__(self) -> Block:
        if not self.has_next():
            raise StopIteration
        node = self.current
        self.current = node.next
        self._remaining -= 1
        return node.block


class BlockSequence:
    """Ordered container of blocks with O(1) access to both ends."""

    def __init__(self, blocks: Iterable[Block] = ()) -> None:
        self._first: Optional[Node] = None
        self._last: Optional[Node] = None
        self._size = 0
        for block in blocks:
            self.add_last(block)

    @property
    def first(self) -> Optional[Node]:
        return self._first

    @property
    def last(self) -> Optional[Node]:
        return self._last

    @property
    def size(self) -> int:
        return self._size

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> BlockCursor:
        return self.iterate()

    def iterate(self) -> BlockCursor:
        return BlockCursor(self._first, self._size)

    # -- Access -----------------------------------------------------------

    def node_at(self, index: int) -> Node:
        self._check_index(index, self._size - 1)
        if index == 0:
            return self._first
        if index == self._size - 1:
            return self._last
        node = self._first
        for _ in range(index):
            node = node.next
        return node

    def block_at(self, index: int) -> Block:
        return self.node_at(index).block

    def index_of(self, block: Optional[Block]) -> int:
        if block is None:
            return -1
        for idx, candidate in enumerate(self):
            if candidate == block:
                return idx
        return -1

    # -- Insertion --------------------------------------------------------

    def insert_at(self, index: int, block: Block) -> None:
        self._check_index(index, self._size)
        if index == 0:
            self.add_first(block)
            return
        if index == self._size:
            self.add_last(block)
            return
        prev = self.node_at(index - 1)
        prev.next = Node(block, prev.next)
        self._size += 1

    def add_first(self, block: Block) -> None:
        node = Node(block, self._first)
        self._first = node
        if self._last is None:
            self._last = node
        self._size += 1

    def add_last(self, block: Block) -> None:
        node = Node(block)
        if self._last is None:
            self._first = node
        else:
            self._last.next = node
        self._last = node
        self._size += 1

    def add_in_order(self, block: Block) -> None:
        """Insert ``block`` after every block whose base is not greater than its own."""

        if self._first is None or block.base_address < self._first.block.base_address:
            self.add_first(block)
            return
        prev = self._first
        while prev.next is not None and prev.next.block.base_address <= block.base_address:
            prev = prev.next
        node = Node(block, prev.next)
        prev.next = node
        if node.next is None:
            self._last = node
        self._size += 1

    # -- Removal ----------------------------------------------------------

    def remove_node(self, node: Optional[Node]) -> None:
        """Unlink ``node``; nodes that are not part of this chain are ignored."""

        prev = None
        current = self._first
        while current is not None:
            if current is node:
                self._unlink(prev, current)
                return
            prev, current = current, current.next

    def remove_at(self, index: int) -> Block:
        self._check_index(index, self._size - 1)
        prev = self.node_at(index - 1) if index > 0 else None
        node = self._first if prev is None else prev.next
        self._unlink(prev, node)
        return node.block

    def remove_block(self, block: Optional[Block]) -> None:
        if block is None or self.index_of(block) == -1:
            raise BlockNotFoundError(f"block {block} is not in this sequence")
        prev = None
        current = self._first
        while current is not None:
            if current.block == block:
                self._unlink(prev, current)
                return
            prev, current = current, current.next

    def _unlink(self, prev: Optional[Node], node: Node) -> None:
        if prev is None:
            self._first = node.next
        else:
            prev.next = node.next
        if node is self._last:
            self._last = prev
        self._size -= 1

    # -- Derived views ----------------------------------------------------

    def sorted_by_address(self) -> BlockSequence:
        """Return a new sequence holding the same blocks ordered by base address."""

        ordered = BlockSequence()
        for block in self:
            ordered.add_in_order(block)
        return ordered

    def blocks(self) -> List[Block]:
        return list(self)

    def total_length(self) -> int:
        return sum(block.length for block in self)

    def debug_string(self) -> str:
        return "".join(f"{block} " for block in self)

    def __str__(self) -> str:
        return self.debug_string()

    def __repr__(self) -> str:
        return f"BlockSequence([{', '.join(repr(block) for block in self)}])"

    def _check_index(self, index: int, upper: int) -> None:
        if index < 0 or index > upper:
            raise SequenceIndexError(
                f"index {index} out of range for sequence of size {self._size}"
            )


__all__ = ["Node", "BlockCursor", "BlockSequence"]
