"""A bounded, thread-safe doubly linked list that reuses freed nodes."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Iterator, Optional


class ListFullError(Exception):
    """Raised when adding to a list that has reached its capacity."""


@dataclass(eq=False)
class Node:
    data: Any = None
    prev: Optional[Node] = None
    next: Optional[Node] = None
    occupied: bool = False
    owner: Optional[PoolList] = None


class PoolList:
    """Doubly linked list with a fixed capacity; new items go to the head."""

    def __init__(self, capacity: int) -> None:
        if capacity < 0:
            raise ValueError("capacity must not be negative")
        self.capacity = capacity
        self.head: Optional[Node] = None
        self.tail: Optional[Node] = None
        self.lock = threading.RLock()
        self._count = 0
        self._allocated = 0
        self._free: Optional[Node] = None

    def _take_node(self) -> Node:
        node = self._free
        if node is not None:
            self._free = node.next
            return node
        if self._allocated >= self.capacity:
            raise ListFullError("list is full")
        self._allocated += 1
        return Node(owner=self)

    def add(self, data: Any) -> Node:
        """Insert data at the head and return its node."""
        with self.lock:
            if self._count >= self.capacity:
                raise ListFullError("list is full")
            node = self._take_node()
            node.occupied = True
            node.data = data
            node.prev = None
            node.next = self.head
            if self.head is not None:
                self.head.prev = node
            self.head = node
            if self.tail is None:
                self.tail = node
            self._count += 1
            return node

    def _unlink(self, node: Node) -> None:
        prevnode, nextnode = node.prev, node.next
        if prevnode is not None:
            prevnode.next = nextnode
        if nextnode is not None:
            nextnode.prev = prevnode
        if node is self.tail:
            self.tail = prevnode
        if node is self.head:
            self.head = nextnode
        node.prev = None
        node.next = self._free
        node.occupied = False
        node.data = None
        self._free = node
        self._count -= 1

    def remove_data(self, data: Any) -> None:
        """Remove the first item, from the head, equal to data."""
        with self.lock:
            node = self.head
            while node is not None and not (node.data is data or node.data == data):
                node = node.next
            if node is None:
                raise ValueError("data not in list")
            self._unlink(node)

    def remove_node(self, node: Node) -> None:
        """Remove a node that belongs to this list."""
        with self.lock:
            if node is None or node.owner is not self or not node.occupied:
                raise ValueError("node not in list")
            self._unlink(node)

    def pop(self) -> Any:
        """Remove and return the item at the head."""
        with self.lock:
            if self.head is None:
                raise IndexError("pop from empty list")
            data = self.head.data
            self._unlink(self.head)
            return data

    def peek(self) -> Any:
        """Return the item at the head, or None when the list is empty."""
        with self.lock:
            return self.head.data if self.head is not None else None

    def nodes(self) -> list[Node]:
        """Return a snapshot of the nodes from head to tail."""
        with self.lock:
            result = []
            node = self.head
            while node is not None:
                result.append(node)
                node = node.next
            return result

    def __iter__(self) -> Iterator[Any]:
        return iter([node.data for node in self.nodes()])

    def iter_from_tail(self) -> Iterator[Any]:
        """Iterate over the items from tail to head."""
        with self.lock:
            items = []
            node = self.tail
            while node is not None:
                items.append(node.data)
                node = node.prev
        return iter(items)

    def __len__(self) -> int:
        return self._count