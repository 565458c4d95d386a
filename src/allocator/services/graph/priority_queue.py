"""Binary min-heap priority queue used by the shortest-path searches."""

from __future__ import annotations

from typing import Generic, TypeVar

T = TypeVar("T")


class EmptyQueueError(IndexError):
    """Raised when popping or peeking an empty queue."""


class MinPriorityQueue(Generic[T]):
    """Array-backed binary heap ordered by a numeric priority (lowest first).

    Items are never compared with each other, only their priorities, so any
    object can be queued. The order of items with equal priority is
    unspecified.
    """

    __slots__ = ("_heap",)

    def __init__(self) -> None:
        self._heap: list[tuple[float, T]] = []

    def push(self, item: T, priority: float) -> None:
        self._heap.append((priority, item))
        self._sift_up(len(self._heap) - 1)

    def pop(self) -> T:
        if not self._heap:
            raise EmptyQueueError("pop from an empty priority queue")
        root = self._heap[0]
        last = self._heap.pop()
        if self._heap:
            self._heap[0] = last
            self._sift_down(0)
        return root[1]

    def pop_with_priority(self) -> tuple[T, float]:
        if not self._heap:
            raise EmptyQueueError("pop from an empty priority queue")
        priority = self._heap[0][0]
        return self.pop(), priority

    def peek(self) -> T:
        if not self._heap:
            raise EmptyQueueError("peek at an empty priority queue")
        return self._heap[0][1]

    def is_empty(self) -> bool:
        return not self._heap

    def clear(self) -> None:
        self._heap.clear()

    def __len__(self) -> int:
        return len(self._heap)

    def __bool__(self) -> bool:
        return bool(self._heap)

    def _sift_up(self, index: int) -> None:
        heap = self._heap
        while index > 0:
            parent = (index - 1) // 2
            if heap[index][0] < heap[parent][0]:
                heap[index], heap[parent] = heap[parent], heap[index]
                index = parent
            else:
                break

    def _sift_down(self, index: int) -> None:
        heap = self._heap
        size = len(heap)
        while True:
            left = 2 * index + 1
            right = left + 1
            smallest = index
            if left < size and heap[left][0] < heap[smallest][0]:
                smallest = left
            if right < size and heap[right][0] < heap[smallest][0]:
                smallest = right
            if smallest == index:
                return
            heap[index], heap[smallest] = heap[smallest], heap[index]
            index = smallest
