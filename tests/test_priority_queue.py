import random

import pytest

from src.allocator.services.graph.priority_queue import EmptyQueueError, MinPriorityQueue


def test_pop_returns_items_in_priority_order():
    queue = MinPriorityQueue()
    for item, priority in [("c", 3), ("a", 1), ("e", 5), ("b", 2), ("d", 4)]:
        queue.push(item, priority)

    assert len(queue) == 5
    assert queue.peek() == "a"
    assert [queue.pop() for _ in range(5)] == ["a", "b", "c", "d", "e"]
    assert queue.is_empty()


def test_pop_and_peek_on_empty_queue_raise():
    queue = MinPriorityQueue()

    with pytest.raises(EmptyQueueError):
        queue.pop()
    with pytest.raises(IndexError):
        queue.peek()
    with pytest.raises(EmptyQueueError):
        queue.pop_with_priority()


def test_pop_with_priority_and_clear():
    queue = MinPriorityQueue()
    queue.push("far", 10.5)
    queue.push("near", 0.25)

    assert queue.pop_with_priority() == ("near", 0.25)
    assert bool(queue) is True

    queue.clear()
    assert bool(queue) is False
    assert len(queue) == 0


def test_items_are_never_compared():
    class Opaque:
        pass

    queue = MinPriorityQueue()
    first, second = Opaque(), Opaque()
    queue.push(first, 1)
    queue.push(second, 1)

    assert {queue.pop(), queue.pop()} == {first, second}


def test_matches_sorted_order_on_random_input():
    rng = random.Random(7)
    priorities = [rng.uniform(-100, 100) for _ in range(500)]
    queue = MinPriorityQueue()
    for index, priority in enumerate(priorities):
        queue.push(index, priority)

    popped = [queue.pop_with_priority()[1] for _ in range(len(priorities))]

    assert popped == sorted(priorities)


def test_interleaved_push_and_pop_keep_heap_order():
    rng = random.Random(11)
    queue = MinPriorityQueue()
    reference = []
    for _ in range(2000):
        if reference and rng.random() < 0.4:
            _, priority = queue.pop_with_priority()
            assert priority == min(reference)
            reference.remove(priority)
        else:
            priority = rng.randint(0, 50)
            queue.push(object(), priority)
            reference.append(priority)

    assert len(queue) == len(reference)


def test_large_queue_does_not_recurse():
    queue = MinPriorityQueue()
    for value in range(100_000, 0, -1):
        queue.push(value, value)

    assert queue.pop() == 1
    assert len(queue) == 99_999
