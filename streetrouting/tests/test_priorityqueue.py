import random

import pytest

from streetrouting.datastructures import IndexedPriorityQueue


@pytest.fixture
def setup():
    priorities = {}
    yield priorities, IndexedPriorityQueue(key=priorities.__getitem__)


def assert_indexed(queue):
    for position, element in enumerate(queue.elements):
        assert queue.indices[element] == position
    assert len(queue.indices) == len(queue)


def drain(queue):
    out = []
    while queue:
        out.append(queue.poll())
    return out


def test_poll_in_priority_order(setup):
    priorities, queue = setup
    for name, priority in [("a", 5), ("b", 1), ("c", 3), ("d", 4), ("e", 2)]:
        priorities[name] = priority
        queue.add(name)
    assert_indexed(queue)
    assert queue.peek() == "b"
    assert drain(queue) == ["b", "e", "c", "d", "a"]
    assert queue.is_empty()


def test_default_key_orders_elements():
    queue = IndexedPriorityQueue()
    for n in [7, 3, 9, 1]:
        queue.add(n)
    assert drain(queue) == [1, 3, 7, 9]


def test_decrease_key(setup):
    priorities, queue = setup
    for name, priority in [("a", 1), ("b", 5), ("c", 9), ("d", 7)]:
        priorities[name] = priority
        queue.add(name)
    priorities["c"] = 0
    queue.decrease_key("c")
    assert_indexed(queue)
    assert queue.poll() == "c"
    assert_indexed(queue)
    assert drain(queue) == ["a", "b", "d"]


def test_decrease_key_of_missing_element_is_ignored(setup):
    priorities, queue = setup
    priorities["a"] = 1
    queue.add("a")
    queue.decrease_key("zzz")
    assert len(queue) == 1


def test_contains(setup):
    priorities, queue = setup
    priorities.update(a=2, b=1)
    queue.add("a")
    queue.add("b")
    assert "a" in queue and "b" in queue
    queue.poll()
    assert "b" not in queue
    assert "a" in queue
    queue.poll()
    assert "a" not in queue


def test_add_twice(setup):
    priorities, queue = setup
    priorities["a"] = 1
    queue.add("a")
    with pytest.raises(ValueError):
        queue.add("a")


def test_empty_queue(setup):
    _, queue = setup
    with pytest.raises(IndexError):
        queue.poll()
    with pytest.raises(IndexError):
        queue.peek()


def test_mixed_operations_keep_heap_order():
    gen = random.Random(42)
    priorities = {}
    queue = IndexedPriorityQueue(key=priorities.__getitem__)
    popped = []
    next_id = 0
    for _ in range(2000):
        action = gen.random()
        if action < 0.5 or not queue:
            priorities[next_id] = gen.randint(0, 1000)
            queue.add(next_id)
            next_id += 1
        elif action < 0.8:
            element = gen.choice(queue.elements)
            priorities[element] -= gen.randint(0, 50)
            queue.decrease_key(element)
        else:
            element = queue.poll()
            assert all(priorities[element] <= priorities[other] for other in queue.elements)
            popped.append(element)
        assert_indexed(queue)
    rest = drain(queue)
    assert [priorities[e] for e in rest] == sorted(priorities[e] for e in rest)
    assert all(element not in queue for element in popped + rest)
