import logging
import random
from collections.abc import Hashable
from typing import Any, Callable, List, Optional


logger = logging.getLogger(__name__)

INIT_CAPACITY = 16
LOAD_FACTOR = 0.75
HASH_SEED = 690
TABLE_WIDTH = 1 << 8

_table: Optional[List[int]] = None
_MISSING = object()


def _get_table() -> List[int]:
    """Lazily builds the 256x256 table of 4 byte values used by mix_hash."""
    global _table
    if _table is None:
        gen = random.Random(HASH_SEED)
        raw = gen.randbytes(TABLE_WIDTH * TABLE_WIDTH * 4)
        _table = [int.from_bytes(raw[i:i + 4], "big") for i in range(0, len(raw), 4)]
    return _table


def mix_hash(key) -> int:
    """
    Keyed mix hash over the 32 bit identity hash of key.
    The hash is split into two 2 byte chunks, each chunk is folded into the running
    state and used as row/column of the lookup table. Equal keys give equal hashes,
    collision rate is about that of random numbers, O(1) time.
    hash() of str keys, and of Intersection through its id, is salted per process,
    so their bucket placement varies between runs.
    """
    table = _get_table()
    chunks = (hash(key) & 0xFFFFFFFF).to_bytes(4, "big")
    h = 0
    for i in range(0, len(chunks), 2):
        x = chunks[i] ^ ((h >> 24) & 0xFF)
        y = chunks[i + 1] ^ ((h >> 16) & 0xFF)
        h ^= table[(y << 8) | x]
    return h - (1 << 32) if h & 0x80000000 else h


def close_table():
    """Forgets the mix_hash table. The next call to mix_hash rebuilds it."""
    global _table
    _table = None


def _power_of_two(n: int) -> int:
    capacity = 1
    while capacity < n:
        capacity <<= 1
    return capacity


class HashMap:
    """
    Hash map using separate chaining over mix_hash.
    Capacity is always a power of two and doubles once the load factor is reached.
    Insertion order is kept in a DLList so iteration is deterministic.
    """
    def __init__(self, capacity: int = INIT_CAPACITY, load_factor: float = LOAD_FACTOR):
        if not 0 < load_factor <= 1:
            raise ValueError(f"load factor must be in (0, 1], got {load_factor}")
        self.capacity = _power_of_two(max(1, capacity))
        self.load_factor = load_factor
        self.table: List[List[DLList.Node]] = [[] for _ in range(self.capacity)]
        self.size = 0
        self.order = DLList()

    def _bucket(self, key_hash: int) -> List:
        return self.table[key_hash & (self.capacity - 1)]

    def _find(self, key, key_hash: int):
        """Returns the node holding key, or None."""
        for node in self._bucket(key_hash):
            if node.item.hash == key_hash and node.item.key == key:
                return node
        return None

    def _lookup(self, key):
        """Finds the node for a lookup, a None key is never present."""
        if key is None:
            return None
        if not self.__hashable(key):
            raise TypeError(f"unhashable type: {type(key).__name__}")
        return self._find(key, mix_hash(key))

    def __increase_capacity(self):
        """Double table capacity and rehash every entry into the fresh table."""
        self.capacity *= 2
        self.table = [[] for _ in range(self.capacity)]
        for node in self.order:
            self._bucket(node.item.hash).append(node)
        logger.debug("HashMap resized to %d buckets holding %d entries", self.capacity, self.size)

    def put(self, key, value):
        """Stores value under key. Returns the value it replaced, or None."""
        if key is None:
            raise ValueError("cannot store a None key")
        if not self.__hashable(key):
            raise TypeError(f"unhashable type: {type(key).__name__}")
        key_hash = mix_hash(key)
        if (node := self._find(key, key_hash)) is not None:
            old, node.item.value = node.item.value, value
            return old
        node = DLList.Node(HashMap.Entry(key, value, key_hash))
        self._bucket(key_hash).append(node)
        self.order.tail_insert(node)
        self.size += 1
        if self.size >= self.load_factor * self.capacity:
            self.__increase_capacity()
        return None

    def put_if_absent(self, key, value):
        """Stores value only if key is missing. Returns the existing value, or None."""
        if (node := self._lookup(key)) is not None:
            return node.item.value
        self.put(key, value)
        return None

    def get(self, key, default=None):
        """Value stored under key, default if the key is not present."""
        if (node := self._lookup(key)) is not None:
            return node.item.value
        return default

    def remove(self, key):
        """Detaches key and returns its value, or None if it was not present."""
        node = self._lookup(key)
        if node is None:
            return None
        self._bucket(node.item.hash).remove(node)
        self.order.delete_node(node)
        self.size -= 1
        return node.item.value

    def pop(self, key, default=_MISSING):
        """Finds, deletes, and returns the item associated with the key."""
        if key in self:
            return self.remove(key)
        if default is _MISSING:
            raise KeyError(key)
        return default

    def keys(self) -> List:
        """Snapshot of the keys in insertion order."""
        return [node.item.key for node in self.order]

    def values(self) -> List:
        return [node.item.value for node in self.order]

    def items(self) -> List:
        """Snapshot of (key, value) pairs in insertion order."""
        return [(node.item.key, node.item.value) for node in self.order]

    def clear(self):
        self.table = [[] for _ in range(self.capacity)]
        self.size = 0
        self.order = DLList()

    def __hashable(self, key):
        return isinstance(key, Hashable)

    def __len__(self):
        return self.size

    def __contains__(self, key):
        """Returns boolean representing whether the key is in the map or not."""
        return self._lookup(key) is not None

    def __getitem__(self, key):
        if (node := self._lookup(key)) is not None:
            return node.item.value
        raise KeyError(key)

    def __setitem__(self, key, value):
        self.put(key, value)

    def __delitem__(self, key):
        if key not in self:
            raise KeyError(key)
        self.remove(key)

    def __iter__(self):
        """Yields every key in insertion order."""
        for node in self.order:
            yield node.item.key

    def __eq__(self, other):
        if not isinstance(other, HashMap) or len(self) != len(other):
            return False
        return all(key in other and other[key] == value for key, value in self.items())

    def __repr__(self):
        return "HashMap({" + ", ".join(f"{k!r}: {v!r}" for k, v in self.items()) + "})"

    class Entry:
        """Local class for wrapping a stored key and value."""
        __slots__ = ("key", "value", "hash")

        def __init__(self, key, value, key_hash: int):
            self.key = key
            self.value = value
            self.hash = key_hash


class DLList:
    """Doubly linked list with a sentinel head. Used to keep hash map insertion order."""
    def __init__(self):
        head = DLList.Node(None)
        self.head = head.prev = head.next = head

    def tail_insert(self, node):
        """Inserts a node at tail."""
        node.next = self.head
        node.prev = self.head.prev
        node.next.prev = node
        node.prev.next = node
        return node

    def delete_node(self, node):
        node.prev.next = node.next
        node.next.prev = node.prev
        node.prev = node.next = None

    def __iter__(self):
        """Yields every node in the list, skipping the sentinel."""
        cursor = self.head.next
        while cursor is not self.head:
            yield cursor
            cursor = cursor.next

    class Node:
        __slots__ = ("item", "prev", "next")

        def __init__(self, item):
            self.item = item
            self.prev = None
            self.next = None


class IndexedPriorityQueue:
    """
    Binary min-heap paired with a HashMap from element to its position in the heap.
    The index map lets decrease_key and membership checks find an element in O(1)
    instead of scanning the heap. Priorities come from key(element), evaluated on
    every comparison, so they may live in a map owned by the caller.
    """
    def __init__(self, key: Optional[Callable[[Any], Any]] = None):
        self.elements: List = []
        self.indices = HashMap()
        self.key = key if key is not None else (lambda element: element)

    def add(self, element):
        """Appends element and sifts it up into place."""
        if element in self.indices:
            raise ValueError(f"element already queued: {element!r}")
        self.elements.append(element)
        self.indices[element] = len(self.elements) - 1
        self._sift_up(len(self.elements) - 1)

    def poll(self):
        """Removes and returns the element with the lowest priority."""
        if not self.elements:
            raise IndexError("poll from empty priority queue")
        root = self.elements[0]
        self.indices.remove(root)
        last = self.elements.pop()
        if self.elements:
            self.elements[0] = last
            self.indices[last] = 0
            self._sift_down(0)
        return root

    def peek(self):
        if not self.elements:
            raise IndexError("peek from empty priority queue")
        return self.elements[0]

    def decrease_key(self, element):
        """
        Restores heap order after the priority of element went down.
        Only valid for decreases, an increased priority is not sifted down.
        """
        index = self.indices.get(element)
        if index is not None:
            self._sift_up(index)

    def _sift_up(self, k: int):
        elements, indices = self.elements, self.indices
        element = elements[k]
        priority = self.key(element)
        while k > 0:
            parent = (k - 1) >> 1
            parent_element = elements[parent]
            if not priority < self.key(parent_element):
                break
            elements[k] = parent_element
            indices[parent_element] = k
            k = parent
        elements[k] = element
        indices[element] = k

    def _sift_down(self, k: int):
        elements, indices = self.elements, self.indices
        size = len(elements)
        half = size >> 1
        element = elements[k]
        priority = self.key(element)
        while k < half:
            child = (k << 1) + 1
            child_element = elements[child]
            child_priority = self.key(child_element)
            right = child + 1
            if right < size:
                right_priority = self.key(elements[right])
                if right_priority < child_priority:
                    child, child_element, child_priority = right, elements[right], right_priority
            if not child_priority < priority:
                break
            elements[k] = child_element
            indices[child_element] = k
            k = child
        elements[k] = element
        indices[element] = k

    def is_empty(self) -> bool:
        return not self.elements

    def __contains__(self, element):
        return element in self.indices

    def __len__(self):
        return len(self.elements)
