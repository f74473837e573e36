from __future__ import annotations

import logging
import threading
from typing import Hashable, Iterable, Optional

from .metrics import TRACKER_EVICTIONS_TOTAL, TRACKER_HITS_TOTAL, TRACKER_RESETS_TOTAL

logger = logging.getLogger("iptracker.tracker")

DEFAULT_TOP_N = 100

_NIL = -1


class _RankedWindow:
    """Doubly linked list over an arena of slots, sorted by count from head (low) to tail (high).

    Nodes are integer slots in parallel lists; links are slot indices, so the
    arena owns every node and nothing holds a reference cycle.
    """

    def __init__(self) -> None:
        self.keys: list[Hashable] = []
        self.prev: list[int] = []
        self.next: list[int] = []
        self.head = _NIL
        self.tail = _NIL
        self.size = 0
        self._free: list[int] = []

    def _alloc(self, key: Hashable) -> int:
        if self._free:
            slot = self._free.pop()
            self.keys[slot] = key
            self.prev[slot] = _NIL
            self.next[slot] = _NIL
            return slot
        self.keys.append(key)
        self.prev.append(_NIL)
        self.next.append(_NIL)
        return len(self.keys) - 1

    def _link_after(self, slot: int, anchor: int) -> None:
        following = self.next[anchor]
        self.prev[slot] = anchor
        self.next[slot] = following
        self.next[anchor] = slot
        if following == _NIL:
            self.tail = slot
        else:
            self.prev[following] = slot

    def _unlink(self, slot: int) -> None:
        before = self.prev[slot]
        after = self.next[slot]
        if before == _NIL:
            self.head = after
        else:
            self.next[before] = after
        if after == _NIL:
            self.tail = before
        else:
            self.prev[after] = before
        self.prev[slot] = _NIL
        self.next[slot] = _NIL

    def push_low(self, key: Hashable) -> int:
        slot = self._alloc(key)
        if self.head == _NIL:
            self.head = self.tail = slot
        else:
            self.next[slot] = self.head
            self.prev[self.head] = slot
            self.head = slot
        self.size += 1
        return slot

    def insert_after(self, key: Hashable, anchor: int) -> int:
        slot = self._alloc(key)
        self._link_after(slot, anchor)
        self.size += 1
        return slot

    def move_after(self, slot: int, anchor: int) -> None:
        if slot == anchor:
            return
        self._unlink(slot)
        self._link_after(slot, anchor)

    def remove(self, slot: int) -> Hashable:
        key = self.keys[slot]
        self._unlink(slot)
        self.keys[slot] = None
        self._free.append(slot)
        self.size -= 1
        return key

    def iter_high_to_low(self) -> Iterable[Hashable]:
        slot = self.tail
        while slot != _NIL:
            yield self.keys[slot]
            slot = self.prev[slot]


class TopNTracker:
    """Keeps exact hit counts per key and the ``limit`` most frequent keys in rank order.

    Every operation holds one lock over the whole state, so a tracker can be
    shared between threads (e.g. request handlers) without torn updates.
    """

    def __init__(self, limit: int = DEFAULT_TOP_N) -> None:
        self._limit = int(limit)
        self._lock = threading.Lock()
        self._counts: dict[Hashable, int] = {}
        self._window = _RankedWindow()
        self._index: dict[Hashable, int] = {}

    @property
    def limit(self) -> int:
        return self._limit

    def __len__(self) -> int:
        with self._lock:
            return len(self._counts)

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._index

    def count(self, key: Hashable) -> int:
        with self._lock:
            return self._counts.get(key, 0)

    def record_hit(self, key: Hashable) -> None:
        with self._lock:
            count = self._counts.get(key, 0) + 1
            self._counts[key] = count
            TRACKER_HITS_TOTAL.inc()
            self._rank(key, count)

    def top_n(self) -> list[tuple[Hashable, int]]:
        with self._lock:
            return [(key, self._counts[key]) for key in self._window.iter_high_to_low()]

    def lowest_ranked(self) -> Optional[tuple[Hashable, int]]:
        with self._lock:
            window = self._window
            if window.head == _NIL:
                return None
            key = window.keys[window.head]
            return key, self._counts[key]

    def reset(self) -> None:
        with self._lock:
            distinct = len(self._counts)
            self._counts = {}
            self._window = _RankedWindow()
            self._index = {}
            TRACKER_RESETS_TOTAL.inc()
        logger.info("Tracker reset", extra={"event": "reset", "cleared_keys": distinct})

    def _rank(self, key: Hashable, count: int) -> None:
        window = self._window

        if count == 1:
            if window.size < self._limit:
                self._index[key] = window.push_low(key)
            return

        slot = self._index.get(key)
        if slot is None:
            low = window.head
            if low == _NIL or self._counts[window.keys[low]] >= count:
                return
            slot = window.insert_after(key, low)
            self._index[key] = slot
            if window.size > self._limit:
                evicted = window.remove(low)
                del self._index[evicted]
                TRACKER_EVICTIONS_TOTAL.inc()
                logger.debug(
                    "Evicted lowest ranked key",
                    extra={"event": "evict", "evicted": evicted, "key": key, "count": count, "limit": self._limit},
                )

        # Counts only grow by one, so the node moves up past a single run of lower counts.
        target = _NIL
        following = window.next[slot]
        while following != _NIL and self._counts[window.keys[following]] < count:
            target = following
            following = window.next[following]

        if target != _NIL:
            window.move_after(slot, target)


def format_entries(entries: Iterable[tuple[Hashable, int]]) -> list[str]:
    return [f"{key} ({count})" for key, count in entries]
