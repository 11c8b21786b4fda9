"""One-shot timers driven by the host tick.

Timed display effects (activity lamp flashes, the end of a lamp test)
are callbacks scheduled on host time. They fire from :meth:`TimerQueue.advance`
on the same thread as everything else.
"""

import heapq
import itertools
from dataclasses import dataclass, field
from typing import Callable


@dataclass
class TimerQueue:
    """Time-ordered queue of pending callbacks."""

    _now: float = 0.0
    _heap: list[tuple[float, int, Callable[[], None]]] = field(default_factory=list)
    _counter: "itertools.count[int]" = field(default_factory=itertools.count)

    @property
    def now(self) -> float:
        return self._now

    def schedule(self, delay: float, callback: Callable[[], None]) -> None:
        """Run ``callback`` once ``delay`` seconds of host time have passed."""
        # The counter breaks ties so equal deadlines fire in schedule order
        heapq.heappush(self._heap, (self._now + max(0.0, delay), next(self._counter), callback))

    def clear(self) -> None:
        self._heap.clear()

    def advance(self, dt: float) -> int:
        """Move time forward and fire every callback now due, in order.

        Returns:
            Number of callbacks fired
        """
        self._now += dt
        fired = 0
        while self._heap and self._heap[0][0] <= self._now:
            _, _, callback = heapq.heappop(self._heap)
            callback()
            fired += 1
        return fired

    def __len__(self) -> int:
        return len(self._heap)
