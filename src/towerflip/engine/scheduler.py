from __future__ import annotations

import heapq
from dataclasses import dataclass, field
from typing import Any, Callable


@dataclass(order=True)
class _Timer:
    due: float
    seq: int
    callback: Callable[..., None] = field(compare=False)
    args: tuple[Any, ...] = field(compare=False, default=())


class Scheduler:
    """Virtual clock for deferred continuations.

    Nothing runs on its own: the owner calls `advance(dt)` (the client does so
    once per frame) and due callbacks fire in (due time, scheduling order).
    There is no cancellation; callbacks are expected to check whether they are
    still relevant when they fire.
    """

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: list[_Timer] = []
        self._seq = 0

    def call_later(self, delay: float, callback: Callable[..., None], *args: Any) -> None:
        self._seq += 1
        heapq.heappush(self._queue, _Timer(self.now + max(0.0, delay), self._seq, callback, args))

    @property
    def pending(self) -> int:
        return len(self._queue)

    def advance(self, dt: float) -> int:
        """Move the clock forward by `dt`, running everything that comes due."""
        target = self.now + max(0.0, dt)
        fired = 0
        while self._queue and self._queue[0].due <= target:
            timer = heapq.heappop(self._queue)
            self.now = max(self.now, timer.due)
            timer.callback(*timer.args)
            fired += 1
        self.now = target
        return fired

    def run_next(self) -> bool:
        if not self._queue:
            return False
        timer = heapq.heappop(self._queue)
        self.now = max(self.now, timer.due)
        timer.callback(*timer.args)
        return True

    def run_until_idle(self, max_steps: int = 10_000) -> int:
        steps = 0
        while steps < max_steps and self.run_next():
            steps += 1
        return steps
