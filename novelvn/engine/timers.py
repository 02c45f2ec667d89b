"""
Frame-driven timer queue.

Everything runs on the host's single loop: the host calls ``update(now_ms)``
once per frame (pygame ticks, or a virtual clock in tests) and due callbacks
run synchronously inside that call. Handles can be cancelled at any time; a
cancelled handle never fires.
"""
from __future__ import annotations

import heapq
import itertools
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


@dataclass(order=True)
class TimerHandle:
    due_ms: int
    seq: int
    callback: Optional[Callable[[], None]] = field(compare=False, default=None)
    label: str = field(compare=False, default="")
    cancelled: bool = field(compare=False, default=False)
    fired: bool = field(compare=False, default=False)

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)

    def cancel(self) -> None:
        self.cancelled = True
        self.callback = None


class Scheduler:
    def __init__(self, now_ms: int = 0) -> None:
        self._now = int(now_ms)
        self._queue: List[TimerHandle] = []
        self._seq = itertools.count()
        self._closed = False

    @property
    def now_ms(self) -> int:
        return self._now

    @property
    def closed(self) -> bool:
        return self._closed

    def pending_count(self) -> int:
        return sum(1 for h in self._queue if h.pending)

    def call_later(self, delay_ms: int, callback: Callable[[], None], label: str = "") -> TimerHandle:
        """Schedule ``callback`` to run ``delay_ms`` after the current clock."""
        handle = TimerHandle(self._now + max(0, int(delay_ms)), next(self._seq), callback, label)
        if self._closed:
            logger.debug("Scheduler closed; dropping timer %s", label or handle.seq)
            handle.cancel()
            return handle
        heapq.heappush(self._queue, handle)
        return handle

    def update(self, now_ms: int) -> int:
        """Advance the clock and run every timer due by ``now_ms``.

        Each callback sees the clock at its own due time, so a timer it
        schedules is measured from there and runs in the same call if it is
        already due by ``now_ms``. Returns the number of callbacks run.
        """
        if self._closed:
            return 0
        target = max(self._now, int(now_ms))
        ran = 0
        while self._queue and self._queue[0].due_ms <= target:
            handle = heapq.heappop(self._queue)
            if not handle.pending:
                continue
            self._now = max(self._now, handle.due_ms)
            handle.fired = True
            cb, handle.callback = handle.callback, None
            if cb is None:
                continue
            try:
                cb()
            except Exception:
                logger.exception("Timer callback %s failed", handle.label or handle.seq)
            ran += 1
            if self._closed:
                break
        self._now = target
        return ran

    def next_due(self) -> Optional[int]:
        while self._queue and not self._queue[0].pending:
            heapq.heappop(self._queue)
        return self._queue[0].due_ms if self._queue else None

    def flush(self, limit: int = 100_000) -> int:
        """Jump the clock forward until no timers remain; returns callbacks run."""
        ran = 0
        while not self._closed and ran < limit:
            due = self.next_due()
            if due is None:
                break
            ran += self.update(due)
        return ran

    def cancel_all(self) -> None:
        for handle in self._queue:
            handle.cancel()
        self._queue.clear()

    def close(self) -> None:
        self.cancel_all()
        self._closed = True
