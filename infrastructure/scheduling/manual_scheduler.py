# warmstart/infrastructure/scheduling/manual_scheduler.py
from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from domain.ports.scheduler_port import IdleSchedulerPort

logger = logging.getLogger(__name__)


@dataclass
class ManualIdleHandle:
    delay: float
    callback: Callable[[], Any] = field(repr=False)
    scheduled_at: float
    seq: int
    cancelled: bool = False
    fired: bool = False


class ManualIdleScheduler(IdleSchedulerPort):
    """
    Idle scheduler driven by a virtual clock.

    Nothing happens until the host (or a test) moves the clock with
    ``advance`` or asks for the next idle opportunity with ``run_next``.
    Input reported through ``notify_input`` blocks idle callbacks until the
    host calls ``consume_input``; the idle wait restarts from that moment.
    """

    def __init__(self, start_time: float = 0.0) -> None:
        self.now = start_time
        self._last_input = start_time
        self._input_pending = False
        self._entries: List[ManualIdleHandle] = []
        self._seq = itertools.count()

    # ------------------------------------------------------------------
    # IdleSchedulerPort
    # ------------------------------------------------------------------
    def call_when_idle(self, delay: float, callback: Callable[[], Any]) -> ManualIdleHandle:
        if delay < 0:
            raise ValueError('delay must not be negative')
        handle = ManualIdleHandle(delay=delay, callback=callback, scheduled_at=self.now, seq=next(self._seq))
        self._entries.append(handle)
        return handle

    def is_input_pending(self) -> bool:
        return self._input_pending

    def cancel(self, handle: ManualIdleHandle) -> None:
        handle.cancelled = True
        if handle in self._entries:
            self._entries.remove(handle)

    # ------------------------------------------------------------------
    # Host side
    # ------------------------------------------------------------------
    def notify_input(self) -> None:
        self._input_pending = True
        self._last_input = self.now

    def consume_input(self) -> None:
        self._input_pending = False
        self._last_input = self.now

    @property
    def idle_time(self) -> float:
        return 0.0 if self._input_pending else self.now - self._last_input

    @property
    def pending_count(self) -> int:
        return len(self._entries)

    def _due_time(self, handle: ManualIdleHandle) -> float:
        return max(handle.scheduled_at, self._last_input) + handle.delay

    def _next_due(self) -> Optional[ManualIdleHandle]:
        if self._input_pending or not self._entries:
            return None
        return min(self._entries, key=lambda h: (self._due_time(h), h.seq))

    def _fire(self, handle: ManualIdleHandle) -> None:
        self._entries.remove(handle)
        handle.fired = True
        handle.callback()

    def run_next(self) -> bool:
        """Jump to the next idle opportunity and run exactly one callback."""
        handle = self._next_due()
        if handle is None:
            return False
        self.now = max(self.now, self._due_time(handle))
        self._fire(handle)
        return True

    def advance(self, seconds: float) -> int:
        """Move the clock forward, running every callback that becomes due on the way."""
        target = self.now + seconds
        fired = 0
        while True:
            handle = self._next_due()
            if handle is None or self._due_time(handle) > target:
                break
            self.now = max(self.now, self._due_time(handle))
            self._fire(handle)
            fired += 1
        self.now = target
        return fired

    def run_until_idle(self, max_steps: int = 10_000) -> int:
        steps = 0
        while steps < max_steps and self.run_next():
            steps += 1
        if steps >= max_steps:
            logger.warning('ManualIdleScheduler stopped after %d steps with %d callbacks left', steps, len(self._entries))
        return steps
