# warmstart/infrastructure/scheduling/asyncio_scheduler.py
from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Callable, Optional

from domain.ports.scheduler_port import IdleSchedulerPort

logger = logging.getLogger(__name__)


class AsyncioIdleHandle:
    __slots__ = ('delay', 'callback', '_timer', 'cancelled')

    def __init__(self, delay: float, callback: Callable[[], Any]) -> None:
        self.delay = delay
        self.callback = callback
        self._timer: Optional[asyncio.TimerHandle] = None
        self.cancelled = False


class AsyncioIdleScheduler(IdleSchedulerPort):
    """
    Idle scheduler for hosts running an asyncio event loop.

    The host reports input with ``notify_input`` (safe to call from any
    thread) and ``input_consumed`` once it has handled it. A callback whose
    delay elapses while input is pending, or too soon after the last input,
    is pushed back instead of being run.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop
        self._input_pending = threading.Event()
        self._last_input: Optional[float] = None

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def idle_time(self) -> float:
        if self._input_pending.is_set():
            return 0.0
        if self._last_input is None:
            return float('inf')
        return self.loop.time() - self._last_input

    def call_when_idle(self, delay: float, callback: Callable[[], Any]) -> AsyncioIdleHandle:
        if delay < 0:
            raise ValueError('delay must not be negative')
        handle = AsyncioIdleHandle(delay, callback)
        handle._timer = self.loop.call_later(delay, self._maybe_fire, handle)
        return handle

    def _maybe_fire(self, handle: AsyncioIdleHandle) -> None:
        if handle.cancelled:
            return
        idle = self.idle_time()
        if idle < handle.delay:
            wait = handle.delay if self._input_pending.is_set() else handle.delay - idle
            handle._timer = self.loop.call_later(wait, self._maybe_fire, handle)
            return
        handle._timer = None
        try:
            handle.callback()
        except Exception as exc:
            logger.exception('Idle callback %s failed: %s', getattr(handle.callback, '__qualname__', handle.callback), exc)

    def is_input_pending(self) -> bool:
        return self._input_pending.is_set()

    def cancel(self, handle: AsyncioIdleHandle) -> None:
        handle.cancelled = True
        if handle._timer is not None:
            handle._timer.cancel()
            handle._timer = None

    def notify_input(self) -> None:
        # Set before the loop wakes up so a task running on the loop thread
        # sees it at its next checkpoint.
        self._input_pending.set()
        self.loop.call_soon_threadsafe(self._on_input)

    def _on_input(self) -> None:
        self._last_input = self.loop.time()

    def input_consumed(self) -> None:
        self._input_pending.clear()
        self._last_input = self.loop.time()
