# warmstart/infrastructure/housekeeping/gc_housekeeper.py
from __future__ import annotations

import gc
import logging
from typing import Any, Optional, Tuple

from domain.ports.event_bus_port import EventBusPort
from domain.ports.scheduler_port import IdleHandle, IdleSchedulerPort

logger = logging.getLogger(__name__)

DEFAULT_GC_IDLE_DELAY = 15.0


class GcHousekeeper:
    """
    Garbage-collector strategy for an interactive host.

    During startup the generation-0 threshold is raised so collections do not
    interrupt initialization. Once started (normally when the first buffer is
    shown) the normal thresholds come back and a full collection runs once
    per idle period, re-armed after every command the host finishes.
    """

    def __init__(
        self,
        scheduler: IdleSchedulerPort,
        event_bus: Optional[EventBusPort] = None,
        idle_delay: float = DEFAULT_GC_IDLE_DELAY,
        startup_threshold: Optional[int] = None,
        rearm_event: str = 'post-command',
    ) -> None:
        self.scheduler = scheduler
        self.event_bus = event_bus
        self.idle_delay = idle_delay
        self.startup_threshold = startup_threshold
        self.rearm_event = rearm_event
        self.active = False
        self.collections = 0
        self._saved_threshold: Optional[Tuple[int, ...]] = None
        self._handle: Optional[IdleHandle] = None

    def begin_startup(self) -> None:
        if not self.startup_threshold or self._saved_threshold is not None:
            return
        self._saved_threshold = gc.get_threshold()
        gc.set_threshold(self.startup_threshold, *self._saved_threshold[1:])
        logger.debug('GC threshold raised to %d for startup', self.startup_threshold)

    def _restore_threshold(self) -> None:
        if self._saved_threshold is not None:
            gc.set_threshold(*self._saved_threshold)
            logger.debug('GC threshold restored to %s', self._saved_threshold)
            self._saved_threshold = None

    def start(self, *_ignored: Any) -> None:
        if self.active:
            return
        self.active = True
        self._restore_threshold()
        if self.event_bus is not None:
            self.event_bus.subscribe(self.rearm_event, self._rearm)
        self._rearm()
        logger.debug('GC housekeeping started (idle delay %.1fs)', self.idle_delay)

    def stop(self) -> None:
        if not self.active:
            self._restore_threshold()
            return
        self.active = False
        if self._handle is not None:
            self.scheduler.cancel(self._handle)
            self._handle = None
        if self.event_bus is not None:
            self.event_bus.unsubscribe(self.rearm_event, self._rearm)

    def _rearm(self, _payload: Any = None) -> None:
        if self.active and self._handle is None:
            self._handle = self.scheduler.call_when_idle(self.idle_delay, self._collect)

    def _collect(self) -> None:
        self._handle = None
        collected = gc.collect()
        self.collections += 1
        logger.debug('Idle GC collected %d objects', collected)
