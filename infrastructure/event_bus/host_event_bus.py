# warmstart/infrastructure/event_bus/host_event_bus.py
from __future__ import annotations

import logging
import time
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List

from domain.ports.event_bus_port import EventBusPort

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _RecordedEvent:
    ts: float
    event_name: str
    payload: Any
    delivered: bool


class HostEventBus(EventBusPort):
    """
    Synchronous in-process bus carrying host events (input, file opened, ...).

    Handlers run in subscription order on the publishing thread. A failing
    handler is logged and does not stop delivery to the others. Events can be
    inhibited while the host performs internal batch work; an inhibited event
    is recorded but not delivered.
    """

    def __init__(self, component_id: str = 'host_event_bus', max_history: int = 1000) -> None:
        self.component_id = component_id
        self._subs: Dict[str, List[Callable[[Any], Any]]] = defaultdict(list)
        self._inhibited: Dict[str, int] = defaultdict(int)
        self._max_history = max_history
        self._history: List[_RecordedEvent] = []
        logger.debug('[%s] constructed (max_history=%s)', self.component_id, self._max_history)

    def subscribe(self, event_name: str, handler: Callable[[Any], Any]) -> None:
        self._subs[event_name].append(handler)
        logger.debug(
            '[%s] subscribed to "%s". Total subscribers for this event: %d.',
            self.component_id,
            event_name,
            len(self._subs[event_name]),
        )

    def unsubscribe(self, event_name: str, handler: Callable[[Any], Any]) -> None:
        try:
            self._subs[event_name].remove(handler)
            logger.debug('[%s] unsubscribed %s -> %s', self.component_id, event_name, handler)
        except (KeyError, ValueError):
            pass

    def subscriber_count(self, event_name: str) -> int:
        return len(self._subs.get(event_name, ()))

    def is_active(self, event_name: str) -> bool:
        return self._inhibited.get(event_name, 0) == 0

    @contextmanager
    def inhibited(self, *event_names: str) -> Iterator[None]:
        """Suppress delivery of ``event_names`` for the duration of the block."""
        for name in event_names:
            self._inhibited[name] += 1
        try:
            yield
        finally:
            for name in event_names:
                self._inhibited[name] -= 1
                if self._inhibited[name] <= 0:
                    del self._inhibited[name]

    def publish(self, event_name: str, payload: Any = None) -> None:
        active = self.is_active(event_name)
        self._record(event_name, payload, active)
        if not active:
            logger.debug('[%s] "%s" is inhibited, not delivered.', self.component_id, event_name)
            return

        handlers = tuple(self._subs.get(event_name, ()))
        if not handlers:
            logger.debug("[%s] No subscribers for '%s', publish is a no-op.", self.component_id, event_name)
            return

        for i, handler in enumerate(handlers):
            try:
                logger.debug(
                    "[%s] Dispatching '%s' to handler #%d (%s)",
                    self.component_id, event_name, i + 1, getattr(handler, '__qualname__', str(handler)),
                )
                handler(payload)
            except Exception as exc:
                logger.exception('[%s] Error in handler for event %s: %s', self.component_id, event_name, exc)

    def _record(self, event_name: str, payload: Any, delivered: bool) -> None:
        self._history.append(_RecordedEvent(time.time(), event_name, payload, delivered))
        if len(self._history) > self._max_history:
            self._history.pop(0)

    def history(self) -> List[_RecordedEvent]:
        return list(self._history)

    def get_stats(self) -> Dict[str, Any]:
        return {
            'subscribers': {k: len(v) for k, v in self._subs.items() if v},
            'history_size': len(self._history),
            'inhibited': sorted(self._inhibited),
        }
