# warmstart/domain/ports/event_bus_port.py

"""Host event bus interface."""

from typing import Any, Callable, Protocol, runtime_checkable


@runtime_checkable
class EventBusPort(Protocol):
    """Interface for host event publishing and subscription."""

    def publish(self, event_name: str, payload: Any = None) -> None:
        """
        Deliver an event to its subscribers, synchronously and in subscription order.

        Args:
            event_name: Name of the host event (e.g. ``'pre-command'``)
            payload: Optional event data
        """
        ...

    def subscribe(self, event_name: str, handler: Callable[[Any], Any]) -> None:
        ...

    def unsubscribe(self, event_name: str, handler: Callable[[Any], Any]) -> None:
        ...

    def is_active(self, event_name: str) -> bool:
        """False while the event is inhibited for an internal batch operation."""
        ...
