# warmstart/domain/ports/scheduler_port.py
"""
Host idle-time interface.

The incremental loader never sleeps or polls on its own; it asks the host to
call it back once the host has been idle for a while, and asks whether input
is waiting while it works. Implementations must deliver every idle callback
and report input without missing notifications.
"""

from __future__ import annotations

from typing import Any, Callable, Protocol, runtime_checkable


@runtime_checkable
class IdleHandle(Protocol):
    """Token returned by ``call_when_idle``; only meaningful to the issuing scheduler."""

    @property
    def cancelled(self) -> bool:
        ...


@runtime_checkable
class IdleSchedulerPort(Protocol):

    def call_when_idle(self, delay: float, callback: Callable[[], Any]) -> IdleHandle:
        """
        Run ``callback`` once the host has seen no input for ``delay`` seconds.

        Input arriving before the delay elapses restarts the wait.
        """
        ...

    def is_input_pending(self) -> bool:
        """True when the host has unprocessed user input."""
        ...

    def cancel(self, handle: IdleHandle) -> None:
        ...
