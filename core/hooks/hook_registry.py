# warmstart/core/hooks/hook_registry.py
from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import Any, Callable, Dict, List, Tuple

logger = logging.getLogger(__name__)

HookCallback = Callable[..., Any]


class HookRegistry:
    """
    Process-wide named callback lists.

    Lists are referenced by name so independent components can append to the
    same list without holding a reference to it. Mutation goes through a
    single lock; the host is expected to drive everything from one thread.
    """

    def __init__(self) -> None:
        self._hooks: Dict[str, List[HookCallback]] = defaultdict(list)
        self._lock = threading.RLock()

    def add_hook(self, name: str, callback: HookCallback, depth: int = 0) -> None:
        """
        Append ``callback`` to the list ``name``.

        A negative ``depth`` prepends instead. Adding a callable that is already
        in the list is a no-op.
        """
        if not callable(callback):
            raise TypeError(f"Hook callback for '{name}' must be callable, got {type(callback).__name__}")
        with self._lock:
            callbacks = self._hooks[name]
            if callback in callbacks:
                logger.debug("Callback %s already on hook '%s'", _callback_name(callback), name)
                return
            if depth < 0:
                callbacks.insert(0, callback)
            else:
                callbacks.append(callback)
        logger.debug("Added %s to hook '%s' (%d callbacks)", _callback_name(callback), name, len(callbacks))

    def remove_hook(self, name: str, callback: HookCallback) -> bool:
        with self._lock:
            try:
                self._hooks[name].remove(callback)
            except ValueError:
                return False
        return True

    def clear(self, name: str) -> None:
        with self._lock:
            self._hooks.pop(name, None)

    def get(self, name: str) -> Tuple[HookCallback, ...]:
        """Snapshot of the list; callbacks added while it runs wait for the next batch."""
        with self._lock:
            return tuple(self._hooks.get(name, ()))

    def has_hooks(self, name: str) -> bool:
        with self._lock:
            return bool(self._hooks.get(name))

    def names(self) -> List[str]:
        with self._lock:
            return [name for name, callbacks in self._hooks.items() if callbacks]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has_hooks(name)

    def __len__(self) -> int:
        return len(self.names())


def _callback_name(callback: HookCallback) -> str:
    return getattr(callback, '__qualname__', None) or repr(callback)
