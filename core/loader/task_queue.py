# warmstart/core/loader/task_queue.py
from __future__ import annotations

import threading
from collections import deque
from typing import Deque, Iterable, List, Optional

from core.loader.tasks import DeferredTask


class TaskQueue:
    """FIFO of pending deferred tasks; an interrupted task goes back to the front."""

    def __init__(self, tasks: Iterable[DeferredTask] = ()) -> None:
        self._items: Deque[DeferredTask] = deque(tasks)
        self._lock = threading.RLock()

    def extend(self, tasks: Iterable[DeferredTask]) -> None:
        with self._lock:
            self._items.extend(tasks)

    def pop(self) -> Optional[DeferredTask]:
        with self._lock:
            return self._items.popleft() if self._items else None

    def push_front(self, task: DeferredTask) -> None:
        with self._lock:
            self._items.appendleft(task)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def snapshot(self) -> List[DeferredTask]:
        with self._lock:
            return list(self._items)

    def names(self) -> List[str]:
        return [task.name for task in self.snapshot()]

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __bool__(self) -> bool:
        return len(self) > 0
