# warmstart/core/loader/tasks.py
from __future__ import annotations

import importlib
import sys
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Union

Checkpoint = Callable[[], None]


class DeferredTask(ABC):
    """
    A named, idempotent unit of background initialization.

    ``attempt`` receives a ``checkpoint`` callable and should call it at safe
    points; it raises ``TaskInterrupted`` when the host has input waiting. A
    partial attempt must be safe to start over from the top.
    """

    def __init__(self, name: str) -> None:
        if not name:
            raise ValueError('DeferredTask needs a non-empty name')
        self.name = name

    @abstractmethod
    def is_satisfied(self) -> bool:
        ...

    @abstractmethod
    def attempt(self, checkpoint: Checkpoint) -> None:
        ...

    def __eq__(self, other: object) -> bool:
        return isinstance(other, DeferredTask) and type(other) is type(self) and other.name == self.name

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.name))

    def __repr__(self) -> str:
        return f'{type(self).__name__}({self.name!r})'


class ModuleImportTask(DeferredTask):
    """Import a module ahead of first use. Satisfied once it is in ``sys.modules``."""

    def is_satisfied(self) -> bool:
        return self.name in sys.modules

    def attempt(self, checkpoint: Checkpoint) -> None:
        checkpoint()
        importlib.import_module(self.name)


class CallableTask(DeferredTask):
    """
    Run an arbitrary callable once.

    The callable may accept the checkpoint as its only argument. Without a
    ``done`` predicate the task counts as satisfied after one successful run.
    """

    def __init__(
        self,
        name: str,
        func: Callable[..., Any],
        done: Optional[Callable[[], bool]] = None,
        pass_checkpoint: bool = False,
    ) -> None:
        super().__init__(name)
        self.func = func
        self._done = done
        self._pass_checkpoint = pass_checkpoint
        self._completed = False

    def is_satisfied(self) -> bool:
        if self._done is not None:
            return bool(self._done())
        return self._completed

    def attempt(self, checkpoint: Checkpoint) -> None:
        checkpoint()
        if self._pass_checkpoint:
            self.func(checkpoint)
        else:
            self.func()
        self._completed = True


TaskToken = Union[str, DeferredTask]


def task_from_token(token: TaskToken) -> DeferredTask:
    """Default task factory: strings name modules to import."""
    if isinstance(token, DeferredTask):
        return token
    if isinstance(token, str):
        return ModuleImportTask(token)
    raise TypeError(f'Cannot build a deferred task from {type(token).__name__}: {token!r}')
