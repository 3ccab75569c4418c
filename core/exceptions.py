"""
Exception classes for hook execution and deferred loading.

Only ``HookExecutionError`` ever leaves the orchestration layer; the other
classes are resolved locally by the runner or the incremental loader into a
log entry or a requeue.
"""
from __future__ import annotations

from typing import Any, Callable, Optional

__all__ = [
    'OrchestrationError',
    'UserError',
    'HookExecutionError',
    'TaskFailure',
    'TaskInterrupted',
    'TriggerBindingError',
]


class OrchestrationError(RuntimeError):
    """Base exception for the hook and loader layer."""
    pass


class UserError(Exception):
    """
    A complaint meant for the user rather than a bug.

    Raised by a callback that wants its message shown as a warning. The
    callback runner logs it and keeps running the rest of the list.
    """
    pass


class HookExecutionError(OrchestrationError):
    """
    Raised when a registered callback fails with anything but a ``UserError``.

    Aborts the current batch of callback lists, never the process.
    """

    def __init__(self, hook_name: str, cause: BaseException, callback: Optional[Callable[..., Any]] = None):
        super().__init__(f'Error running hook {hook_name!r}: {cause}')
        self.hook_name = hook_name
        self.cause = cause
        self.callback = callback

    @property
    def callback_name(self) -> str:
        if self.callback is None:
            return '<unknown>'
        return getattr(self.callback, '__qualname__', repr(self.callback))

    def __str__(self) -> str:
        base_msg = super().__str__()
        return f'{base_msg}\nCaused by: {type(self.cause).__name__} in {self.callback_name}'


class TaskFailure(OrchestrationError):
    """A deferred task raised while being attempted. The task is dropped."""

    def __init__(self, task_name: str, cause: BaseException):
        super().__init__(f'Failed to incrementally load {task_name} because: {cause}')
        self.task_name = task_name
        self.cause = cause


class TaskInterrupted(Exception):
    """
    Control signal, not an error: host input arrived during a task attempt.

    The loader puts the task back at the front of its queue.
    """

    def __init__(self, task_name: str = ''):
        super().__init__(f'Interrupted while loading {task_name}' if task_name else 'Interrupted by pending input')
        self.task_name = task_name


class TriggerBindingError(OrchestrationError):
    """Raised when a one-shot binding would make its target fire twice."""
    pass
