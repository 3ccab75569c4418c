# warmstart/core/hooks/hook_runner.py
"""
Fault-isolating callback runner.

Runs named callback lists with two failure classes:

* ``UserError`` (or the builtin ``UserWarning``) is logged as a warning and the
  remaining callbacks keep running.
* anything else is wrapped in ``HookExecutionError`` and stops the batch:
  later callbacks of that list and later lists of the same ``run_hooks`` call
  are skipped. Nothing is raised; the error travels back in the
  ``HookRunResult`` and the caller decides whether to escalate.

There is no timeout on a callback. A callback that never returns blocks the
host, the same way it would if the host had called it directly.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Optional, Tuple

from core.exceptions import HookExecutionError, UserError
from core.hooks.hook_registry import HookCallback, HookRegistry, _callback_name
from core.results import ErrorKind, HookRunResult

logger = logging.getLogger(__name__)

USER_LEVEL_ERRORS = (UserError, UserWarning)


class HookRunner:

    def __init__(self, registry: HookRegistry, verbose: bool = False) -> None:
        self.registry = registry
        self.verbose = verbose

    def run_hook(self, name: str, *args: Any) -> HookRunResult:
        return self.run_hooks(name, args=args)

    def run_hooks(self, *names: str, args: Iterable[Any] = ()) -> HookRunResult:
        """Run each list in ``names`` in order, stopping the batch at the first hard error."""
        call_args = tuple(args)
        result = HookRunResult()
        for index, name in enumerate(names):
            error = self._run_single_list(name, call_args, result)
            if error is not None:
                logger.error('Error running hook %r because: %s', name, error.cause)
                result.kind = ErrorKind.HOOK_ERROR
                result.error = error
                result.skipped_hooks.extend(names[index + 1:])
                return result
            result.completed_hooks.append(name)
        if result.warnings and result.kind is ErrorKind.OK:
            result.kind = ErrorKind.USER_WARNING
        return result

    def _run_single_list(self, name: str, args: tuple, result: HookRunResult) -> Optional[HookExecutionError]:
        for callback in self.registry.get(name):
            if self.verbose:
                logger.debug('hook:%s: run %s', name, _callback_name(callback))
            try:
                callback(*args)
            except USER_LEVEL_ERRORS as exc:
                logger.warning('Warning: %s', exc)
                result.warnings.append(str(exc))
            except Exception as exc:
                return HookExecutionError(name, exc, callback)
            finally:
                result.callbacks_run += 1
        return None

    def run_hook_until_success(self, name: str, *args: Any) -> Tuple[Any, HookRunResult]:
        """
        Call the callbacks of ``name`` with ``args`` until one returns a truthy value.

        Returns that value (or ``None``) together with the run result. User-level
        errors are logged and the next callback is tried; a hard error stops the list.
        """
        result = HookRunResult()
        for callback in self.registry.get(name):
            if self.verbose:
                logger.debug('hook:%s: run %s', name, _callback_name(callback))
            result.callbacks_run += 1
            try:
                value = callback(*args)
            except USER_LEVEL_ERRORS as exc:
                logger.warning('Warning: %s', exc)
                result.warnings.append(str(exc))
                continue
            except Exception as exc:
                error = HookExecutionError(name, exc, callback)
                logger.error('Error running hook %r because: %s', name, exc)
                result.kind = ErrorKind.HOOK_ERROR
                result.error = error
                return None, result
            if value:
                result.completed_hooks.append(name)
                return value, result
        result.completed_hooks.append(name)
        if result.warnings:
            result.kind = ErrorKind.USER_WARNING
        return None, result

    def wrap(self, name: str) -> HookCallback:
        """Return a zero-argument callable that runs ``name``; handy as an event handler."""

        def _run_wrapped(*_ignored: Any) -> HookRunResult:
            return self.run_hooks(name)

        _run_wrapped.__qualname__ = f'run-hooks:{name}'
        return _run_wrapped
