from __future__ import annotations

import logging
from functools import partial
from typing import Any, Optional

from bootstrap.phases.base_phase import BootstrapPhase, PhaseResult
from bootstrap.signals.bootstrap_signals import (
    AFTER_CHANGE_MAJOR_MODE,
    FIRST_BUFFER_HOOK,
    STARTUP_COMPLETE,
    WINDOW_SETUP,
    local_vars_hook,
)
from core.results import HookRunResult

logger = logging.getLogger(__name__)


def run_local_var_hooks(context, mode: Optional[str]) -> Optional[HookRunResult]:
    """Run ``<mode>-local-vars-hook`` once file-local variables for ``mode`` are in place."""
    if not mode:
        return None
    return context.runner.run_hook(local_vars_hook(str(mode)))


def display_benchmark(context, *_ignored: Any) -> str:
    modules = context.module_system.module_count()
    elapsed = context.state.init_time or 0.0
    message = 'Loaded %d modules in %.3fs' % (modules, elapsed)
    logger.info(message)
    return message


def _arm_loader(context, _payload: Any = None) -> None:
    context.loader.arm()


class StartupHooksPhase(BootstrapPhase):
    """
    Wire the parts of startup that wait for the host: GC housekeeping on the
    first buffer, local-variable hooks on every major-mode change, the
    incremental loader on startup completion and the benchmark on window setup.
    """

    def execute(self, context) -> PhaseResult:
        housekeeper = context.housekeeper
        housekeeper.begin_startup()
        context.registry.add_hook(FIRST_BUFFER_HOOK, housekeeper.start)

        context.subscribe(AFTER_CHANGE_MAJOR_MODE, partial(run_local_var_hooks, context))
        context.subscribe(STARTUP_COMPLETE, partial(_arm_loader, context))
        context.subscribe(WINDOW_SETUP, partial(display_benchmark, context))

        queued = context.loader.register(context.settings.incremental_tasks)
        if context.state.after_init:
            # Forced re-run after startup: startup-complete will not be published again.
            context.loader.arm()
        return PhaseResult.success_result(
            'Startup hooks installed',
            metadata={'incremental_tasks': len(queued)},
        )
