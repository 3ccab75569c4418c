from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from bootstrap.config.startup_settings import StartupSettings
from bootstrap.context.bootstrap_context import BootstrapContext
from bootstrap.context.bootstrap_context_builder import create_bootstrap_context
from bootstrap.core.phase_executor import BootstrapPhaseExecutor
from bootstrap.exceptions import BootstrapConfigurationError
from bootstrap.phases.autoload_phase import AutoloadPhase
from bootstrap.phases.base_phase import BootstrapPhase
from bootstrap.phases.environment_reset_phase import EnvironmentResetPhase
from bootstrap.phases.envvar_phase import EnvvarPhase
from bootstrap.phases.module_config_phase import ModuleConfigPhase
from bootstrap.phases.module_init_phase import ModuleInitPhase
from bootstrap.phases.package_hooks_phase import PackageHooksPhase
from bootstrap.phases.startup_hooks_phase import StartupHooksPhase, display_benchmark, run_local_var_hooks
from bootstrap.phases.trigger_phase import TriggerPhase
from bootstrap.result_builder import BootstrapResult, BootstrapResultBuilder
from bootstrap.signals.bootstrap_signals import (
    AFTER_INIT,
    BOOTSTRAP_COMPLETED,
    BOOTSTRAP_STARTED,
    STARTUP_COMPLETE,
    WINDOW_SETUP,
)
from configs.config_loader import ConfigLoader
from core.hooks.hook_registry import HookCallback
from core.hooks.triggers import TriggerBinding
from core.loader.tasks import DeferredTask, TaskToken
from core.results import HookRunResult

logger = logging.getLogger(__name__)

__all__ = ['Bootstrapper', 'default_phases', 'bootstrap_from_config']


def default_phases() -> List[BootstrapPhase]:
    return [
        EnvironmentResetPhase(),
        AutoloadPhase(),
        EnvvarPhase(),
        ModuleConfigPhase(),
        PackageHooksPhase(),
        StartupHooksPhase(),
        TriggerPhase(),
        ModuleInitPhase(),
    ]


class Bootstrapper:
    """
    Brings the host from cold to ready.

    ``bootstrap()`` runs the startup phases once; later calls are no-ops
    unless ``force`` is given, which resets the environment and runs every
    phase again. The host reports its own progress through
    ``startup_complete()`` and ``window_setup()`` and feeds events to
    ``context.event_bus``.
    """

    def __init__(
        self,
        context: Optional[BootstrapContext] = None,
        settings: Optional[StartupSettings] = None,
        phases: Optional[Sequence[BootstrapPhase]] = None,
    ) -> None:
        self.context = context or create_bootstrap_context(settings)
        self.phases: List[BootstrapPhase] = list(phases) if phases is not None else default_phases()
        self.last_result: Optional[BootstrapResult] = None

    @property
    def state(self):
        return self.context.state

    @property
    def initialized(self) -> bool:
        return self.context.state.initialized

    def bootstrap(self, force: bool = False) -> bool:
        state = self.context.state
        if state.initialized and not force:
            logger.debug('Already initialized; bootstrap is a no-op')
            return True

        # Set before the phases run so re-entrant calls return early.
        state.initialized = True
        state.runs += 1
        self.context.force = force
        start = time.perf_counter()
        logger.debug('Bootstrapping (%s session, force=%s)', self.context.settings.host_context, force)
        self.context.event_bus.publish(BOOTSTRAP_STARTED, {'force': force})

        summary = BootstrapPhaseExecutor(self.context).execute_phases(self.phases)

        state.init_time = time.perf_counter() - start
        self.last_result = BootstrapResultBuilder(self.context).build(summary)
        self.context.event_bus.publish(BOOTSTRAP_COMPLETED, self.last_result.get_summary())
        return state.initialized

    def startup_complete(self) -> List[HookRunResult]:
        """The host finished starting up: open the after-init gate and start deferred loading."""
        state = self.context.state
        if state.after_init:
            return []
        state.after_init = True
        results = self.context.triggers.flush_pending()
        self.context.event_bus.publish(AFTER_INIT)
        self.context.event_bus.publish(STARTUP_COMPLETE)
        return results

    def window_setup(self) -> None:
        self.context.event_bus.publish(WINDOW_SETUP)

    def display_benchmark(self) -> str:
        return display_benchmark(self.context)

    def run_local_var_hooks(self, mode: str) -> Optional[HookRunResult]:
        return run_local_var_hooks(self.context, mode)

    def register_callback(self, list_name: str, fn: HookCallback, depth: int = 0) -> None:
        self.context.registry.add_hook(list_name, fn, depth)

    def run_callback_list(self, *list_names: str, args: Iterable[Any] = ()) -> HookRunResult:
        return self.context.runner.run_hooks(*list_names, args=args)

    def bind_one_shot(self, target: str, sources: Iterable[str]) -> TriggerBinding:
        return self.context.triggers.bind(target, sources)

    def enqueue_deferred(self, tasks: Iterable[TaskToken], run_immediately: bool = False) -> List[DeferredTask]:
        return self.context.loader.register(tasks, run_now=run_immediately)


def bootstrap_from_config(
    env: Optional[str] = None,
    config_paths: Sequence[Union[str, Path]] = (),
    overrides: Optional[Mapping[str, Any]] = None,
    force: bool = False,
    **components: Any,
) -> Bootstrapper:
    """Load layered configuration, build a ``Bootstrapper`` from its ``startup`` section and run it."""
    try:
        global_config: Dict[str, Any] = ConfigLoader().load_global_config(
            env=env,
            provided_config=overrides,
            extra_paths=[Path(p) for p in config_paths],
        )
        settings = StartupSettings.from_config(global_config)
    except ValueError as exc:
        raise BootstrapConfigurationError(f'Invalid startup configuration: {exc}') from exc

    context = create_bootstrap_context(settings, global_config=global_config, **components)
    bootstrapper = Bootstrapper(context)
    bootstrapper.bootstrap(force=force)
    return bootstrapper
