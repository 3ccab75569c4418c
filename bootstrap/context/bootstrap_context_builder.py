from __future__ import annotations
import logging
from typing import Any, Dict, Optional

from bootstrap.config.startup_settings import StartupSettings
from bootstrap.context.bootstrap_context import BootstrapContext, BootstrapState
from bootstrap.exceptions import BootstrapError
from bootstrap.signals.bootstrap_signals import AFTER_INIT, POST_COMMAND
from core.hooks.hook_registry import HookRegistry
from core.hooks.hook_runner import HookRunner
from core.hooks.triggers import TriggerAggregator
from core.loader.incremental_loader import IncrementalLoader
from domain.ports.env_reader_port import EnvReaderPort
from domain.ports.event_bus_port import EventBusPort
from domain.ports.module_system_port import ModuleSystemPort
from domain.ports.scheduler_port import IdleSchedulerPort
from infrastructure.environment.environment_state import EnvironmentState
from infrastructure.environment.envvar_file import EnvvarFileReader
from infrastructure.event_bus.host_event_bus import HostEventBus
from infrastructure.housekeeping.gc_housekeeper import GcHousekeeper
from infrastructure.modules.static_module_system import StaticModuleSystem
from infrastructure.paths import PathResolver
from infrastructure.scheduling.manual_scheduler import ManualIdleScheduler

__all__ = ['BootstrapContextBuildError', 'BootstrapContextBuilder', 'create_bootstrap_context']

logger = logging.getLogger(__name__)


class BootstrapContextBuildError(BootstrapError):
    pass


class BootstrapContextBuilder:
    """
    Assembles a ``BootstrapContext``. Anything not supplied gets the headless
    default: a manual idle scheduler, an in-process event bus, the real process
    environment and a static module system built from the settings.
    """

    def __init__(self, settings: Optional[StartupSettings] = None) -> None:
        self._settings = settings or StartupSettings()
        self._scheduler: Optional[IdleSchedulerPort] = None
        self._event_bus: Optional[EventBusPort] = None
        self._environment: Optional[EnvironmentState] = None
        self._env_reader: Optional[EnvReaderPort] = None
        self._module_system: Optional[ModuleSystemPort] = None
        self._paths: Optional[PathResolver] = None
        self._global_app_cfg: Dict[str, Any] = {}
        self._built = False

    @property
    def is_built(self) -> bool:
        return self._built

    def with_settings(self, settings: StartupSettings) -> 'BootstrapContextBuilder':
        self._guard_unbuilt('with_settings')
        if settings is None:
            raise BootstrapContextBuildError('StartupSettings cannot be None')
        self._settings = settings
        return self

    def with_scheduler(self, scheduler: IdleSchedulerPort) -> 'BootstrapContextBuilder':
        self._guard_unbuilt('with_scheduler')
        self._scheduler = scheduler
        logger.debug('Idle scheduler set: %s', type(scheduler).__name__)
        return self

    def with_event_bus(self, event_bus: EventBusPort) -> 'BootstrapContextBuilder':
        self._guard_unbuilt('with_event_bus')
        self._event_bus = event_bus
        logger.debug('EventBus set: %s', type(event_bus).__name__)
        return self

    def with_environment(self, environment: EnvironmentState) -> 'BootstrapContextBuilder':
        self._guard_unbuilt('with_environment')
        self._environment = environment
        return self

    def with_env_reader(self, reader: EnvReaderPort) -> 'BootstrapContextBuilder':
        self._guard_unbuilt('with_env_reader')
        self._env_reader = reader
        return self

    def with_module_system(self, module_system: ModuleSystemPort) -> 'BootstrapContextBuilder':
        self._guard_unbuilt('with_module_system')
        self._module_system = module_system
        return self

    def with_paths(self, paths: PathResolver) -> 'BootstrapContextBuilder':
        self._guard_unbuilt('with_paths')
        self._paths = paths
        return self

    def with_global_config(self, cfg: Optional[Dict[str, Any]] = None) -> 'BootstrapContextBuilder':
        self._guard_unbuilt('with_global_config')
        self._global_app_cfg = cfg or {}
        logger.debug('Global config set (%d keys)', len(self._global_app_cfg))
        return self

    def build(self) -> BootstrapContext:
        if self._built:
            raise BootstrapContextBuildError('Builder already used - create a new instance')

        settings = self._settings
        for port, value in (
            (IdleSchedulerPort, self._scheduler),
            (EventBusPort, self._event_bus),
            (EnvReaderPort, self._env_reader),
            (ModuleSystemPort, self._module_system),
        ):
            if value is not None and not isinstance(value, port):
                raise BootstrapContextBuildError(f'{type(value).__name__} does not implement {port.__name__}')

        scheduler = self._scheduler or ManualIdleScheduler()
        event_bus = self._event_bus or HostEventBus()
        environment = self._environment or EnvironmentState()
        state = BootstrapState()

        registry = HookRegistry()
        runner = HookRunner(registry, verbose=settings.verbose)
        triggers = TriggerAggregator(
            registry,
            runner,
            event_bus,
            gate=lambda: state.after_init,
            daemon_source=AFTER_INIT if settings.is_daemon else None,
        )
        loader = IncrementalLoader(
            scheduler,
            first_idle_delay=settings.first_idle_delay,
            idle_delay=settings.idle_delay,
            load_immediately=settings.wants_immediate_loading,
            verbose=settings.verbose,
        )
        housekeeper = GcHousekeeper(
            scheduler,
            event_bus,
            idle_delay=settings.gc_idle_delay,
            startup_threshold=settings.gc_threshold_during_startup,
            rearm_event=POST_COMMAND,
        )

        context = BootstrapContext(
            settings=settings,
            paths=self._paths or PathResolver.from_settings(settings, environment.environ),
            registry=registry,
            runner=runner,
            triggers=triggers,
            loader=loader,
            scheduler=scheduler,
            event_bus=event_bus,
            environment=environment,
            env_reader=self._env_reader or EnvvarFileReader(),
            module_system=self._module_system or StaticModuleSystem(settings.modules, settings.packages),
            housekeeper=housekeeper,
            state=state,
            global_app_config=self._global_app_cfg,
        )
        self._built = True
        logger.debug('BootstrapContext built (host_context=%s)', settings.host_context)
        return context

    def _guard_unbuilt(self, method: str) -> None:
        if self._built:
            raise BootstrapContextBuildError(f'Cannot call {method} after build()')


def create_bootstrap_context(settings: Optional[StartupSettings] = None, **components: Any) -> BootstrapContext:
    """Build a context in one call; ``components`` are ``scheduler``, ``event_bus``, ``environment``, ... ."""
    builder = BootstrapContextBuilder(settings)
    for name, value in components.items():
        method = getattr(builder, f'with_{name}', None)
        if method is None:
            raise BootstrapContextBuildError(f'Unknown bootstrap component: {name}')
        method(value)
    return builder.build()
