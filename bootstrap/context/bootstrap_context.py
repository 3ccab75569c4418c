from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from bootstrap.config.startup_settings import StartupSettings
from core.hooks.hook_registry import HookRegistry
from core.hooks.hook_runner import HookRunner
from core.hooks.triggers import TriggerAggregator
from core.loader.incremental_loader import IncrementalLoader
from domain.ports.env_reader_port import EnvReaderPort
from domain.ports.event_bus_port import EventBusPort
from domain.ports.module_system_port import ModuleSystemPort
from domain.ports.scheduler_port import IdleSchedulerPort
from infrastructure.environment.environment_state import EnvironmentState
from infrastructure.housekeeping.gc_housekeeper import GcHousekeeper
from infrastructure.paths import PathResolver

if TYPE_CHECKING:
    from infrastructure.autoloads.autoload_registry import AutoloadRegistry


@dataclass
class BootstrapState:
    initialized: bool = False
    init_time: Optional[float] = None
    after_init: bool = False
    runs: int = 0


@dataclass
class BootstrapContext:
    settings: StartupSettings
    paths: PathResolver
    registry: HookRegistry
    runner: HookRunner
    triggers: TriggerAggregator
    loader: IncrementalLoader
    scheduler: IdleSchedulerPort
    event_bus: EventBusPort
    environment: EnvironmentState
    env_reader: EnvReaderPort
    module_system: ModuleSystemPort
    housekeeper: GcHousekeeper
    state: BootstrapState = field(default_factory=BootstrapState)
    global_app_config: Dict[str, Any] = field(default_factory=dict)
    autoloads: Optional['AutoloadRegistry'] = None
    force: bool = False
    # Listeners the startup phase subscribed; dropped before a forced re-run.
    subscriptions: List[tuple] = field(default_factory=list)

    @property
    def strict_mode(self) -> bool:
        return self.settings.strict_mode

    def subscribe(self, event_name: str, handler: Any) -> None:
        self.event_bus.subscribe(event_name, handler)
        self.subscriptions.append((event_name, handler))

    def drop_subscriptions(self) -> None:
        for event_name, handler in self.subscriptions:
            self.event_bus.unsubscribe(event_name, handler)
        self.subscriptions.clear()
