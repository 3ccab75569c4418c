# warmstart/bootstrap/config/startup_settings.py
from __future__ import annotations

import pathlib
from typing import Any, Dict, List, Literal, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator

__all__: Sequence[str] = ('StartupSettings', 'HostContext')

HostContext = Literal['terminal', 'graphical', 'daemon', 'batch']


class StartupSettings(BaseModel):
    model_config = ConfigDict(extra='ignore')

    host_context: HostContext = Field('terminal', description='How the host runs; decides envvar import and immediate loading.')
    first_idle_delay: float = Field(2.0, ge=0.0, description='Idle seconds before the first deferred task runs (0 = load immediately).')
    idle_delay: float = Field(0.75, ge=0.0, description='Idle seconds between two deferred tasks.')
    load_immediately: bool = Field(False, description='Drain deferred tasks back-to-back after startup.')
    incremental_tasks: List[str] = Field(default_factory=list, description='Modules queued for incremental loading at bootstrap.')
    modules: List[str] = Field(default_factory=list, description='Modules handed to the module system.')
    packages: List[str] = Field(default_factory=list, description='Modules imported when the package manager initializes.')
    verbose: bool = Field(False, description='Log every hook and task attempt at DEBUG.')
    strict_mode: bool = Field(False, description='Abort bootstrap on the first failing phase.')
    gc_threshold_during_startup: Optional[int] = Field(100_000, ge=1, description='Generation-0 GC threshold until the first buffer is shown.')
    gc_idle_delay: float = Field(15.0, ge=0.0, description='Idle seconds before a housekeeping collection.')
    local_dir: Optional[str] = Field(None, description='Local storage root.')
    cache_dir: Optional[str] = Field(None, description='Cache root.')
    config_dir: Optional[str] = Field(None, description='Private configuration root.')
    autoloads_file: Optional[str] = Field(None, description='Autoloads artifact; defaults to <local_dir>/autoloads.yaml.')
    env_file: Optional[str] = Field(None, description='Environment snapshot; defaults to <local_dir>/env.')

    @field_validator('incremental_tasks', 'modules', 'packages')
    @classmethod
    def _strip_names(cls, v: List[str]) -> List[str]:
        return [name.strip() for name in v if name and name.strip()]

    @property
    def is_daemon(self) -> bool:
        return self.host_context == 'daemon'

    @property
    def is_graphical(self) -> bool:
        return self.host_context == 'graphical'

    @property
    def wants_immediate_loading(self) -> bool:
        return self.load_immediately or self.host_context in ('daemon', 'batch')

    @classmethod
    def from_config(cls, global_config: Dict[str, Any]) -> 'StartupSettings':
        return cls(**(global_config.get('startup') or {}))

    @classmethod
    def from_yaml(cls, path: str | pathlib.Path) -> 'StartupSettings':
        import yaml
        with pathlib.Path(path).expanduser().open('r', encoding='utf-8') as fh:
            data = yaml.safe_load(fh) or {}
        return cls(**data.get('startup', data))
