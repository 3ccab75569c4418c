from .env_reader_port import EnvReaderPort
from .event_bus_port import EventBusPort
from .module_system_port import ModuleSystemPort
from .scheduler_port import IdleHandle, IdleSchedulerPort

__all__ = ['EnvReaderPort', 'EventBusPort', 'IdleHandle', 'IdleSchedulerPort', 'ModuleSystemPort']
