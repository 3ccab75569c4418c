from .hook_registry import HookCallback, HookRegistry
from .hook_runner import HookRunner
from .triggers import TriggerAggregator, TriggerBinding

__all__ = ['HookCallback', 'HookRegistry', 'HookRunner', 'TriggerAggregator', 'TriggerBinding']
