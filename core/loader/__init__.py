from .incremental_loader import IncrementalLoader, LoaderState, LoaderStats
from .task_queue import TaskQueue
from .tasks import CallableTask, DeferredTask, ModuleImportTask, TaskToken, task_from_token

__all__ = [
    'IncrementalLoader', 'LoaderState', 'LoaderStats', 'TaskQueue',
    'CallableTask', 'DeferredTask', 'ModuleImportTask', 'TaskToken', 'task_from_token',
]
