from .asyncio_scheduler import AsyncioIdleHandle, AsyncioIdleScheduler
from .manual_scheduler import ManualIdleHandle, ManualIdleScheduler

__all__ = ['AsyncioIdleHandle', 'AsyncioIdleScheduler', 'ManualIdleHandle', 'ManualIdleScheduler']
