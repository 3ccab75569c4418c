from .host_event_bus import HostEventBus

__all__ = ['HostEventBus']
