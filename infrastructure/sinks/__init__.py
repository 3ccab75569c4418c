from .host_log_handler import HostLogHandler, attach_host_sink, detach_host_sink

__all__ = ['HostLogHandler', 'attach_host_sink', 'detach_host_sink']
