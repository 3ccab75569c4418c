# bootstrap/config/__init__.py
"""
Bootstrap configuration: startup settings loaded from the layered global config.
"""

from configs.config_loader import ConfigLoader
from .startup_settings import StartupSettings

__all__ = ['ConfigLoader', 'StartupSettings']
