# warmstart/bootstrap/__init__.py
from __future__ import annotations

from .exceptions import (
    ArtifactLoadError,
    BootstrapConfigurationError,
    BootstrapError,
    ConfigurationMissing,
    PhaseExecutionError,
)
from .bootstrap import Bootstrapper, bootstrap_from_config, default_phases
from .core.phase_executor import BootstrapPhaseExecutor, PhaseExecutionResult, PhaseExecutionSummary
from .context.bootstrap_context_builder import BootstrapContextBuilder, BootstrapContextBuildError, create_bootstrap_context
from .context.bootstrap_context import BootstrapContext, BootstrapState
from .config.startup_settings import StartupSettings
from .result_builder import BootstrapResult, BootstrapResultBuilder
from configs.config_loader import ConfigLoader

__version__ = '0.3.0'
__description__ = 'Deferred startup and hook orchestration for interactive hosts'

__all__ = [
    'Bootstrapper', 'bootstrap_from_config', 'default_phases',
    'BootstrapContext', 'BootstrapState', 'BootstrapContextBuilder', 'BootstrapContextBuildError', 'create_bootstrap_context',
    'BootstrapPhaseExecutor', 'PhaseExecutionResult', 'PhaseExecutionSummary',
    'BootstrapResult', 'BootstrapResultBuilder',
    'StartupSettings', 'ConfigLoader',
    'BootstrapError', 'ConfigurationMissing', 'ArtifactLoadError', 'PhaseExecutionError', 'BootstrapConfigurationError',
    '__version__', '__description__',
]
