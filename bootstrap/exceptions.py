"""
Exception classes for the warmstart bootstrap.

``ConfigurationMissing`` and ``ArtifactLoadError`` are fatal: they mean the
generated startup artifacts cannot be trusted and bootstrap stops. Everything
else a phase raises is recoverable unless strict mode is on.
"""

from pathlib import Path
from typing import Optional, Union

__all__ = [
    'BootstrapError',
    'ConfigurationMissing',
    'ArtifactLoadError',
    'PhaseExecutionError',
    'BootstrapConfigurationError',
]

REPAIR_HINT = 'run `warmstart sync` to repair it'


class BootstrapError(RuntimeError):
    """
    Base exception for all bootstrap-related errors.

    Carries the phase that was running, and optionally the artifact or
    component involved, so the message can point at the culprit.
    """

    def __init__(self, message: str, component_id: Optional[str] = None, phase: Optional[str] = None):
        super().__init__(message)
        self.component_id = component_id
        self.phase = phase

    def __str__(self) -> str:
        base_msg = super().__str__()

        context_parts = []
        if self.phase:
            context_parts.append(f"phase={self.phase}")
        if self.component_id:
            context_parts.append(f"component={self.component_id}")

        if context_parts:
            return f"{base_msg} ({', '.join(context_parts)})"
        return base_msg


class ConfigurationMissing(BootstrapError):
    """The autoloads artifact does not exist. Startup cannot continue."""

    def __init__(self, path: Union[str, Path], phase: Optional[str] = None):
        self.path = Path(path)
        super().__init__(
            f"The autoloads file is missing: {self.path}; {REPAIR_HINT}",
            component_id=str(self.path),
            phase=phase,
        )


class ArtifactLoadError(BootstrapError):
    """The autoloads artifact exists but could not be loaded."""

    def __init__(self, path: Union[str, Path], cause: BaseException, phase: Optional[str] = None):
        self.path = Path(path)
        self.cause = cause
        super().__init__(
            f"Failed to load autoloads file {self.path} because: {cause}; {REPAIR_HINT}",
            component_id=str(self.path),
            phase=phase,
        )


class BootstrapConfigurationError(BootstrapError):
    """Raised when startup settings cannot be loaded or validated."""
    pass


class PhaseExecutionError(BootstrapError):
    """
    Raised when a bootstrap phase fails in strict mode.

    Wraps the original exception for debugging.
    """

    def __init__(self, message: str, phase: str, original_error: Optional[Exception] = None):
        super().__init__(message, phase=phase)
        self.original_error = original_error
