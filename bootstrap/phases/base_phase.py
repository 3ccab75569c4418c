"""
Base Phase - common contract for bootstrap phases.

A phase is one strictly ordered step of bringing the host from cold to ready.
Phases run synchronously on the host thread.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from bootstrap.context.bootstrap_context import BootstrapContext

logger = logging.getLogger(__name__)


@dataclass
class PhaseResult:
    """Result of a bootstrap phase execution."""
    success: bool
    message: str
    errors: List[str]
    warnings: List[str]
    metadata: Dict[str, Any]

    @classmethod
    def success_result(
        cls,
        message: str,
        warnings: Optional[List[str]] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> 'PhaseResult':
        return cls(
            success=True,
            message=message,
            errors=[],
            warnings=warnings or [],
            metadata=metadata or {}
        )

    @classmethod
    def failure_result(
        cls,
        message: str,
        errors: List[str],
        warnings: Optional[List[str]] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> 'PhaseResult':
        return cls(
            success=False,
            message=message,
            errors=errors,
            warnings=warnings or [],
            metadata=metadata or {}
        )


class BootstrapPhase(ABC):
    """
    Abstract base class for all bootstrap phases.

    ``fatal`` phases let their exceptions escape the executor untouched; the
    failures of every other phase are recorded and bootstrap moves on unless
    strict mode is on.
    """

    fatal: bool = False

    def __init__(self):
        self.phase_name = self.__class__.__name__
        self.logger = logging.getLogger(f"bootstrap.{self.phase_name.lower()}")

    @abstractmethod
    def execute(self, context: 'BootstrapContext') -> PhaseResult:
        """
        Execute this bootstrap phase.

        Args:
            context: BootstrapContext containing shared state

        Returns:
            PhaseResult indicating success/failure and any warnings/errors
        """
        pass

    def pre_execute(self, context: 'BootstrapContext') -> None:
        self.logger.debug(f"Starting phase: {self.phase_name}")

    def post_execute(self, context: 'BootstrapContext', result: PhaseResult) -> None:
        if result.success:
            self.logger.debug(f"Phase completed: {self.phase_name} - {result.message}")
        else:
            self.logger.error(f"Phase failed: {self.phase_name} - {result.message}")
            for error in result.errors:
                self.logger.error(f"  Error: {error}")

        for warning in result.warnings:
            self.logger.warning(f"  Warning: {warning}")

    def should_skip_phase(self, context: 'BootstrapContext') -> tuple[bool, str]:
        """
        Determine if this phase should be skipped.

        Returns:
            (should_skip, reason) tuple
        """
        return False, ""
