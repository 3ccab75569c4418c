"""
Bootstrap Phase Executor - consistent phase execution with proper error handling.

Phases run in order on the host thread. A fatal phase's exception propagates
unchanged; any other failure is recorded and the next phase runs, unless
strict mode is on, in which case the first failure raises
``PhaseExecutionError``.
"""

from __future__ import annotations
import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from bootstrap.exceptions import PhaseExecutionError

if TYPE_CHECKING:
    from bootstrap.context.bootstrap_context import BootstrapContext
    from bootstrap.phases.base_phase import BootstrapPhase

logger = logging.getLogger(__name__)


@dataclass
class PhaseExecutionResult:
    """Result of executing a bootstrap phase."""
    phase_name: str
    success: bool
    duration_seconds: float
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    exception: Optional[Exception] = None

    @property
    def skipped(self) -> bool:
        return bool(self.metadata.get('skipped'))


@dataclass
class PhaseExecutionSummary:
    """Summary of all phase executions."""
    total_phases: int
    successful_phases: int
    failed_phases: int
    total_duration: float
    results: List[PhaseExecutionResult] = field(default_factory=list)

    @property
    def errors(self) -> List[str]:
        return [error for result in self.results for error in result.errors]


class BootstrapPhaseExecutor:
    """
    Executes bootstrap phases with consistent error handling and reporting.
    """

    def __init__(self, context: BootstrapContext):
        self.context = context
        self.execution_results: List[PhaseExecutionResult] = []

    def execute_phases(self, phases: List[BootstrapPhase]) -> PhaseExecutionSummary:
        logger.debug('Executing %d bootstrap phases', len(phases))
        start = time.perf_counter()
        successful_count = 0

        for i, phase in enumerate(phases, 1):
            phase_name = phase.__class__.__name__
            logger.debug('Phase %d/%d: %s', i, len(phases), phase_name)

            result = self._execute_single_phase(phase)
            self.execution_results.append(result)

            if result.success:
                successful_count += 1
                continue

            logger.error('Phase %s failed after %.3fs', phase_name, result.duration_seconds)
            if self.context.strict_mode:
                logger.error('Failure in strict mode - stopping bootstrap')
                raise PhaseExecutionError(
                    f'Bootstrap phase {phase_name} failed: {"; ".join(result.errors) or "no details"}',
                    phase=phase_name,
                    original_error=result.exception,
                )
            logger.warning('Phase %s failed but continuing in non-strict mode', phase_name)

        summary = PhaseExecutionSummary(
            total_phases=len(phases),
            successful_phases=successful_count,
            failed_phases=len(phases) - successful_count,
            total_duration=time.perf_counter() - start,
            results=self.execution_results.copy(),
        )
        self._log_execution_summary(summary)
        return summary

    def _execute_single_phase(self, phase: BootstrapPhase) -> PhaseExecutionResult:
        phase_name = phase.__class__.__name__
        start = time.perf_counter()

        should_skip, skip_reason = phase.should_skip_phase(self.context)
        if should_skip:
            logger.debug('Skipping phase %s: %s', phase_name, skip_reason)
            return PhaseExecutionResult(
                phase_name=phase_name,
                success=True,
                duration_seconds=0.0,
                metadata={'skipped': True, 'skip_reason': skip_reason},
            )

        try:
            phase.pre_execute(self.context)
            phase_result = phase.execute(self.context)
            phase.post_execute(self.context, phase_result)
        except Exception as e:
            if phase.fatal:
                raise
            error_msg = f'Unexpected exception in phase {phase_name}: {e}'
            logger.error(error_msg, exc_info=True)
            return PhaseExecutionResult(
                phase_name=phase_name,
                success=False,
                duration_seconds=time.perf_counter() - start,
                errors=[error_msg],
                exception=e,
                metadata={'exception_type': type(e).__name__},
            )

        return PhaseExecutionResult(
            phase_name=phase_name,
            success=phase_result.success,
            duration_seconds=time.perf_counter() - start,
            errors=phase_result.errors.copy(),
            warnings=phase_result.warnings.copy(),
            metadata=phase_result.metadata.copy(),
        )

    def _log_execution_summary(self, summary: PhaseExecutionSummary) -> None:
        logger.debug(
            'Bootstrap phases: %d/%d successful in %.3fs',
            summary.successful_phases, summary.total_phases, summary.total_duration,
        )
        if summary.failed_phases > 0:
            logger.warning('Failed phases:')
            for result in summary.results:
                if not result.success:
                    logger.warning('  - %s: %s', result.phase_name, result.errors)
