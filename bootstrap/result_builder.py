"""
Bootstrap result for warmstart.

Collects what one ``bootstrap()`` run did: which phases ran, which failed and
were tolerated, and how long the run took.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bootstrap.core.phase_executor import PhaseExecutionSummary

logger = logging.getLogger(__name__)


class BootstrapResult:
    """Outcome of one bootstrap run. A recoverable phase failure leaves ``success`` False but the host usable."""

    def __init__(
        self,
        summary: Optional[PhaseExecutionSummary],
        host_context: str,
        forced: bool = False,
        init_time: Optional[float] = None,
        pending_tasks: Optional[List[str]] = None,
        global_config: Optional[Dict[str, Any]] = None,
    ):
        self.summary = summary
        self.host_context = host_context
        self.forced = forced
        self.init_time = init_time
        self.pending_tasks = pending_tasks or []
        self.global_config = global_config or {}
        self.creation_time = datetime.now(timezone.utc)

    @property
    def success(self) -> bool:
        return self.summary is not None and self.summary.failed_phases == 0

    @property
    def errors(self) -> List[str]:
        return self.summary.errors if self.summary else []

    @property
    def failed_phases(self) -> List[str]:
        if self.summary is None:
            return []
        return [r.phase_name for r in self.summary.results if not r.success]

    @property
    def skipped_phases(self) -> List[str]:
        if self.summary is None:
            return []
        return [r.phase_name for r in self.summary.results if r.skipped]

    def get_summary(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'host_context': self.host_context,
            'forced': self.forced,
            'init_time': self.init_time,
            'phases': self.summary.total_phases if self.summary else 0,
            'failed_phases': self.failed_phases,
            'skipped_phases': self.skipped_phases,
            'pending_tasks': list(self.pending_tasks),
            'creation_time': self.creation_time.isoformat(),
        }

    def __repr__(self) -> str:
        return (
            f"BootstrapResult(success={self.success}, host_context='{self.host_context}', "
            f"forced={self.forced}, init_time={self.init_time})"
        )


class BootstrapResultBuilder:
    """Packages the context and phase summary of a finished run into a ``BootstrapResult``."""

    def __init__(self, context):
        self.context = context

    def build(self, summary: Optional[PhaseExecutionSummary]) -> BootstrapResult:
        result = BootstrapResult(
            summary=summary,
            host_context=self.context.settings.host_context,
            forced=self.context.force,
            init_time=self.context.state.init_time,
            pending_tasks=self.context.loader.pending,
            global_config=self.context.global_app_config,
        )
        if result.success:
            logger.debug('Bootstrap completed: %s', result.get_summary())
        else:
            logger.warning('Bootstrap completed with failed phases: %s', ', '.join(result.failed_phases))
        return result
