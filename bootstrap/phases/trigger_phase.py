from __future__ import annotations

from bootstrap.phases.base_phase import BootstrapPhase, PhaseResult
from bootstrap.signals.bootstrap_signals import TRIGGER_SOURCES


class TriggerPhase(BootstrapPhase):
    """Chain the first-input, first-file and first-buffer hooks to the host events that fire them."""

    def execute(self, context) -> PhaseResult:
        for target, sources in TRIGGER_SOURCES.items():
            context.triggers.bind(target, sources)
        return PhaseResult.success_result(
            f'Bound {len(TRIGGER_SOURCES)} one-shot triggers',
            metadata={'triggers': sorted(TRIGGER_SOURCES)},
        )
