from __future__ import annotations

from bootstrap.phases.base_phase import BootstrapPhase, PhaseResult


class EnvironmentResetPhase(BootstrapPhase):
    """
    Put the process environment back to its pre-bootstrap state.

    On a forced re-run this also tears down what the previous run set up:
    pending triggers, the deferred-task queue, event subscriptions and the GC
    housekeeper, so the phases after this one start from scratch.
    """

    def execute(self, context) -> PhaseResult:
        context.environment.restore()
        metadata = {'environment_variables': len(context.environment.environ)}

        if context.state.runs > 1:
            context.triggers.reset()
            context.loader.reset()
            context.drop_subscriptions()
            context.housekeeper.stop()
            context.autoloads = None
            metadata['torn_down'] = True
            self.logger.debug('Previous bootstrap state torn down for forced re-run')

        return PhaseResult.success_result('Environment reset to initial snapshot', metadata=metadata)
