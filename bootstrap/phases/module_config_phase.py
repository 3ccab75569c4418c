from __future__ import annotations

from bootstrap.phases.base_phase import BootstrapPhase, PhaseResult


class ModuleConfigPhase(BootstrapPhase):

    def execute(self, context) -> PhaseResult:
        context.module_system.load_configuration()
        return PhaseResult.success_result('Module configuration loaded')
