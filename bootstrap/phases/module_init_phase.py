from __future__ import annotations

from bootstrap.phases.base_phase import BootstrapPhase, PhaseResult


class ModuleInitPhase(BootstrapPhase):

    def execute(self, context) -> PhaseResult:
        context.module_system.init_modules(context.force)
        count = context.module_system.module_count()
        return PhaseResult.success_result(f'Initialized {count} modules', metadata={'modules': count})
