from __future__ import annotations

from bootstrap.phases.base_phase import BootstrapPhase, PhaseResult
from bootstrap.signals.bootstrap_signals import PACKAGE_MANAGER_LOAD_HOOK


class PackageHooksPhase(BootstrapPhase):
    """Defer package-manager setup until something runs ``package-manager-load-hook``."""

    def execute(self, context) -> PhaseResult:
        context.registry.add_hook(PACKAGE_MANAGER_LOAD_HOOK, context.module_system.initialize_packages)
        return PhaseResult.success_result(f'Package manager deferred to {PACKAGE_MANAGER_LOAD_HOOK}')
