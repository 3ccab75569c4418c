from __future__ import annotations

from bootstrap.phases.base_phase import BootstrapPhase, PhaseResult


class EnvvarPhase(BootstrapPhase):
    """
    Apply the saved shell environment.

    Only graphical and daemon sessions need this: they are not started from a
    shell, so they miss what the user's shell profile sets up.
    """

    def should_skip_phase(self, context) -> tuple[bool, str]:
        if context.settings.host_context in ('graphical', 'daemon'):
            return False, ''
        return True, f'not needed in {context.settings.host_context} sessions'

    def execute(self, context) -> PhaseResult:
        path = context.paths.env_file
        variables = context.env_reader.read(path)
        if variables is None:
            return PhaseResult.success_result(
                f'No environment file at {path}',
                metadata={'env_file': str(path), 'applied': 0},
            )
        context.environment.apply_envvars(variables)
        return PhaseResult.success_result(
            f'Applied {len(variables)} environment variables from {path}',
            metadata={'env_file': str(path), 'applied': len(variables)},
        )
