from __future__ import annotations

from bootstrap.exceptions import ArtifactLoadError, ConfigurationMissing
from bootstrap.phases.base_phase import BootstrapPhase, PhaseResult
from infrastructure.autoloads.autoload_registry import AutoloadFormatError, AutoloadRegistry


class AutoloadPhase(BootstrapPhase):
    """
    Load the generated autoloads artifact.

    A missing artifact raises ``ConfigurationMissing``; one that exists but
    cannot be evaluated raises ``ArtifactLoadError``. Either way the error is
    fatal and leaves the executor as is.
    """

    fatal = True

    def execute(self, context) -> PhaseResult:
        path = context.paths.autoloads_file
        if not path.is_file():
            raise ConfigurationMissing(path, phase=self.phase_name)

        try:
            autoloads = AutoloadRegistry.from_file(path)
        except FileNotFoundError as exc:
            raise ConfigurationMissing(path, phase=self.phase_name) from exc
        except (AutoloadFormatError, OSError) as exc:
            raise ArtifactLoadError(path, exc, phase=self.phase_name) from exc

        context.autoloads = autoloads
        hook_count = 0
        for hook_name, callbacks in autoloads.hook_callbacks().items():
            for callback in callbacks:
                context.registry.add_hook(hook_name, callback)
                hook_count += 1
        if autoloads.manifest.deferred:
            context.loader.register(autoloads.manifest.deferred)

        return PhaseResult.success_result(
            f'Loaded autoloads from {path}',
            metadata={
                'definitions': len(autoloads.names()),
                'hooks': hook_count,
                'deferred': len(autoloads.manifest.deferred),
            },
        )
