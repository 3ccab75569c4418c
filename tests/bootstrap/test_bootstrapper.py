import gc
import itertools
import logging
import sys
import time

import pytest

from bootstrap.__main__ import main_cli_entry
from bootstrap.bootstrap import Bootstrapper, bootstrap_from_config
from bootstrap.config.startup_settings import StartupSettings
from bootstrap.context.bootstrap_context_builder import create_bootstrap_context
from bootstrap.exceptions import ArtifactLoadError, ConfigurationMissing, PhaseExecutionError
from core.results import ErrorKind
from infrastructure.environment.environment_state import EnvironmentState
from infrastructure.modules.static_module_system import StaticModuleSystem


class RecordingModuleSystem(StaticModuleSystem):

    def __init__(self, fail_on=None, **kwargs):
        super().__init__(**kwargs)
        self.calls = []
        self.fail_on = fail_on

    def _record(self, name):
        self.calls.append(name)
        if name == self.fail_on:
            raise RuntimeError(f'{name} exploded')

    def load_configuration(self):
        self._record('load_configuration')
        super().load_configuration()

    def initialize_packages(self):
        self._record('initialize_packages')
        super().initialize_packages()

    def init_modules(self, force=False):
        self._record(('init_modules', force))
        super().init_modules(force)


@pytest.fixture
def environ():
    return {'HOME': '/home/u', 'PATH': '/usr/bin'}


@pytest.fixture
def autoloads_file(tmp_path):
    path = tmp_path / 'autoloads.yaml'
    path.write_text('version: 1\n', encoding='utf-8')
    return path


@pytest.fixture
def make_bootstrapper(tmp_path, scheduler, event_bus, environ, autoloads_file):
    def _make(module_system=None, **overrides):
        options = {
            'autoloads_file': str(autoloads_file),
            'env_file': str(tmp_path / 'env'),
            'gc_threshold_during_startup': None,
        }
        options.update(overrides)
        context = create_bootstrap_context(
            StartupSettings(**options),
            scheduler=scheduler,
            event_bus=event_bus,
            environment=EnvironmentState(environ=environ, search_path=[]),
            module_system=module_system or RecordingModuleSystem(),
        )
        return Bootstrapper(context)

    return _make


class TestBootstrapIdempotence:

    def test_second_call_is_noop(self, make_bootstrapper, environ):
        modules = RecordingModuleSystem()
        bootstrapper = make_bootstrapper(modules)

        assert bootstrapper.bootstrap() is True
        environ['CHANGED_AFTER_BOOT'] = '1'
        assert bootstrapper.bootstrap() is True

        assert modules.calls == ['load_configuration', ('init_modules', False)]
        assert environ['CHANGED_AFTER_BOOT'] == '1'
        assert bootstrapper.state.runs == 1

    def test_force_resets_environment_and_reruns_phases(self, make_bootstrapper, environ):
        modules = RecordingModuleSystem()
        bootstrapper = make_bootstrapper(modules)
        bootstrapper.bootstrap()
        environ['CHANGED_AFTER_BOOT'] = '1'

        assert bootstrapper.bootstrap(force=True) is True

        assert 'CHANGED_AFTER_BOOT' not in environ
        assert modules.calls == [
            'load_configuration', ('init_modules', False),
            'load_configuration', ('init_modules', True),
        ]
        assert bootstrapper.state.runs == 2
        assert bootstrapper.last_result.forced

    def test_init_time_is_recomputed_not_accumulated(self, make_bootstrapper, monkeypatch):
        ticks = itertools.count()
        monkeypatch.setattr(time, 'perf_counter', lambda: float(next(ticks)))
        bootstrapper = make_bootstrapper()

        bootstrapper.bootstrap()
        first = bootstrapper.state.init_time
        bootstrapper.bootstrap(force=True)

        assert first > 0
        assert bootstrapper.state.init_time == first

    def test_forced_run_rebinds_fired_triggers(self, make_bootstrapper, event_bus):
        bootstrapper = make_bootstrapper()
        bootstrapper.bootstrap()
        bootstrapper.startup_complete()
        event_bus.publish('pre-command')
        assert not bootstrapper.context.triggers.get('first-input-hook').armed

        bootstrapper.bootstrap(force=True)

        calls = []
        bootstrapper.register_callback('first-input-hook', lambda: calls.append('again'))
        event_bus.publish('pre-command')
        assert calls == ['again']
        assert event_bus.subscriber_count('startup-complete') == 1

    def test_forced_run_after_startup_rearms_loader(self, make_bootstrapper, scheduler, module_factory):
        module_factory('ws_reload_task', '')
        bootstrapper = make_bootstrapper(incremental_tasks=['ws_reload_task'])
        bootstrapper.bootstrap()
        bootstrapper.startup_complete()
        bootstrapper.bootstrap(force=True)

        assert bootstrapper.context.loader.armed
        scheduler.run_until_idle()
        assert 'ws_reload_task' in sys.modules


class TestAutoloadArtifact:

    def test_missing_artifact_is_configuration_missing(self, make_bootstrapper, tmp_path):
        bootstrapper = make_bootstrapper(autoloads_file=str(tmp_path / 'never-generated.yaml'))

        with pytest.raises(ConfigurationMissing) as excinfo:
            bootstrapper.bootstrap()

        message = str(excinfo.value)
        assert 'missing' in message
        assert 'run `warmstart sync` to repair it' in message
        assert excinfo.value.phase == 'AutoloadPhase'

    def test_broken_artifact_is_artifact_load_error(self, make_bootstrapper, autoloads_file):
        autoloads_file.write_text('definitions: [unclosed\n', encoding='utf-8')
        bootstrapper = make_bootstrapper()

        with pytest.raises(ArtifactLoadError) as excinfo:
            bootstrapper.bootstrap()

        assert 'Failed to load autoloads file' in str(excinfo.value)
        assert 'The autoloads file is missing' not in str(excinfo.value)

    def test_undecodable_artifact_is_artifact_load_error(self, make_bootstrapper, autoloads_file):
        autoloads_file.write_bytes(b'version: 1\ndefinitions: {x: "\xff\xfe:y"}\n')
        bootstrapper = make_bootstrapper()

        with pytest.raises(ArtifactLoadError) as excinfo:
            bootstrapper.bootstrap()

        assert 'run `warmstart sync` to repair it' in str(excinfo.value)

    def test_non_string_keys_are_artifact_load_error(self, make_bootstrapper, autoloads_file):
        autoloads_file.write_text('1: foo\n', encoding='utf-8')
        bootstrapper = make_bootstrapper()

        with pytest.raises(ArtifactLoadError):
            bootstrapper.bootstrap()

    def test_fatal_errors_ignore_strict_mode_setting(self, make_bootstrapper, tmp_path):
        bootstrapper = make_bootstrapper(autoloads_file=str(tmp_path / 'nope.yaml'), strict_mode=False)
        with pytest.raises(ConfigurationMissing):
            bootstrapper.bootstrap()

    def test_artifact_hooks_and_deferred_tasks_are_installed(self, make_bootstrapper, autoloads_file, module_factory):
        module_factory('ws_boot_hooks', 'CALLS = []\ndef on_first_file():\n    CALLS.append(1)\n')
        module_factory('ws_boot_deferred', 'X = 1\n')
        autoloads_file.write_text(
            'hooks:\n  first-file-hook: ["ws_boot_hooks:on_first_file"]\n'
            'deferred: ["ws_boot_deferred"]\n',
            encoding='utf-8',
        )
        bootstrapper = make_bootstrapper(first_idle_delay=0)

        bootstrapper.bootstrap()
        assert bootstrapper.context.loader.pending == ['ws_boot_deferred']

        bootstrapper.startup_complete()
        assert 'ws_boot_deferred' in sys.modules

        bootstrapper.context.event_bus.publish('find-file', '/tmp/a.txt')
        assert sys.modules['ws_boot_hooks'].CALLS == [1]


class TestEnvvarPhase:

    @pytest.fixture
    def env_file(self, tmp_path):
        path = tmp_path / 'env'
        path.write_text('PATH=/opt/bin:/usr/bin\nSSH_AUTH_SOCK=/run/agent\n', encoding='utf-8')
        return path

    def test_terminal_session_skips_envvar_file(self, make_bootstrapper, environ, env_file):
        bootstrapper = make_bootstrapper(host_context='terminal')
        bootstrapper.bootstrap()

        assert 'SSH_AUTH_SOCK' not in environ
        assert 'EnvvarPhase' in bootstrapper.last_result.skipped_phases

    @pytest.mark.parametrize('host_context', ['graphical', 'daemon'])
    def test_graphical_and_daemon_sessions_apply_envvar_file(self, make_bootstrapper, environ, env_file, host_context):
        bootstrapper = make_bootstrapper(host_context=host_context)
        bootstrapper.bootstrap()

        assert environ['SSH_AUTH_SOCK'] == '/run/agent'
        assert bootstrapper.context.environment.exec_path == ['/opt/bin', '/usr/bin']

    def test_missing_envvar_file_is_not_an_error(self, make_bootstrapper, environ):
        bootstrapper = make_bootstrapper(host_context='graphical')
        bootstrapper.bootstrap()

        assert bootstrapper.last_result.success


class TestStartupWiring:

    def test_first_input_waits_for_after_init(self, make_bootstrapper, event_bus):
        calls = []
        bootstrapper = make_bootstrapper()
        bootstrapper.bootstrap()
        bootstrapper.register_callback('first-input-hook', lambda: calls.append('input'))

        event_bus.publish('pre-command')
        assert calls == []

        bootstrapper.startup_complete()
        assert calls == ['input']

        event_bus.publish('pre-command')
        assert calls == ['input']

    def test_first_file_and_first_buffer_fire_on_find_file(self, make_bootstrapper, event_bus):
        calls = []
        bootstrapper = make_bootstrapper()
        bootstrapper.bootstrap()
        bootstrapper.startup_complete()
        bootstrapper.register_callback('first-file-hook', lambda: calls.append('file'))
        bootstrapper.register_callback('first-buffer-hook', lambda: calls.append('buffer'))

        event_bus.publish('find-file')
        event_bus.publish('switch-buffer')
        event_bus.publish('dired-initial-position')

        assert sorted(calls) == ['buffer', 'file']

    def test_daemon_fires_triggers_at_startup(self, make_bootstrapper):
        calls = []
        bootstrapper = make_bootstrapper(host_context='daemon')
        bootstrapper.bootstrap()
        for hook in ('first-input-hook', 'first-file-hook', 'first-buffer-hook'):
            bootstrapper.register_callback(hook, lambda hook=hook: calls.append(hook))

        bootstrapper.startup_complete()

        assert sorted(calls) == ['first-buffer-hook', 'first-file-hook', 'first-input-hook']

    def test_gc_housekeeping_starts_with_first_buffer(self, make_bootstrapper, event_bus):
        saved = gc.get_threshold()
        try:
            bootstrapper = make_bootstrapper(gc_threshold_during_startup=50000)
            bootstrapper.bootstrap()
            assert gc.get_threshold()[0] == 50000

            bootstrapper.startup_complete()
            event_bus.publish('switch-buffer')

            assert gc.get_threshold() == saved
            assert bootstrapper.context.housekeeper.active
        finally:
            gc.set_threshold(*saved)

    def test_package_manager_is_deferred_to_its_hook(self, make_bootstrapper):
        modules = RecordingModuleSystem()
        bootstrapper = make_bootstrapper(modules)
        bootstrapper.bootstrap()
        assert 'initialize_packages' not in modules.calls

        result = bootstrapper.run_callback_list('package-manager-load-hook')

        assert result.ok
        assert 'initialize_packages' in modules.calls

    def test_local_var_hooks_follow_major_mode_changes(self, make_bootstrapper, event_bus):
        seen = []
        bootstrapper = make_bootstrapper()
        bootstrapper.bootstrap()
        bootstrapper.register_callback('python-mode-local-vars-hook', lambda: seen.append('python'))

        event_bus.publish('after-change-major-mode', 'python-mode')
        result = bootstrapper.run_local_var_hooks('python-mode')

        assert seen == ['python', 'python']
        assert result.ok

    def test_incremental_tasks_start_after_startup_complete(self, make_bootstrapper, scheduler, module_factory, caplog):
        module_factory('ws_idle_one', '')
        module_factory('ws_idle_two', '')
        bootstrapper = make_bootstrapper(incremental_tasks=['ws_idle_one', 'ws_idle_two'])
        bootstrapper.bootstrap()
        scheduler.advance(60)
        assert 'ws_idle_one' not in sys.modules

        with caplog.at_level(logging.INFO):
            bootstrapper.startup_complete()
            scheduler.run_until_idle()

        assert 'ws_idle_one' in sys.modules and 'ws_idle_two' in sys.modules
        assert 'Incrementally loading ws_idle_one' in caplog.text
        assert 'Finished incremental loading' in caplog.text

    def test_enqueue_deferred_run_immediately(self, make_bootstrapper, module_factory):
        module_factory('ws_right_now', '')
        bootstrapper = make_bootstrapper()
        bootstrapper.bootstrap()

        bootstrapper.enqueue_deferred(['ws_right_now'], run_immediately=True)

        assert 'ws_right_now' in sys.modules

    def test_window_setup_displays_benchmark(self, make_bootstrapper, caplog, module_factory):
        module_factory('ws_bench_module', '')
        bootstrapper = make_bootstrapper(RecordingModuleSystem(modules=['ws_bench_module']))
        bootstrapper.bootstrap()

        with caplog.at_level(logging.INFO):
            bootstrapper.window_setup()

        assert 'Loaded 1 modules in' in caplog.text

    def test_bind_one_shot(self, make_bootstrapper, event_bus):
        calls = []
        bootstrapper = make_bootstrapper()
        bootstrapper.bootstrap()
        bootstrapper.startup_complete()
        bootstrapper.register_callback('first-project-hook', lambda: calls.append(1))

        binding = bootstrapper.bind_one_shot('first-project-hook', ['project-switch'])
        event_bus.publish('project-switch')
        event_bus.publish('project-switch')

        assert calls == [1]
        assert not binding.armed


class TestRecoverablePhases:

    def test_failing_phase_is_logged_and_bootstrap_continues(self, make_bootstrapper, caplog):
        modules = RecordingModuleSystem(fail_on='load_configuration')
        bootstrapper = make_bootstrapper(modules)

        with caplog.at_level(logging.ERROR):
            assert bootstrapper.bootstrap() is True

        result = bootstrapper.last_result
        assert not result.success
        assert result.failed_phases == ['ModuleConfigPhase']
        assert ('init_modules', False) in modules.calls
        assert 'load_configuration exploded' in caplog.text

    def test_strict_mode_stops_at_first_failing_phase(self, make_bootstrapper):
        modules = RecordingModuleSystem(fail_on='load_configuration')
        bootstrapper = make_bootstrapper(modules, strict_mode=True)

        with pytest.raises(PhaseExecutionError) as excinfo:
            bootstrapper.bootstrap()

        assert excinfo.value.phase == 'ModuleConfigPhase'
        assert isinstance(excinfo.value.original_error, RuntimeError)
        assert ('init_modules', False) not in modules.calls

    def test_hook_error_during_trigger_does_not_escape(self, make_bootstrapper, event_bus):
        bootstrapper = make_bootstrapper()
        bootstrapper.bootstrap()
        bootstrapper.startup_complete()

        def broken():
            raise RuntimeError('bad first-file setup')

        bootstrapper.register_callback('first-file-hook', broken)
        event_bus.publish('find-file')

        binding = bootstrapper.context.triggers.get('first-file-hook')
        assert binding.last_result.kind is ErrorKind.HOOK_ERROR


class TestBootstrapFromConfig:

    def test_builds_and_runs_from_layered_config(self, tmp_path, environ, autoloads_file):
        extra = tmp_path / 'startup.yaml'
        extra.write_text(
            'startup:\n'
            '  host_context: batch\n'
            f'  autoloads_file: {autoloads_file}\n'
            '  gc_threshold_during_startup: null\n',
            encoding='utf-8',
        )

        bootstrapper = bootstrap_from_config(
            config_paths=[extra],
            overrides={'startup': {'verbose': True}},
            environment=EnvironmentState(environ=environ, search_path=[]),
        )

        settings = bootstrapper.context.settings
        assert bootstrapper.initialized
        assert settings.host_context == 'batch'
        assert settings.verbose
        assert bootstrapper.context.loader.immediate_mode
        assert bootstrapper.context.global_app_config['env'] == 'default'


class TestCommandLine:

    def write_config(self, tmp_path, autoloads_path):
        path = tmp_path / 'cli.yaml'
        path.write_text(
            'startup:\n'
            '  host_context: terminal\n'
            f'  autoloads_file: {autoloads_path}\n'
            '  gc_threshold_during_startup: null\n',
            encoding='utf-8',
        )
        return str(path)

    def test_successful_run_prints_summary(self, tmp_path, autoloads_file, capsys):
        assert main_cli_entry(['--config', self.write_config(tmp_path, autoloads_file)]) == 0
        out = capsys.readouterr().out
        assert '=== Bootstrap Summary ===' in out
        assert 'Success: True' in out

    def test_missing_autoloads_exits_with_repair_hint(self, tmp_path, capsys):
        config = self.write_config(tmp_path, tmp_path / 'absent.yaml')

        assert main_cli_entry(['--config', config]) == 2
        assert 'warmstart sync' in capsys.readouterr().out

    def test_unknown_config_file(self, tmp_path, capsys):
        assert main_cli_entry(['--config', str(tmp_path / 'nope.yaml')]) == 1

    def test_malformed_config_file_exits_with_error(self, tmp_path, capsys):
        broken = tmp_path / 'broken.yaml'
        broken.write_text('startup: [unclosed\n', encoding='utf-8')

        assert main_cli_entry(['--config', str(broken)]) == 1
        assert 'Invalid startup configuration' in capsys.readouterr().out
