import pytest
from pydantic import ValidationError

from bootstrap.config.startup_settings import StartupSettings
from configs.config_loader import ConfigLoader
from configs.config_utils import ConfigMerger


def write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding='utf-8')
    return path


class TestConfigLoader:

    def test_shipped_defaults_load(self):
        cfg = ConfigLoader().load_global_config()
        settings = StartupSettings.from_config(cfg)

        assert cfg['env'] == 'default'
        assert settings.first_idle_delay == 2.0
        assert settings.idle_delay == 0.75
        assert settings.host_context in ('terminal', 'graphical', 'daemon', 'batch')

    def test_layers_merge_in_order(self, tmp_path):
        write(tmp_path / 'configs' / 'default' / 'global_app_config.yaml', (
            'startup:\n'
            '  idle_delay: 1.0\n'
            '  incremental_tasks: [a, b]\n'
        ))
        write(tmp_path / 'configs' / 'dev' / 'global_app_config.yaml', 'startup:\n  idle_delay: 0.5\n')
        extra = write(tmp_path / 'extra.yaml', 'startup:\n  verbose: true\n')

        cfg = ConfigLoader(tmp_path).load_global_config(
            env='dev',
            provided_config={'startup': {'strict_mode': True}},
            extra_paths=[extra],
        )

        startup = cfg['startup']
        assert cfg['env'] == 'dev'
        assert startup['idle_delay'] == 0.5
        assert startup['incremental_tasks'] == ['a', 'b']
        assert startup['verbose'] is True
        assert startup['strict_mode'] is True
        assert startup['first_idle_delay'] == 2.0

    def test_env_references_are_expanded(self, tmp_path, monkeypatch):
        monkeypatch.setenv('WS_TEST_HOST', 'daemon')
        monkeypatch.delenv('WS_TEST_UNSET', raising=False)
        write(tmp_path / 'configs' / 'default' / 'global_app_config.yaml', (
            'startup:\n'
            '  host_context: ${WS_TEST_HOST:-terminal}\n'
            '  local_dir: ${WS_TEST_UNSET:-/var/lib/ws}\n'
        ))

        cfg = ConfigLoader(tmp_path).load_global_config()

        assert cfg['startup']['host_context'] == 'daemon'
        assert cfg['startup']['local_dir'] == '/var/lib/ws'

    def test_missing_env_layer_is_tolerated(self, tmp_path):
        cfg = ConfigLoader(tmp_path).load_global_config(env='nowhere')
        assert cfg['startup']['idle_delay'] == 0.75

    def test_malformed_extra_file_is_an_error(self, tmp_path):
        extra = write(tmp_path / 'broken.yaml', 'startup: [unclosed\n')
        with pytest.raises(ValueError, match='broken.yaml'):
            ConfigLoader(tmp_path).load_global_config(extra_paths=[extra])

    def test_missing_extra_file_is_an_error(self, tmp_path):
        with pytest.raises(ValueError, match='not found'):
            ConfigLoader(tmp_path).load_global_config(extra_paths=[tmp_path / 'absent.yaml'])

    def test_malformed_env_layer_is_tolerated(self, tmp_path):
        write(tmp_path / 'configs' / 'dev' / 'global_app_config.yaml', 'startup: [unclosed\n')
        cfg = ConfigLoader(tmp_path).load_global_config(env='dev')
        assert cfg['startup']['idle_delay'] == 0.75

    def test_non_mapping_startup_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            ConfigLoader(tmp_path).load_global_config(provided_config={'startup': 'fast'})


class TestStartupSettings:

    def test_immediate_loading_contexts(self):
        assert StartupSettings(host_context='daemon').wants_immediate_loading
        assert StartupSettings(host_context='batch').wants_immediate_loading
        assert StartupSettings(load_immediately=True).wants_immediate_loading
        assert not StartupSettings(host_context='graphical').wants_immediate_loading

    def test_invalid_values_rejected(self):
        with pytest.raises(ValidationError):
            StartupSettings(host_context='toaster')
        with pytest.raises(ValidationError):
            StartupSettings(idle_delay=-1)

    def test_task_names_are_stripped(self):
        settings = StartupSettings(incremental_tasks=[' json ', '', 'csv'])
        assert settings.incremental_tasks == ['json', 'csv']

    def test_from_yaml(self, tmp_path):
        path = write(tmp_path / 'startup.yaml', 'startup:\n  host_context: graphical\n  verbose: true\n')
        settings = StartupSettings.from_yaml(path)
        assert settings.is_graphical
        assert settings.verbose


class TestConfigMerger:

    def test_nested_merge_does_not_mutate_inputs(self):
        base = {'startup': {'a': 1, 'b': {'c': 2}}}
        override = {'startup': {'b': {'d': 3}}}

        merged = ConfigMerger.merge(base, override)

        assert merged == {'startup': {'a': 1, 'b': {'c': 2, 'd': 3}}}
        assert base == {'startup': {'a': 1, 'b': {'c': 2}}}

    def test_strict_keys(self):
        with pytest.raises(ValueError):
            ConfigMerger.merge({'a': 1}, {'b': 2}, strict_keys=True)
