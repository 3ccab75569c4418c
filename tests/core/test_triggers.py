import logging

import pytest

from core.exceptions import TriggerBindingError
from core.hooks.triggers import TriggerAggregator


def make_aggregator(registry, runner, event_bus, gate_state=None, daemon_source=None):
    gate = (lambda: gate_state['open']) if gate_state is not None else None
    return TriggerAggregator(registry, runner, event_bus, gate=gate, daemon_source=daemon_source)


class TestTriggerAggregator:

    @pytest.mark.parametrize('first_source', ['find-file', 'switch-buffer'])
    def test_target_fires_once_whichever_source_comes_first(self, registry, runner, event_bus, first_source):
        calls = []
        registry.add_hook('first-buffer-hook', lambda: calls.append('ran'))
        triggers = make_aggregator(registry, runner, event_bus)
        binding = triggers.bind('first-buffer-hook', ['find-file', 'switch-buffer'])

        event_bus.publish(first_source)
        event_bus.publish('find-file')
        event_bus.publish('switch-buffer')

        assert calls == ['ran']
        assert not binding.armed
        assert binding.fired_by == first_source

    def test_listeners_are_removed_after_firing(self, registry, runner, event_bus):
        registry.add_hook('first-file-hook', lambda: None)
        triggers = make_aggregator(registry, runner, event_bus)
        triggers.bind('first-file-hook', ['find-file', 'dired-initial-position'])
        assert event_bus.subscriber_count('find-file') == 1

        event_bus.publish('dired-initial-position')

        assert event_bus.subscriber_count('find-file') == 0
        assert event_bus.subscriber_count('dired-initial-position') == 0

    def test_target_list_is_cleared_after_firing(self, registry, runner, event_bus):
        registry.add_hook('first-input-hook', lambda: None)
        triggers = make_aggregator(registry, runner, event_bus)
        triggers.bind('first-input-hook', ['pre-command'])

        event_bus.publish('pre-command')

        assert not registry.has_hooks('first-input-hook')

    def test_binding_is_disarmed_before_target_runs(self, registry, runner, event_bus):
        fired = []
        triggers = make_aggregator(registry, runner, event_bus)

        def reentrant():
            fired.append('x')
            # A callback that re-publishes a source must not fire the target again.
            event_bus.publish('switch-buffer')

        registry.add_hook('first-buffer-hook', reentrant)
        triggers.bind('first-buffer-hook', ['find-file', 'switch-buffer'])

        event_bus.publish('find-file')

        assert fired == ['x']

    def test_closed_gate_defers_until_flush(self, registry, runner, event_bus):
        calls = []
        gate = {'open': False}
        registry.add_hook('first-input-hook', lambda: calls.append('ran'))
        triggers = make_aggregator(registry, runner, event_bus, gate_state=gate)
        binding = triggers.bind('first-input-hook', ['pre-command'])

        event_bus.publish('pre-command')
        assert calls == []
        assert binding.pending and binding.armed

        gate['open'] = True
        results = triggers.flush_pending()

        assert calls == ['ran']
        assert len(results) == 1 and results[0].ok
        assert not binding.armed
        assert triggers.flush_pending() == []

    def test_flush_without_pending_firings_runs_nothing(self, registry, runner, event_bus):
        calls = []
        registry.add_hook('first-file-hook', lambda: calls.append('ran'))
        triggers = make_aggregator(registry, runner, event_bus)
        binding = triggers.bind('first-file-hook', ['find-file'])

        assert triggers.flush_pending() == []
        assert calls == []
        assert binding.armed

    def test_inhibited_source_does_not_fire(self, registry, runner, event_bus):
        calls = []
        registry.add_hook('first-file-hook', lambda: calls.append('ran'))
        triggers = make_aggregator(registry, runner, event_bus)
        binding = triggers.bind('first-file-hook', ['find-file'])

        with event_bus.inhibited('find-file'):
            event_bus.publish('find-file')
        assert calls == []
        assert binding.armed

        event_bus.publish('find-file')
        assert calls == ['ran']

    def test_daemon_mode_fires_on_single_startup_event(self, registry, runner, event_bus):
        calls = []
        registry.add_hook('first-input-hook', lambda: calls.append('input'))
        registry.add_hook('first-file-hook', lambda: calls.append('file'))
        triggers = make_aggregator(registry, runner, event_bus, daemon_source='after-init')
        triggers.bind('first-input-hook', ['pre-command'])
        triggers.bind('first-file-hook', ['find-file', 'dired-initial-position'])

        event_bus.publish('pre-command')
        assert calls == []

        event_bus.publish('after-init')
        assert sorted(calls) == ['file', 'input']
        assert event_bus.subscriber_count('after-init') == 0

    def test_overlapping_rebind_is_rejected(self, registry, runner, event_bus):
        triggers = make_aggregator(registry, runner, event_bus)
        triggers.bind('first-buffer-hook', ['find-file', 'switch-buffer'])

        with pytest.raises(TriggerBindingError):
            triggers.bind('first-buffer-hook', ['switch-buffer'])

    def test_disjoint_rebind_extends_sources(self, registry, runner, event_bus):
        calls = []
        registry.add_hook('first-buffer-hook', lambda: calls.append('ran'))
        triggers = make_aggregator(registry, runner, event_bus)
        triggers.bind('first-buffer-hook', ['find-file'])
        binding = triggers.bind('first-buffer-hook', ['switch-buffer'])

        assert binding.sources == frozenset({'find-file', 'switch-buffer'})
        event_bus.publish('switch-buffer')
        event_bus.publish('find-file')
        assert calls == ['ran']

    def test_rebinding_fired_target_is_rejected(self, registry, runner, event_bus):
        triggers = make_aggregator(registry, runner, event_bus)
        triggers.bind('first-input-hook', ['pre-command'])
        event_bus.publish('pre-command')

        with pytest.raises(TriggerBindingError):
            triggers.bind('first-input-hook', ['post-command'])

    def test_empty_sources_rejected(self, registry, runner, event_bus):
        triggers = make_aggregator(registry, runner, event_bus)
        with pytest.raises(ValueError):
            triggers.bind('first-input-hook', [])

    def test_hook_error_is_kept_on_binding_and_not_raised(self, registry, runner, event_bus, caplog):
        later = []

        def boom():
            raise RuntimeError('broken package')

        registry.add_hook('first-file-hook', boom)
        event_bus.subscribe('find-file', lambda _payload: later.append('other handler'))
        triggers = make_aggregator(registry, runner, event_bus)
        binding = triggers.bind('first-file-hook', ['find-file'])

        with caplog.at_level(logging.WARNING):
            event_bus.publish('find-file')

        assert not binding.armed
        assert binding.last_result is not None and not binding.last_result.ok
        assert later == ['other handler']
        assert "One-shot hook 'first-file-hook' did not complete" in caplog.text

    def test_reset_detaches_every_binding(self, registry, runner, event_bus):
        triggers = make_aggregator(registry, runner, event_bus)
        triggers.bind('first-input-hook', ['pre-command'])
        triggers.bind('first-file-hook', ['find-file'])

        triggers.reset()

        assert triggers.bindings == []
        assert event_bus.subscriber_count('pre-command') == 0
        assert event_bus.subscriber_count('find-file') == 0
