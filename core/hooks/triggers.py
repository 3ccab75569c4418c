# warmstart/core/hooks/triggers.py
"""
One-shot trigger aggregator.

``bind(target, sources)`` makes the callback list ``target`` run the first
time any of ``sources`` is published on the host event bus, after which the
binding disarms itself for good. Firings that happen before startup finished
(the after-init gate is closed) are remembered and replayed once when the gate
opens.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional

from core.exceptions import TriggerBindingError
from core.hooks.hook_registry import HookRegistry
from core.hooks.hook_runner import HookRunner
from core.results import HookRunResult
from domain.ports.event_bus_port import EventBusPort

logger = logging.getLogger(__name__)


@dataclass
class TriggerBinding:
    target: str
    sources: FrozenSet[str]
    armed: bool = True
    pending: bool = False
    fired_by: Optional[str] = None
    last_result: Optional[HookRunResult] = None
    listeners: Dict[str, Callable[[Any], None]] = field(default_factory=dict, repr=False)


class TriggerAggregator:

    def __init__(
        self,
        registry: HookRegistry,
        runner: HookRunner,
        event_bus: EventBusPort,
        gate: Optional[Callable[[], bool]] = None,
        daemon_source: Optional[str] = None,
    ) -> None:
        self.registry = registry
        self.runner = runner
        self.event_bus = event_bus
        self._gate = gate or (lambda: True)
        # In daemon sessions there is no user to produce the real sources, so
        # every binding listens to this single event instead.
        self._daemon_source = daemon_source
        self._bindings: Dict[str, TriggerBinding] = {}

    @property
    def bindings(self) -> List[TriggerBinding]:
        return list(self._bindings.values())

    def get(self, target: str) -> Optional[TriggerBinding]:
        return self._bindings.get(target)

    def bind(self, target: str, sources: Iterable[str]) -> TriggerBinding:
        source_set = frozenset(sources)
        if not source_set:
            raise ValueError(f"Trigger for '{target}' needs at least one source event")

        binding = self._bindings.get(target)
        if binding is not None:
            if not binding.armed:
                raise TriggerBindingError(f"Trigger for '{target}' already fired (by '{binding.fired_by}')")
            overlap = binding.sources & source_set
            if overlap:
                raise TriggerBindingError(
                    f"'{target}' is already bound to {sorted(overlap)}; binding it again would fire it twice"
                )
            binding.sources = binding.sources | source_set
        else:
            binding = TriggerBinding(target=target, sources=source_set)
            self._bindings[target] = binding

        listen_to = [self._daemon_source] if self._daemon_source else sorted(source_set)
        for source in listen_to:
            if source in binding.listeners:
                continue
            listener = self._make_listener(binding, source)
            binding.listeners[source] = listener
            self.event_bus.subscribe(source, listener)
        logger.debug("Bound '%s' to first of %s", target, sorted(binding.sources))
        return binding

    def _make_listener(self, binding: TriggerBinding, source: str) -> Callable[[Any], None]:

        def listener(_payload: Any = None) -> None:
            self._on_source(binding, source)

        listener.__qualname__ = f'chain-{binding.target}-to-{source}'
        return listener

    def _on_source(self, binding: TriggerBinding, source: str) -> None:
        if not binding.armed:
            return
        if not self._gate():
            binding.pending = True
            logger.debug("'%s' fired before startup finished; deferring '%s'", source, binding.target)
            return
        # Sources may be inhibited while the host runs internal batch work.
        if self._daemon_source is None and not self.event_bus.is_active(source):
            return
        self._fire(binding, source)

    def _fire(self, binding: TriggerBinding, source: str) -> HookRunResult:
        binding.armed = False
        binding.pending = False
        binding.fired_by = source
        logger.debug("Running one-shot hook '%s' (triggered by '%s')", binding.target, source)
        try:
            result = self.runner.run_hooks(binding.target)
        finally:
            self.registry.clear(binding.target)
            self._detach(binding)
        binding.last_result = result
        if not result.ok:
            logger.warning("One-shot hook '%s' did not complete: %s", binding.target, result.error)
        return result

    def flush_pending(self) -> List[HookRunResult]:
        """Fire bindings whose source arrived while the after-init gate was closed."""
        results = []
        for binding in list(self._bindings.values()):
            if binding.armed and binding.pending:
                results.append(self._fire(binding, 'after-init-gate'))
        return results

    def _detach(self, binding: TriggerBinding) -> None:
        for source, listener in binding.listeners.items():
            self.event_bus.unsubscribe(source, listener)
        binding.listeners.clear()

    def reset(self) -> None:
        """Tear down every binding, armed or not; used when bootstrap is forced to re-run."""
        for binding in self._bindings.values():
            self._detach(binding)
        self._bindings.clear()
