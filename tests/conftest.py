import sys
import textwrap
from pathlib import Path

import pytest

from core.hooks.hook_registry import HookRegistry
from core.hooks.hook_runner import HookRunner
from infrastructure.event_bus.host_event_bus import HostEventBus
from infrastructure.scheduling.manual_scheduler import ManualIdleScheduler


@pytest.fixture
def registry():
    return HookRegistry()


@pytest.fixture
def runner(registry):
    return HookRunner(registry)


@pytest.fixture
def event_bus():
    return HostEventBus()


@pytest.fixture
def scheduler():
    return ManualIdleScheduler()


@pytest.fixture
def module_factory(tmp_path, monkeypatch):
    """Write throwaway importable modules; they are removed from ``sys.modules`` afterwards."""
    monkeypatch.syspath_prepend(str(tmp_path))
    created = []

    def _make(name: str, source: str = '') -> Path:
        path = tmp_path / f'{name}.py'
        path.write_text(textwrap.dedent(source), encoding='utf-8')
        created.append(name)
        return path

    yield _make

    for name in created:
        sys.modules.pop(name, None)
