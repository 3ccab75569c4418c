# warmstart/infrastructure/environment/environment_state.py
from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, MutableMapping, Optional

logger = logging.getLogger(__name__)


@dataclass
class EnvironmentSnapshot:
    environ: Dict[str, str] = field(default_factory=dict)
    search_path: List[str] = field(default_factory=list)
    exec_path: List[str] = field(default_factory=list)


class EnvironmentState:
    """
    The process-wide, environment-like state that bootstrap may change.

    Captures the environment variables, module search path and executable
    search path once, at construction, so a later bootstrap can put them back
    exactly as they were and be treated as a reset. The live containers are
    modified in place; by default they are ``os.environ`` and ``sys.path``.
    """

    def __init__(
        self,
        environ: Optional[MutableMapping[str, str]] = None,
        search_path: Optional[List[str]] = None,
    ) -> None:
        self.environ = os.environ if environ is None else environ
        self.search_path = sys.path if search_path is None else search_path
        self.exec_path: List[str] = _split_path(self.environ.get('PATH', ''))
        self.initial = self.capture()

    def capture(self) -> EnvironmentSnapshot:
        return EnvironmentSnapshot(
            environ=dict(self.environ),
            search_path=list(self.search_path),
            exec_path=list(self.exec_path),
        )

    def restore(self, snapshot: Optional[EnvironmentSnapshot] = None) -> None:
        snapshot = snapshot or self.initial
        self.environ.clear()
        self.environ.update(snapshot.environ)
        self.search_path[:] = snapshot.search_path
        self.exec_path = list(snapshot.exec_path)
        logger.debug(
            'Environment reset to initial snapshot (%d variables, %d search paths)',
            len(snapshot.environ), len(snapshot.search_path),
        )

    def apply_envvars(self, variables: Mapping[str, str]) -> None:
        """Overlay ``variables`` on the live environment; ``PATH`` also resets the exec path."""
        self.environ.update(variables)
        if 'PATH' in variables:
            self.exec_path = _split_path(variables['PATH'])
        logger.debug('Applied %d environment variables', len(variables))


def _split_path(value: str) -> List[str]:
    return [entry for entry in value.split(os.pathsep) if entry]
