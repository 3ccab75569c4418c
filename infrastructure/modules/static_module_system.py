# warmstart/infrastructure/modules/static_module_system.py
from __future__ import annotations

import importlib
import logging
from typing import List, Sequence

from domain.ports.module_system_port import ModuleSystemPort

logger = logging.getLogger(__name__)


class StaticModuleSystem(ModuleSystemPort):
    """
    Module system backed by a fixed list of importable module names.

    ``init_modules`` imports each module and calls its ``init_module(force)``
    function when it defines one. Modules are initialized at most once unless
    ``force`` is given.
    """

    def __init__(self, modules: Sequence[str] = (), packages: Sequence[str] = ()) -> None:
        self.modules: List[str] = list(modules)
        self.packages: List[str] = list(packages)
        self.configuration_loaded = False
        self.packages_initialized = False
        self._initialized: List[str] = []

    def load_configuration(self) -> None:
        self.configuration_loaded = True
        logger.debug('Module configuration loaded (%d modules enabled)', len(self.modules))

    def initialize_packages(self) -> None:
        if self.packages_initialized:
            return
        for name in self.packages:
            importlib.import_module(name)
        self.packages_initialized = True
        logger.info('Package manager initialized (%d packages)', len(self.packages))

    def init_modules(self, force: bool = False) -> None:
        if force:
            self._initialized.clear()
        for name in self.modules:
            if name in self._initialized:
                continue
            module = importlib.import_module(name)
            init = getattr(module, 'init_module', None)
            if callable(init):
                init(force)
            self._initialized.append(name)
        logger.debug('Initialized %d modules', len(self._initialized))

    @property
    def initialized_modules(self) -> List[str]:
        return list(self._initialized)

    def module_count(self) -> int:
        return len(self._initialized)

    def package_count(self) -> int:
        return len(self.packages) if self.packages_initialized else 0
