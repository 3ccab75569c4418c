# warmstart/domain/ports/module_system_port.py
"""
Interface to the module-configuration subsystem.

Bootstrap only sequences these calls; what a module is, where its
configuration lives and how packages get installed is up to the
implementation.
"""
from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ModuleSystemPort(Protocol):

    def load_configuration(self) -> None:
        """Load the module-configuration subsystem itself (not the modules)."""
        ...

    def initialize_packages(self) -> None:
        """Set up the package manager. Called lazily, the first time it is needed."""
        ...

    def init_modules(self, force: bool = False) -> None:
        """Initialize enabled modules; ``force`` re-runs initialization."""
        ...

    def module_count(self) -> int:
        ...

    def package_count(self) -> int:
        ...
