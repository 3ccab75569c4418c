# warmstart/domain/ports/env_reader_port.py
from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional, Protocol, Union, runtime_checkable


@runtime_checkable
class EnvReaderPort(Protocol):
    """Reads an environment snapshot written by the host's ``env`` tooling."""

    def read(self, path: Union[str, Path]) -> Optional[Dict[str, str]]:
        """
        Return the variables stored in ``path``.

        Returns ``None`` when the file does not exist; any other read problem
        is raised to the caller.
        """
        ...
