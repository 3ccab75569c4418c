# warmstart/infrastructure/environment/envvar_file.py
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, Final, Optional, Union

from domain.ports.env_reader_port import EnvReaderPort

logger = logging.getLogger(__name__)

_RE_ASSIGNMENT: Final[re.Pattern[str]] = re.compile(r'^(?:export\s+)?([A-Za-z_][A-Za-z0-9_]*)=(.*)$')


class EnvvarFileReader(EnvReaderPort):
    """
    Reads a ``KEY=VALUE`` environment snapshot.

    Blank lines and ``#`` comments are ignored, an ``export`` prefix is
    allowed, and one level of matching single or double quotes around the
    value is stripped. Lines that are not assignments are logged and skipped.
    """

    def read(self, path: Union[str, Path]) -> Optional[Dict[str, str]]:
        path = Path(path).expanduser()
        try:
            text = path.read_text(encoding='utf-8')
        except FileNotFoundError:
            logger.debug('Envvar file not found: %s', path)
            return None

        variables: Dict[str, str] = {}
        for lineno, raw in enumerate(text.splitlines(), 1):
            line = raw.strip()
            if not line or line.startswith('#'):
                continue
            match = _RE_ASSIGNMENT.match(line)
            if not match:
                logger.warning('%s:%d is not a KEY=VALUE assignment, ignored', path, lineno)
                continue
            key, value = match.group(1), match.group(2)
            if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
                value = value[1:-1]
            variables[key] = value
        logger.debug('Read %d variables from %s', len(variables), path)
        return variables
