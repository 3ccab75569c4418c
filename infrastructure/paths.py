# warmstart/infrastructure/paths.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Mapping, Optional

if TYPE_CHECKING:
    from bootstrap.config.startup_settings import StartupSettings

logger = logging.getLogger(__name__)

APP_NAME = 'warmstart'


@dataclass(frozen=True)
class PathResolver:
    """Directories and files bootstrap needs. Resolved once, at construction."""
    local_dir: Path
    cache_dir: Path
    config_dir: Path
    autoloads_file: Path
    env_file: Path

    @classmethod
    def from_settings(cls, settings: 'StartupSettings', environ: Optional[Mapping[str, str]] = None) -> 'PathResolver':
        env = os.environ if environ is None else environ
        home = Path(env.get('HOME') or Path.home())

        def _pick(explicit: Optional[str], env_var: str, default: Path) -> Path:
            value = explicit or env.get(env_var)
            return Path(value).expanduser() if value else default

        data_home = Path(env.get('XDG_DATA_HOME') or home / '.local' / 'share')
        config_home = Path(env.get('XDG_CONFIG_HOME') or home / '.config')

        local_dir = _pick(settings.local_dir, 'WARMSTART_LOCAL_DIR', data_home / APP_NAME)
        resolver = cls(
            local_dir=local_dir,
            cache_dir=_pick(settings.cache_dir, 'WARMSTART_CACHE_DIR', local_dir / 'cache'),
            config_dir=_pick(settings.config_dir, 'WARMSTART_DIR', config_home / APP_NAME),
            autoloads_file=_pick(settings.autoloads_file, 'WARMSTART_AUTOLOADS_FILE', local_dir / 'autoloads.yaml'),
            env_file=_pick(settings.env_file, 'WARMSTART_ENV_FILE', local_dir / 'env'),
        )
        logger.debug('Resolved paths: %s', resolver)
        return resolver
