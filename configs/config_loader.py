from __future__ import annotations
import copy
import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Final, Mapping, Optional, Sequence
import yaml

from configs.config_utils import ConfigMerger

__all__: Sequence[str] = ('ConfigLoader', 'DEFAULT_CONFIG')
logger = logging.getLogger(__name__)

_ENV_DEFAULT: Final[str] = 'default'
_GLOBAL_CONFIG_FILE: Final[str] = 'global_app_config.yaml'

DEFAULT_CONFIG: Dict[str, Any] = {
    'env': _ENV_DEFAULT,
    'startup': {
        'host_context': 'terminal',
        'first_idle_delay': 2.0,
        'idle_delay': 0.75,
        'load_immediately': False,
        'incremental_tasks': [],
        'verbose': False,
        'strict_mode': False,
    },
}

_RE_ENV_DEFAULT: Final[re.Pattern[str]] = re.compile('\\$\\{([A-Za-z_][A-Za-z0-9_]*):?-(.*?)\\}')


def _interpolate_env(value: str) -> str:
    if not isinstance(value, str):
        return value

    def _repl(match: re.Match[str]) -> str:
        var, default = (match.group(1), match.group(2))
        return os.getenv(var) or default

    before = value
    value = _RE_ENV_DEFAULT.sub(_repl, value)
    value = os.path.expandvars(value)

    if before != value:
        logger.debug("Env expand: '%s' -> '%s'", before, value)
    elif '${' in before and ':-' not in before:
        logger.warning("Unresolved env var in '%s'", before)

    return value


def _expand_tree(node: Any) -> Any:
    if isinstance(node, dict):
        return {k: _expand_tree(v) for k, v in node.items()}
    if isinstance(node, list):
        return [_expand_tree(v) for v in node]
    if isinstance(node, str):
        return _interpolate_env(node)
    return node


def _load_yaml(path: Path, strict: bool = False) -> Dict[str, Any]:
    """Read one layer. With ``strict`` an unreadable or malformed file raises ValueError instead of counting as empty."""
    try:
        text = path.read_text(encoding='utf-8')
        if path.suffix.lower() == '.json':
            return json.loads(text) or {}

        data = yaml.safe_load(text) or {}
        if not isinstance(data, dict):
            if strict:
                raise ValueError(f"{path} does not contain a top-level mapping")
            logger.warning('%s does not contain a top-level mapping - ignored', path)
            return {}
        return data

    except FileNotFoundError as exc:
        if strict:
            raise ValueError(f"Config file not found: {path}") from exc
        logger.debug('Config file not found: %s', path)
        return {}
    except ValueError:
        if strict:
            raise
        logger.error('Failed to read %s', path, exc_info=True)
        return {}
    except Exception as exc:
        if strict:
            raise ValueError(f"Failed to read config file {path}: {exc}") from exc
        logger.error('Failed to read %s: %s', path, exc, exc_info=True)
        return {}


class ConfigLoader:
    """
    Layered configuration: built-in defaults, ``configs/default``, ``configs/<env>``,
    extra files, then a mapping supplied by the caller. ``${VAR:-default}``
    references are expanded once all layers are merged.
    """

    def __init__(self, package_root: Optional[Path] = None) -> None:
        self._package_root: Path = package_root if package_root is not None else Path(__file__).resolve().parents[1]

    def load_global_config(
        self,
        env: Optional[str] = None,
        provided_config: Optional[Mapping[str, Any]] = None,
        extra_paths: Sequence[Path] = (),
    ) -> Dict[str, Any]:
        env = env or _ENV_DEFAULT
        logger.debug('Loading global configuration for env=%s', env)
        cfg: Dict[str, Any] = copy.deepcopy(DEFAULT_CONFIG)
        cfg['env'] = env

        layers = [('DEFAULT_GLOBAL_APP_CONFIG', self._package_root / 'configs' / 'default' / _GLOBAL_CONFIG_FILE, False)]
        if env != _ENV_DEFAULT:
            layers.append((f'ENV_GLOBAL_APP_CONFIG ({env})', self._package_root / 'configs' / env / _GLOBAL_CONFIG_FILE, False))
        # Files named by the caller must exist and parse.
        layers.extend((f'EXTRA_CONFIG ({p})', Path(p), True) for p in extra_paths)

        for label, path, strict in layers:
            data = _load_yaml(path, strict=strict)
            if data:
                cfg = ConfigMerger.merge(cfg, data, label)
                logger.debug('Merged %s: %s', label, path)
            elif not label.startswith('DEFAULT'):
                logger.warning('%s not found or empty: %s', label, path)

        if provided_config:
            cfg = ConfigMerger.merge(cfg, dict(provided_config), 'PROVIDED_CONFIG')

        cfg = _expand_tree(cfg)
        self._validate_required_config(cfg, env)
        logger.debug('Resolved global config keys: %s', list(cfg))
        return cfg

    def _validate_required_config(self, cfg: Mapping[str, Any], env: str) -> None:
        startup = cfg.get('startup')
        if not isinstance(startup, dict):
            raise ValueError(f"'startup' section must be a mapping for env='{env}', got {type(startup).__name__}")
