# warmstart/infrastructure/autoloads/autoload_registry.py
"""
The precompiled autoloads artifact.

``warmstart sync`` (or any tool producing the same format) writes a YAML file
listing deferred definitions, i.e. names that resolve to ``module:attribute``
targets only when first used, plus hook registrations, modules to import
while the artifact loads, and modules to queue for incremental loading.

    version: 1
    definitions:
      org-capture: "org_tools.capture:capture"
    hooks:
      first-file-hook: ["project_tools.vcs:detect_vcs"]
    preload: ["warmstart_extras.keys"]
    deferred: ["org_tools.macs", "org_tools.faces"]
"""
from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Final, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

AUTOLOADS_FORMAT_VERSION: Final[int] = 1


class AutoloadFormatError(ValueError):
    """The artifact exists but its contents cannot be evaluated."""

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path


def _check_target(value: str) -> str:
    module, sep, attribute = value.partition(':')
    if not sep or not module or not attribute:
        raise ValueError(f"'{value}' must look like 'package.module:attribute'")
    return value


class AutoloadManifest(BaseModel):
    model_config = ConfigDict(extra='forbid')

    version: int = Field(AUTOLOADS_FORMAT_VERSION, description='Artifact format version.')
    definitions: Dict[str, str] = Field(default_factory=dict, description='Name -> "module:attribute" resolved on first use.')
    hooks: Dict[str, List[str]] = Field(default_factory=dict, description='Callback list -> callables to register on it.')
    preload: List[str] = Field(default_factory=list, description='Modules imported while the artifact loads.')
    deferred: List[str] = Field(default_factory=list, description='Modules queued for incremental loading.')

    @field_validator('version')
    @classmethod
    def _supported_version(cls, v: int) -> int:
        if v != AUTOLOADS_FORMAT_VERSION:
            raise ValueError(f'unsupported autoloads format version {v} (expected {AUTOLOADS_FORMAT_VERSION})')
        return v

    @field_validator('definitions')
    @classmethod
    def _valid_definitions(cls, v: Dict[str, str]) -> Dict[str, str]:
        for target in v.values():
            _check_target(target)
        return v

    @field_validator('hooks')
    @classmethod
    def _valid_hooks(cls, v: Dict[str, List[str]]) -> Dict[str, List[str]]:
        for targets in v.values():
            for target in targets:
                _check_target(target)
        return v


def resolve_target(target: str) -> Any:
    module_name, _, attribute = target.partition(':')
    module = importlib.import_module(module_name)
    obj: Any = module
    for part in attribute.split('.'):
        obj = getattr(obj, part)
    return obj


class AutoloadRegistry:
    """Loaded artifact; definitions are imported the first time they are looked up."""

    def __init__(self, manifest: AutoloadManifest, path: Optional[Path] = None) -> None:
        self.manifest = manifest
        self.path = path
        self._resolved: Dict[str, Any] = {}

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'AutoloadRegistry':
        """
        Load and evaluate the artifact.

        Raises ``FileNotFoundError`` when it was never generated and
        ``AutoloadFormatError`` when it exists but does not load.
        """
        path = Path(path)
        try:
            text = path.read_text(encoding='utf-8')
        except UnicodeDecodeError as exc:
            raise AutoloadFormatError(f'Autoloads file {path} is not valid UTF-8: {exc}', path) from exc
        try:
            data = yaml.safe_load(text) or {}
            if not isinstance(data, dict):
                raise AutoloadFormatError(f'{path} does not contain a top-level mapping', path)
            bad_keys = [key for key in data if not isinstance(key, str)]
            if bad_keys:
                raise AutoloadFormatError(f'{path} has non-string top-level keys: {bad_keys}', path)
            manifest = AutoloadManifest.model_validate(data)
        except (yaml.YAMLError, ValidationError) as exc:
            raise AutoloadFormatError(f'Invalid autoloads file {path}: {exc}', path) from exc

        registry = cls(manifest, path)
        for module_name in manifest.preload:
            try:
                importlib.import_module(module_name)
            except Exception as exc:
                raise AutoloadFormatError(f"Preloading '{module_name}' from {path} failed: {exc}", path) from exc
        logger.debug(
            'Loaded autoloads from %s (%d definitions, %d hook lists)',
            path, len(manifest.definitions), len(manifest.hooks),
        )
        return registry

    def __contains__(self, name: object) -> bool:
        return name in self.manifest.definitions

    def names(self) -> List[str]:
        return sorted(self.manifest.definitions)

    def is_resolved(self, name: str) -> bool:
        return name in self._resolved

    def resolve(self, name: str) -> Any:
        if name in self._resolved:
            return self._resolved[name]
        try:
            target = self.manifest.definitions[name]
        except KeyError:
            raise KeyError(f"No autoload definition named '{name}'") from None
        obj = resolve_target(target)
        self._resolved[name] = obj
        logger.debug("Autoloaded '%s' from %s", name, target)
        return obj

    def hook_callbacks(self) -> Dict[str, List[Callable[..., Any]]]:
        """Lazy callables for the ``hooks`` section; each imports its target when first called."""
        return {
            hook_name: [_LazyCallback(target) for target in targets]
            for hook_name, targets in self.manifest.hooks.items()
        }


class _LazyCallback:

    def __init__(self, target: str) -> None:
        self.target = target
        self.__qualname__ = target

    def __call__(self, *args: Any) -> Any:
        return resolve_target(self.target)(*args)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, _LazyCallback) and other.target == self.target

    def __hash__(self) -> int:
        return hash(self.target)

    def __repr__(self) -> str:
        return f'<autoload {self.target}>'
