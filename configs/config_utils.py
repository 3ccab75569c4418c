import copy
import logging
from typing import Any, Dict

logger = logging.getLogger(__name__)


def _short(value: Any, limit: int = 80) -> str:
    text = str(value)
    return text if len(text) <= limit else text[:limit] + '...'


class ConfigMerger:
    @staticmethod
    def merge(
        base: Dict[str, Any],
        override: Dict[str, Any],
        context_description: str = 'ConfigMerge',
        strict_keys: bool = False,
    ) -> Dict[str, Any]:
        """
        Merge ``override`` into a copy of ``base``.

        - Nested dictionaries are merged recursively.
        - Any other override value replaces the base value.
        - With ``strict_keys`` an override key missing from ``base`` raises ValueError.
        """
        if not isinstance(base, dict):
            logger.error(
                '[%s] Base for merge is not a dictionary (type: %s). Returning override if dict, else empty.',
                context_description, type(base).__name__,
            )
            return copy.deepcopy(override) if isinstance(override, dict) else {}

        if not isinstance(override, dict):
            logger.warning(
                '[%s] Override for merge is not a dictionary (type: %s). Returning base.',
                context_description, type(override).__name__,
            )
            return copy.deepcopy(base)

        merged = copy.deepcopy(base)
        for key, override_value in override.items():
            if key not in merged:
                if strict_keys:
                    raise ValueError(f"[{context_description}] Strict mode: key '{key}' not found in base.")
                merged[key] = copy.deepcopy(override_value)
                logger.debug("[%s] Added key '%s': %s", context_description, key, _short(override_value))
            elif isinstance(merged[key], dict) and isinstance(override_value, dict):
                merged[key] = ConfigMerger.merge(
                    merged[key],
                    override_value,
                    context_description=f'{context_description} -> {key}',
                    strict_keys=strict_keys,
                )
            elif merged[key] != override_value:
                logger.debug(
                    "[%s] Overridden key '%s'. Old: %s, New: %s",
                    context_description, key, _short(merged[key]), _short(override_value),
                )
                merged[key] = copy.deepcopy(override_value)
        return merged
