# pyright: reportAny=false, reportExplicitAny=false
"""Environment settings loading and merging."""

import os
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from timebox.exceptions import SettingsError

from ._models import Settings

ENV_PREFIX: str = "TIMEBOX_"


def deep_merge(
    base: dict[str, Any],
    override: dict[str, Any],
) -> dict[str, Any]:
    """Deep merge two settings dictionaries.

    Merges `override` into `base`, returning a new dictionary. Neither input
    is modified.

    Args:
        base: Base settings (lower precedence).
        override: Override settings (higher precedence).

    Returns:
        Merged settings dictionary.

    Merge rules:
        - Dictionaries are recursively merged
        - Scalars are replaced with override value
        - Missing keys in override preserve base values
    """
    result: dict[str, Any] = dict(base)

    for key, override_val in override.items():
        base_val = result.get(key)
        if isinstance(base_val, dict) and isinstance(override_val, dict):
            result[key] = deep_merge(base_val, override_val)
        else:
            result[key] = override_val

    return result


def set_nested_key(data: dict[str, Any], path: str, value: Any) -> None:
    """Set a value at a dotted path, creating intermediate tables.

    Args:
        data: Dictionary to modify in place.
        path: Dotted key path such as ``logging.level``.
        value: Value to store.
    """
    *parents, leaf = path.split(".")
    current = data
    for part in parents:
        child = current.get(part)
        if not isinstance(child, dict):
            child = {}
            current[part] = child
        current = child
    current[leaf] = value


def parse_env_vars(
    environ: Mapping[str, str] | None = None,
    prefix: str = ENV_PREFIX,
) -> dict[str, Any]:
    """Parse environment variables into a settings dictionary.

    Args:
        environ: Environment mapping (defaults to ``os.environ``).
        prefix: Environment variable prefix (default: "TIMEBOX_").

    Returns:
        Dictionary of raw string values with nested structure.

    Environment variable naming:
        - Add prefix (TIMEBOX_)
        - Convert to uppercase
        - Replace dots with double underscores
        - Example: logging.level -> TIMEBOX_LOGGING__LEVEL
    """
    source = os.environ if environ is None else environ
    result: dict[str, Any] = {}

    for key, value in source.items():
        if not key.startswith(prefix):
            continue

        config_key = key[len(prefix) :]
        if not config_key or "__" not in config_key:
            # Flat variables such as TIMEBOX_DEBUG are switches, not settings
            continue

        config_path = config_key.replace("__", ".").lower()
        set_nested_key(result, config_path, value)

    return result


def load_settings(
    environ: Mapping[str, str] | None = None,
    overrides: dict[str, Any] | None = None,
) -> Settings:
    """Build validated settings from the environment and explicit overrides.

    Args:
        environ: Environment mapping (defaults to ``os.environ``).
        overrides: Highest-precedence values, e.g. from the command line.

    Returns:
        Validated, frozen settings.

    Raises:
        SettingsError: If a value fails validation.
    """
    values = parse_env_vars(environ)
    if overrides:
        values = deep_merge(values, overrides)

    try:
        return Settings.model_validate(values)
    except ValidationError as e:
        first = e.errors()[0]
        key = ".".join(str(part) for part in first["loc"])
        env_name = ENV_PREFIX + key.upper().replace(".", "__")
        msg = f"invalid setting {env_name}: {first['msg']}"
        raise SettingsError(msg, key=key) from e
