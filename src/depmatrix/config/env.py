"""Environment variable loaders for configuration."""

from __future__ import annotations

import os

from .errors import ConfigurationError


def optional_env_var(name: str) -> str | None:
    """Return the stripped value of ``name`` or ``None`` when unset/blank."""

    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def float_env_var(name: str, default: float) -> float:
    value = optional_env_var(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {value!r}", variable=name) from exc


def list_env_var(name: str) -> tuple[str, ...] | None:
    """Parse a comma-separated variable into a tuple of non-blank items."""

    value = optional_env_var(name)
    if value is None:
        return None
    return tuple(item.strip() for item in value.split(",") if item.strip())


def mapping_env_var(name: str) -> dict[str, float] | None:
    """Parse ``KEY=1.0,OTHER=0.5`` into a mapping of floats."""

    items = list_env_var(name)
    if items is None:
        return None
    result: dict[str, float] = {}
    for item in items:
        key, separator, raw_value = item.partition("=")
        if not separator or not key.strip():
            raise ConfigurationError(
                f"{name} entries must look like KEY=VALUE, got {item!r}", variable=name
            )
        try:
            result[key.strip().upper()] = float(raw_value)
        except ValueError as exc:
            raise ConfigurationError(
                f"{name} value for {key.strip()} must be a number, got {raw_value!r}",
                variable=name,
            ) from exc
    return result
