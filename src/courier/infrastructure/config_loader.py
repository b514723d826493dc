"""
Configuration file loading.

Resolves the configuration path, reads YAML, expands ``${ENV_VAR}``
references in string values and validates the result against
``CourierConfig``.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError

from courier.core.domain.config_schema import CourierConfig
from courier.core.domain.errors import ConfigError

logger = structlog.get_logger(__name__)

CONFIG_ENV_VAR = "COURIER_CONFIG"
DEFAULT_CONFIG_PATH = Path(".courier") / "config.yaml"

_ENV_REF_RE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def resolve_config_path(path: str | Path | None = None) -> tuple[Path, bool]:
    """Return the config path and whether it was requested explicitly."""
    if path:
        return Path(path), True
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path), True
    return DEFAULT_CONFIG_PATH, False


def expand_env_refs(value: Any) -> Any:
    """Recursively replace ``${NAME}`` with the environment value (or '')."""
    if isinstance(value, str):
        return _ENV_REF_RE.sub(lambda match: os.getenv(match.group(1), ""), value)
    if isinstance(value, dict):
        return {key: expand_env_refs(item) for key, item in value.items()}
    if isinstance(value, list):
        return [expand_env_refs(item) for item in value]
    return value


def parse_config(data: dict[str, Any] | None, *, source: str = "<memory>") -> CourierConfig:
    """Validate raw configuration data.

    Raises:
        ConfigError: If the data does not match the schema.
    """
    try:
        return CourierConfig.model_validate(expand_env_refs(data or {}))
    except ValidationError as exc:
        errors = [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        ]
        raise ConfigError(
            f"Invalid configuration in {source}: " + "; ".join(errors),
            details={"source": source, "errors": errors},
        ) from exc


def load_config(path: str | Path | None = None) -> CourierConfig:
    """Load the Courier configuration.

    Args:
        path: Explicit config file. Falls back to ``$COURIER_CONFIG`` and
            then ``.courier/config.yaml``.

    Returns:
        Validated configuration. A missing default file yields the defaults.

    Raises:
        ConfigError: If an explicitly requested file is missing, is not a
            YAML mapping, or fails validation.
    """
    config_path, explicit = resolve_config_path(path)
    if not config_path.exists():
        if explicit:
            raise ConfigError(
                f"Config file not found: {config_path}",
                details={"path": str(config_path)},
            )
        logger.debug("config.default_missing", path=str(config_path))
        return CourierConfig()

    try:
        with open(config_path, encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except yaml.YAMLError as exc:
        raise ConfigError(
            f"Invalid YAML in {config_path}: {exc}",
            details={"path": str(config_path)},
        ) from exc

    if data is not None and not isinstance(data, dict):
        raise ConfigError(
            f"Config file {config_path} must contain a mapping",
            details={"path": str(config_path)},
        )

    config = parse_config(data, source=str(config_path))
    logger.debug(
        "config.loaded",
        path=str(config_path),
        providers=config.enabled_providers(),
    )
    return config
