"""Converter configuration.

Configuration precedence (highest to lowest):
1. Environment variables (TMPLCONV_*)
2. YAML config file (`converter:` section)
3. Default values

Example tmplconv.yml:
    converter:
      render_timeout_seconds: 30
      max_output_bytes: 1000000
      jsonnet_max_stack: 500
      database_path: /var/lib/tmplconv/templates.sqlite3
      log_level: INFO

Usage:
    config = load_config("tmplconv.yml")
    converter = TemplateConverter(store, config=config)
"""

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping

import yaml

from tmplconv.core.errors import ConfigError

logger = logging.getLogger(__name__)

ENV_PREFIX = "TMPLCONV_"
CONFIG_PATH_ENV = "TMPLCONV_CONFIG"
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class ConverterConfig:
    """Converter configuration.

    Attributes:
        render_timeout_seconds: Deadline for one Starlark or Jsonnet evaluation
        max_output_bytes: Maximum rendered script output size (0 = unlimited)
        jsonnet_max_stack: Jsonnet VM maximum stack depth
        jsonnet_max_trace: Jsonnet stack trace lines shown on error
        database_path: SQLite template store used by the command line
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    render_timeout_seconds: float = 60.0
    max_output_bytes: int = 1_000_000
    jsonnet_max_stack: int = 500
    jsonnet_max_trace: int = 20
    database_path: str = "tmplconv.sqlite3"
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.render_timeout_seconds <= 0:
            msg = f"render_timeout_seconds must be > 0, got {self.render_timeout_seconds}"
            raise ConfigError(msg)

        if self.max_output_bytes < 0:
            msg = f"max_output_bytes must be >= 0, got {self.max_output_bytes}"
            raise ConfigError(msg)

        if self.jsonnet_max_stack <= 0:
            msg = f"jsonnet_max_stack must be > 0, got {self.jsonnet_max_stack}"
            raise ConfigError(msg)

        if self.jsonnet_max_trace < 0:
            msg = f"jsonnet_max_trace must be >= 0, got {self.jsonnet_max_trace}"
            raise ConfigError(msg)

        if not self.database_path:
            raise ConfigError("database_path must not be empty")

        # Normalize log level (use object.__setattr__ for frozen dataclass)
        level = self.log_level.upper()
        if level not in VALID_LOG_LEVELS:
            msg = f"log_level must be one of {list(VALID_LOG_LEVELS)}, got '{self.log_level}'"
            raise ConfigError(msg)
        object.__setattr__(self, "log_level", level)


def _read_file_section(config_path: Path) -> dict[str, Any]:
    """Read the `converter:` section of a YAML config file."""
    try:
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}
    except OSError as e:
        msg = f"Cannot read config file {config_path}: {e}"
        raise ConfigError(msg, {"path": str(config_path)}) from e
    except yaml.YAMLError as e:
        msg = f"Invalid YAML in config file {config_path}: {e}"
        raise ConfigError(msg, {"path": str(config_path)}) from e

    if not isinstance(raw, dict):
        msg = f"Config file {config_path} must contain a mapping"
        raise ConfigError(msg, {"path": str(config_path)})

    section = raw.get("converter") or {}
    if not isinstance(section, dict):
        msg = f"'converter' section in {config_path} must be a mapping"
        raise ConfigError(msg, {"path": str(config_path)})
    return section


def _parse_env_value(raw_value: str, target: type) -> Any:
    """Convert an environment string to the type of the config field."""
    if target is int:
        return int(raw_value)
    if target is float:
        return float(raw_value)
    return raw_value


def load_config(
    config_path: str | Path | None = None, env: Mapping[str, str] | None = None
) -> ConverterConfig:
    """Load converter configuration from file and environment.

    Args:
        config_path: Optional YAML config file. Defaults to $TMPLCONV_CONFIG
        env: Environment mapping (defaults to os.environ)

    Returns:
        Validated ConverterConfig

    Raises:
        ConfigError: If the file is unreadable or a value is invalid
    """
    env = os.environ if env is None else env

    if config_path is None and env.get(CONFIG_PATH_ENV):
        config_path = env[CONFIG_PATH_ENV]

    values: dict[str, Any] = {}
    if config_path is not None:
        values.update(_read_file_section(Path(config_path)))
        logger.debug("Loaded converter config from %s", config_path)

    known = {f.name: f.type for f in fields(ConverterConfig)}
    unknown = sorted(set(values) - set(known))
    if unknown:
        msg = f"Unknown converter config keys: {', '.join(unknown)}"
        raise ConfigError(msg, {"keys": unknown})

    for name, field_type in known.items():
        env_key = f"{ENV_PREFIX}{name.upper()}"
        if env_key not in env:
            continue
        try:
            values[name] = _parse_env_value(env[env_key], field_type)
        except ValueError as e:
            msg = f"Invalid {env_key} value: expected {field_type.__name__}, got '{env[env_key]}'"
            raise ConfigError(msg, {"variable": env_key}) from e

    try:
        return ConverterConfig(**values)
    except (TypeError, AttributeError) as e:
        # YAML values of the wrong shape reach the dataclass unchanged
        raise ConfigError(f"Invalid converter config: {e}") from e
