"""Configuration loading from CLI args, env vars, and optional YAML file."""

import os
import logging
from dataclasses import dataclass, field

import yaml

from replay_logs.parser import LogDialect

logger = logging.getLogger(__name__)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes")


@dataclass(frozen=True)
class Config:
    log_base_path: str = "./request_logs"
    dialect: LogDialect = field(default_factory=LogDialect)
    use_cache: bool = True


class ConfigError(ValueError):
    """Raised when the YAML config does not have the expected shape."""


def load_yaml_config(path: str | None) -> dict:
    """Load dialect overrides from a YAML file. Returns empty dict if no path."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    logger.info("Loaded YAML config from %s", path)
    return data


def load_dialect(yaml_data: dict) -> LogDialect:
    """Build a LogDialect from the optional ``dialect`` YAML section."""
    section = yaml_data.get("dialect") or {}
    if not isinstance(section, dict):
        raise ConfigError(f"'dialect' must be a mapping, got {type(section).__name__}")

    defaults = LogDialect()
    excluded_tokens = section.get("excluded_tokens", defaults.excluded_tokens)
    if not isinstance(excluded_tokens, (list, tuple)) or not all(
        isinstance(token, str) for token in excluded_tokens
    ):
        raise ConfigError("'dialect.excluded_tokens' must be a list of strings")

    return LogDialect(
        method=section.get("method", defaults.method),
        client_tag=section.get("client_tag", defaults.client_tag),
        excluded_tokens=tuple(excluded_tokens),
        excluded_segment=section.get("excluded_segment", defaults.excluded_segment),
    )


def load_config(cli_args, yaml_data: dict) -> Config:
    """Build Config from CLI args, env vars, and parsed YAML data.

    The log directory comes from --log-dir, then REPLAY_LOG_DIR, then the
    default.
    """
    log_base_path = (
        getattr(cli_args, "log_dir", None)
        or os.environ.get("REPLAY_LOG_DIR")
        or Config.log_base_path
    )
    return Config(
        log_base_path=log_base_path,
        dialect=load_dialect(yaml_data),
        use_cache=_parse_bool(os.environ.get("REPLAY_USE_CACHE", "true")),
    )
