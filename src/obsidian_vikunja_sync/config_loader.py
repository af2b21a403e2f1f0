"""Config loader utilities (split from config.py)."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

from .config_settings import Config
from .exceptions import ConfigurationError
from .utils.logging import get_logger

_config: Config | None = None


def _find_config_file(config_path: Path | None) -> Path | None:
    logger = get_logger(__name__)

    candidate_paths: list[Path] = []
    if config_path:
        candidate_paths.append(config_path.expanduser())
    else:
        env_path = os.getenv("OBSIDIAN_VIKUNJA_CONFIG")
        if env_path:
            candidate_paths.append(Path(env_path).expanduser())
        candidate_paths.append(Path.cwd() / "config.yaml")

    for candidate in candidate_paths:
        if candidate.exists():
            logger.info("config_file_found", config_path=str(candidate))
            return candidate

    logger.debug("config_file_not_found", searched_paths=[str(p) for p in candidate_paths])
    return None


def load_config(config_path: Path | None = None, *, strict_config: bool = True) -> Config:
    """Load configuration from .env, environment and config.yaml.

    Values from config.yaml take precedence over environment variables.

    Args:
        config_path: Explicit config.yaml path
        strict_config: Raise on validation failure instead of logging a warning
    """
    logger = get_logger(__name__)

    resolved_config_path = _find_config_file(config_path)

    yaml_data: dict[str, Any] = {}
    if resolved_config_path:
        try:
            with open(resolved_config_path, encoding="utf-8") as f:
                yaml_data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.error(
                "config_yaml_load_error",
                config_path=str(resolved_config_path),
                error=str(e),
                error_type=type(e).__name__,
            )
            msg = f"Failed to parse config file: {resolved_config_path}"
            raise ConfigurationError(
                msg,
                suggestion=(
                    "Check YAML syntax (indentation, colons, quotes). "
                    f"Original error: {e}"
                ),
            ) from e

        if not isinstance(yaml_data, dict):
            msg = f"Config file must contain a mapping: {resolved_config_path}"
            raise ConfigurationError(msg)

    try:
        config = Config(**yaml_data)
    except Exception as e:
        logger.error(
            "config_validation_error",
            error=str(e),
            error_type=type(e).__name__,
            config_path=str(resolved_config_path) if resolved_config_path else None,
        )
        raise

    try:
        config.validate_config()
    except ConfigurationError as e:
        if strict_config:
            logger.error("config_validation_failed", error=str(e))
            raise
        logger.warning("config_warning", error=str(e))

    logger.info(
        "config_loaded",
        vault_path=str(config.vault_path),
        vikunja_enabled=config.vikunja_enabled,
        two_way=config.enable_two_way_sync,
    )
    return config


def get_config() -> Config:
    """Get singleton config instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: Config) -> None:
    """Set singleton config instance (for testing)."""
    global _config
    _config = config


def reset_config() -> None:
    """Reset global config instance (for testing only)."""
    global _config
    _config = None


__all__ = ["Config", "get_config", "load_config", "reset_config", "set_config"]
