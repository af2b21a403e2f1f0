"""Shared utilities for CLI commands."""

from pathlib import Path
from typing import Any

from rich.console import Console

from obsidian_vikunja_sync.config import Config, load_config, set_config
from obsidian_vikunja_sync.obsidian.vault_store import VaultTaskStore
from obsidian_vikunja_sync.utils.logging import configure_logging, get_logger
from obsidian_vikunja_sync.vikunja.client import VikunjaClient

# Shared console for all commands
console = Console()

# Cached across commands of one CLI invocation
_config: Config | None = None
_logger: Any | None = None


def get_config_and_logger(
    config_path: Path | None = None,
    log_level: str = "INFO",
    verbose: bool = False,
) -> tuple[Config, Any]:
    """Load configuration and logger (dependency injection helper).

    Args:
        config_path: Optional path to config file
        log_level: Logging level
        verbose: Show all log messages on terminal (for debugging)

    Returns:
        Tuple of (Config, Logger)
    """
    global _config, _logger

    if _config is None:
        _config = load_config(config_path)
        set_config(_config)

        configure_logging(
            log_level or _config.log_level,
            log_dir=_config.log_dir,
            verbose=verbose,
        )
        _logger = get_logger("cli")

    return _config, _logger


def build_store(config: Config) -> VaultTaskStore:
    return VaultTaskStore(
        config.vault_path,
        task_tag=config.task_tag,
        tasks_folder=config.tasks_folder,
    )


def build_client(config: Config) -> VikunjaClient:
    return VikunjaClient(
        config.vikunja_api_url,
        config.vikunja_api_token,
        timeout=config.vikunja_timeout,
    )
