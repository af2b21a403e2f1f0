"""CLI command modules for obsidian-vikunja-sync.

- shared.py: Common utilities (config/logger loading, console, service builders)
- sync_handler.py: check, push, pull, run and status implementations
- core_commands.py: Typer registration of those commands
"""

from .shared import console, get_config_and_logger
from .sync_handler import run_check, run_daemon, run_pull, run_push, run_status

__all__ = [
    "console",
    "get_config_and_logger",
    "run_check",
    "run_daemon",
    "run_pull",
    "run_push",
    "run_status",
]
