"""Core CLI commands: check, push, pull, run, status."""

from __future__ import annotations

import asyncio
import time
from pathlib import Path
from typing import Annotated

import typer

from .shared import get_config_and_logger
from .sync_handler import run_check, run_daemon, run_pull, run_push, run_status

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", help="Path to config.yaml", exists=True),
]
LogLevelOption = Annotated[
    str,
    typer.Option("--log-level", help="Log level (DEBUG, INFO, WARN, ERROR)"),
]
VerboseOption = Annotated[
    bool,
    typer.Option(
        "--verbose",
        "-v",
        help="Show all log messages on terminal (for debugging)",
    ),
]


def register(app: typer.Typer) -> None:
    """Register core commands on the given Typer app."""

    @app.command()
    def check(
        config_path: ConfigOption = None,
        log_level: LogLevelOption = "INFO",
    ) -> None:
        """Check the vault, configuration and Vikunja connectivity."""
        config, logger = get_config_and_logger(config_path, log_level)
        if not asyncio.run(run_check(config, logger)):
            raise typer.Exit(code=1)

    @app.command()
    def push(
        path: Annotated[str, typer.Argument(help="Vault-relative path of the task note")],
        config_path: ConfigOption = None,
        log_level: LogLevelOption = "INFO",
        verbose: VerboseOption = False,
    ) -> None:
        """Push one task note to Vikunja now."""
        config, logger = get_config_and_logger(config_path, log_level, verbose=verbose)
        asyncio.run(run_push(config, logger, path))

    @app.command()
    def pull(
        config_path: ConfigOption = None,
        log_level: LogLevelOption = "INFO",
        verbose: VerboseOption = False,
    ) -> None:
        """Run one pull cycle from Vikunja."""
        start_time = time.time()
        config, logger = get_config_and_logger(config_path, log_level, verbose=verbose)

        logger.info("cli_command_started", command="pull")
        try:
            asyncio.run(run_pull(config, logger))
        except typer.Exit:
            raise
        except Exception as exc:
            logger.error(
                "cli_command_failed",
                command="pull",
                duration=round(time.time() - start_time, 2),
                error=str(exc),
                error_type=type(exc).__name__,
                exc_info=True,
            )
            raise
        logger.info(
            "cli_command_completed",
            command="pull",
            duration=round(time.time() - start_time, 2),
        )

    @app.command()
    def run(
        config_path: ConfigOption = None,
        log_level: LogLevelOption = "INFO",
        verbose: VerboseOption = False,
    ) -> None:
        """Watch the vault and keep it in sync with Vikunja until interrupted."""
        config, logger = get_config_and_logger(config_path, log_level, verbose=verbose)
        try:
            asyncio.run(run_daemon(config, logger))
        except KeyboardInterrupt:
            logger.info("cli_interrupted", command="run")

    @app.command()
    def status(
        config_path: ConfigOption = None,
        log_level: LogLevelOption = "INFO",
    ) -> None:
        """Show how many task notes are linked to Vikunja."""
        config, logger = get_config_and_logger(config_path, log_level)
        asyncio.run(run_status(config, logger))
