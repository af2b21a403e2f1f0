"""Implementation of the sync CLI commands."""

from __future__ import annotations

import asyncio
import signal
from typing import Any

import typer
from rich.table import Table

from obsidian_vikunja_sync.config import Config
from obsidian_vikunja_sync.obsidian.vault_watcher import VaultWatcher
from obsidian_vikunja_sync.sync.coordinator import SyncCoordinator
from obsidian_vikunja_sync.sync.push_pipeline import PushOutcome

from .shared import build_client, build_store, console


def _require_enabled(config: Config) -> None:
    if not config.vikunja_enabled:
        console.print(
            "[red]Vikunja sync is disabled.[/red] Set VIKUNJA_ENABLED=true or "
            "vikunja_enabled: true in config.yaml."
        )
        raise typer.Exit(code=1)


async def run_check(config: Config, logger: Any) -> bool:
    """Check vault, configuration and Vikunja connectivity.

    Returns:
        True if every check passed
    """
    logger.info("check_started")
    store = build_store(config)
    results: list[tuple[str, str, str]] = []

    paths = await store.list_task_paths()
    results.append(("PASS", "Vault", f"{len(paths)} task notes in {config.vault_path}"))

    if config.default_project_id is None:
        results.append(
            ("WARN", "Default project", "not set; new tasks will not be created in Vikunja")
        )
    else:
        results.append(("PASS", "Default project", f"#{config.default_project_id}"))

    if not config.vikunja_api_url or not config.vikunja_api_token:
        results.append(("FAIL", "Vikunja", "API URL or token missing"))
    else:
        async with build_client(config) as client:
            ok = await client.validate_connection()
        results.append(
            ("PASS", "Vikunja", f"connected to {config.vikunja_api_url}")
            if ok
            else ("FAIL", "Vikunja", f"cannot authenticate against {config.vikunja_api_url}")
        )

    colors = {"PASS": "green", "WARN": "yellow", "FAIL": "red"}
    for status, name, message in results:
        console.print(f"[{colors[status]}]{status}[/{colors[status]}] [bold]{name}[/bold]: {message}")

    passed = all(status != "FAIL" for status, _, _ in results)
    logger.info("check_completed", passed=passed)
    return passed


async def run_push(config: Config, logger: Any, path: str) -> PushOutcome:
    _require_enabled(config)
    store = build_store(config)
    async with build_client(config) as client:
        coordinator = SyncCoordinator(config, store, client)
        outcome = await coordinator.push_now(path)
    logger.debug("push_command_finished", path=path, outcome=outcome.value)
    console.print(f"{path}: [bold]{outcome.value}[/bold]")
    return outcome


async def run_pull(config: Config, logger: Any) -> None:
    _require_enabled(config)
    store = build_store(config)
    async with build_client(config) as client:
        coordinator = SyncCoordinator(config, store, client)
        summary = await coordinator.pull_now()

    if summary is None:
        console.print("[yellow]Pull did not run; see the log for details.[/yellow]")
        raise typer.Exit(code=1)

    table = Table(title="Pull summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", justify="right")
    for name, value in vars(summary).items():
        table.add_row(name, str(value))
    console.print(table)


async def run_daemon(config: Config, logger: Any) -> None:
    """Run the coordinator with the vault watcher until interrupted."""
    _require_enabled(config)
    store = build_store(config)
    stop_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except (NotImplementedError, RuntimeError):
            logger.debug("signal_handler_unavailable", signal=sig.name)

    async with build_client(config) as client:
        if not await client.validate_connection():
            console.print("[yellow]Vikunja is not reachable; failed calls will be logged.[/yellow]")

        coordinator = SyncCoordinator(config, store, client)
        watcher = VaultWatcher(store, interval=config.watch_interval_seconds)
        coordinator.start()
        watcher.start()
        console.print("[green]Sync running.[/green] Press Ctrl+C to stop.")
        try:
            await stop_event.wait()
        finally:
            stats = coordinator.stats()
            await watcher.stop()
            await coordinator.stop()
            logger.debug("sync_final_stats", **stats)


async def run_status(config: Config, logger: Any) -> None:
    store = build_store(config)
    linked = unlinked = ignored = 0
    for path in await store.list_task_paths():
        task = await store.get_task(path)
        if task is None:
            continue
        if task.ignore:
            ignored += 1
        elif task.is_linked:
            linked += 1
        else:
            unlinked += 1

    table = Table(title="Task notes")
    table.add_column("State", style="cyan")
    table.add_column("Count", justify="right")
    table.add_row("linked", str(linked))
    table.add_row("unlinked", str(unlinked))
    table.add_row("ignored", str(ignored))
    console.print(table)

    console.print(
        f"Sync {'enabled' if config.vikunja_enabled else 'disabled'}, "
        f"polling {'every ' + str(config.sync_interval_minutes) + ' min' if config.polling_enabled else 'off'}, "
        f"default project {config.default_project_id or 'not set'}"
    )
    logger.debug("status_reported", linked=linked, unlinked=unlinked, ignored=ignored)
