"""Logging configuration using structlog for structured JSON logging."""

import logging
import sys
import threading
import time
from collections import deque
from collections.abc import Callable, Mapping, MutableMapping
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import structlog
from structlog.dev import ConsoleRenderer
from structlog.processors import JSONRenderer
from structlog.stdlib import LoggerFactory, add_log_level, add_logger_name

_LOG_LEVELS = {
    "TRACE": logging.DEBUG - 5,
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# User-facing event names that should appear on terminal (without --verbose)
# These are the only events shown to users by default, plus all ERROR/CRITICAL
USER_FACING_EVENTS: set[str] = {
    # Lifecycle
    "sync_coordinator_started",
    "sync_coordinator_stopped",
    "poll_timer_started",
    # Successful creates
    "vikunja_task_created",
    "local_task_created",
    # Cycle summaries
    "pull_cycle_completed",
    # Configuration problems
    "config_warning",
    "vikunja_default_project_missing",
    "vikunja_connection_warning",
}


def _get_level_no(level_name: str) -> int:
    """Get numeric log level from name."""
    return _LOG_LEVELS.get(level_name.upper(), logging.INFO)


@dataclass(slots=True)
class HighVolumeEventPolicy:
    """
    Rate-limiting policy for high-frequency log events.

    Attributes:
        max_occurrences: Maximum number of events allowed within the window.
        window_seconds: Sliding window size in seconds for counting events.
    """

    max_occurrences: int
    window_seconds: float


class ConsoleNoiseFilterProcessor:
    """
    Structlog processor that rate-limits specific high-volume events.

    Background polling emits the same events on every tick; the console only
    needs a handful of them per window while the file log keeps everything.
    """

    def __init__(
        self,
        high_volume_policies: Mapping[str, HighVolumeEventPolicy] | None = None,
        time_func: Callable[[], float] | None = None,
    ) -> None:
        self.high_volume_policies = dict(high_volume_policies or {})
        self._event_windows: dict[str, deque[float]] = {
            event: deque() for event in self.high_volume_policies
        }
        self._lock = threading.Lock()
        self._time_func = time_func or time.monotonic

    def __call__(
        self, logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
    ) -> MutableMapping[str, Any]:
        """Apply rate limits to a log event."""
        message = event_dict.get("event", "")
        policy = (
            self.high_volume_policies.get(message) if isinstance(message, str) else None
        )
        if policy:
            now = self._time_func()
            with self._lock:
                window = self._event_windows.setdefault(str(message), deque())
                while window and now - window[0] > policy.window_seconds:
                    window.popleft()
                if len(window) >= policy.max_occurrences:
                    raise structlog.DropEvent
                window.append(now)

        return event_dict


class UserFacingConsoleFilter(logging.Filter):
    """Logging filter that only passes user-facing events to console.

    Allows:
    - Events in USER_FACING_EVENTS set
    - All ERROR and CRITICAL level messages
    - All messages when verbose mode is enabled
    """

    def __init__(self, verbose: bool = False) -> None:
        super().__init__()
        self.verbose = verbose

    def filter(self, record: logging.LogRecord) -> bool:
        if self.verbose:
            return True

        if record.levelno >= logging.ERROR:
            return True

        event = record.getMessage()
        if isinstance(event, str):
            if event in USER_FACING_EVENTS:
                return True
            for user_event in USER_FACING_EVENTS:
                if user_event in event:
                    return True

        return False


class UserFriendlyConsoleRenderer:
    """Renders user-facing logs in a clean, readable format for terminal output."""

    def __init__(self) -> None:
        self._fallback = ConsoleRenderer(
            colors=True,
            exception_formatter=structlog.dev.plain_traceback,
        )

    def __call__(
        self, logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
    ) -> str:
        """Render log event as user-friendly string."""
        event = event_dict.get("event", "")
        level = str(event_dict.get("level", "info")).upper()

        if event == "vikunja_task_created":
            title = event_dict.get("title", "")
            vikunja_id = event_dict.get("vikunja_id", "")
            return f"Task created in Vikunja: {title} (#{vikunja_id})"

        elif event == "local_task_created":
            path = event_dict.get("path", "")
            return f"Task imported from Vikunja: {path}"

        elif event == "pull_cycle_completed":
            fetched = event_dict.get("fetched", 0)
            updated = event_dict.get("updated", 0)
            created = event_dict.get("created", 0)
            relinked = event_dict.get("relinked", 0)
            return (
                f"Pulled {fetched} tasks: {updated} updated, "
                f"{created} created, {relinked} relinked"
            )

        elif event == "vikunja_default_project_missing":
            return "WARNING: no default Vikunja project configured, task not created"

        elif level == "ERROR":
            error = event_dict.get("error", event)
            return f"ERROR: {error}"

        elif level == "WARNING" and event in USER_FACING_EVENTS:
            return f"WARNING: {event}"

        return str(self._fallback(logger, method_name, event_dict))


DEFAULT_HIGH_VOLUME_EVENTS: dict[str, HighVolumeEventPolicy] = {
    # Each poll tick logs a fetch; a few per minute is enough on the console.
    "pull_cycle_started": HighVolumeEventPolicy(3, 60.0),
    "pull_tick_skipped": HighVolumeEventPolicy(3, 60.0),
    "vault_file_modified": HighVolumeEventPolicy(10, 10.0),
}

_configured = False
_handlers: list[logging.Handler] = []


def _add_formatted_extra_processor(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Add a '_formatted' field with the extra fields, key fields first."""
    priority_fields = ["path", "title", "vikunja_id"]
    important_parts = []
    other_parts = []

    for key, value in event_dict.items():
        if key in ("logger", "level", "event", "timestamp", "exception", "_formatted"):
            continue

        if key in priority_fields:
            if value is not None and value != "":
                important_parts.append(f"{key}={value}")
        elif value is not None and value != "":
            other_parts.append(f"{key}={value}")

    all_parts = important_parts + other_parts
    event_dict["_formatted"] = " | " + " ".join(all_parts) if all_parts else ""
    return event_dict


def _base_processors() -> list[structlog.typing.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        add_log_level,
        add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def _setup_stdlib_logging() -> None:
    """Configure standard library logging to work with structlog."""
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    structlog.configure(
        processors=[
            *_base_processors(),
            _add_formatted_extra_processor,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(
    log_level: str = "INFO",
    log_dir: Path | None = None,
    verbose: bool = False,
    enable_console_noise_filter: bool = True,
) -> None:
    """Configure structlog logging with console and optional file output.

    Args:
        log_level: Minimum console log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for JSON log files; no file logging when None
        verbose: If True, show all log messages on terminal
        enable_console_noise_filter: Toggle console-side rate limiting
    """
    global _configured

    _setup_stdlib_logging()

    root_logger = logging.getLogger()
    for handler in _handlers:
        root_logger.removeHandler(handler)
        handler.close()
    _handlers.clear()

    level = _get_level_no(log_level)

    # Console handler - human-readable with colors
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)

    console_pre_chain = _base_processors()
    if enable_console_noise_filter:
        console_pre_chain.append(
            ConsoleNoiseFilterProcessor(high_volume_policies=DEFAULT_HIGH_VOLUME_EVENTS)
        )
    console_pre_chain.append(_add_formatted_extra_processor)

    console_handler.addFilter(UserFacingConsoleFilter(verbose=verbose))

    if verbose:
        renderer: Any = ConsoleRenderer(
            colors=True,
            exception_formatter=structlog.dev.plain_traceback,
        )
    else:
        renderer = UserFriendlyConsoleRenderer()

    console_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=console_pre_chain,
        )
    )
    root_logger.addHandler(console_handler)
    _handlers.append(console_handler)

    if log_dir is not None:
        log_dir.mkdir(exist_ok=True, parents=True)

        file_formatter = structlog.stdlib.ProcessorFormatter(
            processor=JSONRenderer(),
            foreign_pre_chain=[*_base_processors(), _add_formatted_extra_processor],
        )

        # 10MB per file, 5 backups
        file_handler = RotatingFileHandler(
            filename=str(log_dir / "obsidian-vikunja-sync.log"),
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(file_formatter)
        root_logger.addHandler(file_handler)
        _handlers.append(file_handler)

        error_handler = RotatingFileHandler(
            filename=str(log_dir / "errors.log"),
            maxBytes=10 * 1024 * 1024,
            backupCount=10,
            encoding="utf-8",
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(file_formatter)
        root_logger.addHandler(error_handler)
        _handlers.append(error_handler)

    _configured = True

    logger = get_logger("obsidian_vikunja_sync.utils.logging")
    logger.debug(
        "logging_configured",
        console_level=log_level,
        log_dir=str(log_dir) if log_dir else None,
        verbose=verbose,
        console_noise_filter=enable_console_noise_filter,
    )


def get_logger(name: str) -> Any:
    """Get a logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Structlog logger bound to the given name
    """
    if not _configured:
        configure_logging()

    return structlog.get_logger(name)
