"""Settings model for the sync service (split from config.py)."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError
from .error_codes import ErrorCode


class Config(BaseSettings):
    """Service configuration using pydantic-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
        extra="ignore",
        validate_assignment=True,
    )

    # Obsidian vault
    vault_path: Path = Field(default=Path(), description="Path to Obsidian vault")
    tasks_folder: str = Field(
        default="TaskNotes/Tasks",
        description="Vault-relative folder where tasks pulled from Vikunja are created",
    )
    task_tag: str = Field(
        default="task", description="Tag identifying task notes in the vault"
    )
    done_status: str = Field(default="done", description="Local completed status")
    open_status: str = Field(default="open", description="Local open status")

    @field_validator("vault_path", mode="before")
    @classmethod
    def parse_vault_path(cls, v: Any) -> Path:
        """Convert string to Path for vault_path."""
        if v is None or v == "":
            return Path()
        if isinstance(v, (str, Path)):
            return Path(v).expanduser().resolve()
        msg = f"vault_path must be string or Path, got {type(v).__name__}"
        raise ValueError(msg)

    # Vikunja connection
    vikunja_api_url: str = Field(
        default="", description="Vikunja API base URL, e.g. https://vikunja.example/api/v1"
    )
    vikunja_api_token: str = Field(default="", description="Vikunja API token")
    vikunja_timeout: float = Field(
        default=30.0, gt=0, description="HTTP timeout in seconds"
    )

    # Sync switches
    vikunja_enabled: bool = Field(default=False, description="Enable Vikunja sync")
    enable_two_way_sync: bool = Field(
        default=False,
        description="Poll Vikunja and create local tasks for unknown remote tasks",
    )
    default_project_id: int | None = Field(
        default=None, description="Vikunja project that receives new tasks"
    )
    sync_on_task_create: bool = Field(default=True)
    sync_on_task_update: bool = Field(default=True)
    sync_on_task_complete: bool = Field(default=True)

    # Timing
    sync_interval_minutes: float = Field(
        default=5.0, gt=0.0, description="Minutes between pulls from Vikunja"
    )
    pull_page_size: int = Field(default=50, ge=1, le=500)
    pull_max_pages: int = Field(default=1, ge=1)
    push_debounce_seconds: float = Field(
        default=2.0, ge=0.0, description="Quiet window before a local edit is pushed"
    )
    watch_interval_seconds: float = Field(
        default=1.0, gt=0, description="Polling interval of the vault watcher"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_dir: Path | None = Field(
        default=None, description="Directory for JSON log files (disabled when unset)"
    )

    @field_validator("default_project_id", mode="before")
    @classmethod
    def parse_project_id(cls, v: Any) -> int | None:
        """Treat empty values and 0 as 'not configured'."""
        if v in (None, "", 0, "0"):
            return None
        return int(v)

    @field_validator("vikunja_api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def sync_interval_seconds(self) -> float:
        return self.sync_interval_minutes * 60.0

    @property
    def polling_enabled(self) -> bool:
        """Polling runs only when sync and two-way sync are both enabled."""
        return self.vikunja_enabled and self.enable_two_way_sync

    def validate_config(self) -> Config:
        """Validate configuration values after initialization."""
        if self.vault_path == Path() or not self.vault_path.is_dir():
            msg = f"vault_path is not a directory: {self.vault_path}"
            raise ConfigurationError(
                msg,
                suggestion="Set VAULT_PATH environment variable or vault_path in config.yaml",
                error_code=ErrorCode.CFG_MISSING_KEY.value,
            )

        if self.vikunja_enabled:
            missing = [
                name
                for name in ("vikunja_api_url", "vikunja_api_token")
                if not getattr(self, name)
            ]
            if missing:
                msg = f"Vikunja sync is enabled but {', '.join(missing)} is not set"
                raise ConfigurationError(
                    msg,
                    suggestion="Set VIKUNJA_API_URL and VIKUNJA_API_TOKEN",
                    error_code=ErrorCode.CFG_MISSING_KEY.value,
                )

        return self
