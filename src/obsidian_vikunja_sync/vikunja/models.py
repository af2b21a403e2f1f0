"""Pydantic models for Vikunja API payloads."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

PARENT_RELATION_KIND = "parenttask"


class VikunjaLabel(BaseModel):
    """A label as returned by ``GET /labels``."""

    model_config = ConfigDict(extra="ignore")

    id: int
    title: str


class VikunjaReminder(BaseModel):
    """A task reminder.

    Absolute reminders set ``reminder``; relative reminders set
    ``relative_period`` (seconds, negative means before) and ``relative_to``.
    """

    model_config = ConfigDict(extra="ignore")

    reminder: str | None = None
    relative_period: int = 0
    relative_to: str | None = None

    @property
    def is_relative(self) -> bool:
        return bool(self.relative_to)


class VikunjaTask(BaseModel):
    """A task as returned by the Vikunja task endpoints."""

    model_config = ConfigDict(extra="ignore")

    id: int
    title: str = ""
    description: str = ""
    done: bool = False
    priority: int = 0
    due_date: str | None = None
    start_date: str | None = None
    repeat_after: int = 0
    repeat_mode: int = 0
    project_id: int | None = None
    updated: str | None = None
    labels: list[VikunjaLabel] = Field(default_factory=list)
    reminders: list[VikunjaReminder] = Field(default_factory=list)
    related_tasks: dict[str, list[dict[str, Any]]] = Field(default_factory=dict)

    @field_validator("labels", "reminders", mode="before")
    @classmethod
    def null_to_list(cls, v: Any) -> Any:
        # Vikunja serializes empty collections as null
        return [] if v is None else v

    @field_validator("related_tasks", mode="before")
    @classmethod
    def null_to_dict(cls, v: Any) -> Any:
        return {} if v is None else v

    @field_validator("description", mode="before")
    @classmethod
    def null_to_str(cls, v: Any) -> Any:
        return "" if v is None else v

    @property
    def parent_task_ids(self) -> list[int]:
        """Ids of the tasks this task is a subtask of, in API order."""
        parents = self.related_tasks.get(PARENT_RELATION_KIND) or []
        return [int(p["id"]) for p in parents if isinstance(p, dict) and "id" in p]

    @property
    def label_titles(self) -> list[str]:
        return [label.title for label in self.labels]
