"""Tests for task note frontmatter parsing and writing."""

from datetime import date

import pytest

from obsidian_vikunja_sync.domain.entities.task import LocalTask, Reminder, ReminderType
from obsidian_vikunja_sync.exceptions import TaskFileError
from obsidian_vikunja_sync.obsidian.frontmatter import (
    is_task_frontmatter,
    normalize_link_list,
    parse_task,
    split_frontmatter,
    task_to_frontmatter,
)
from obsidian_vikunja_sync.obsidian.frontmatter_writer import (
    render_task_file,
    replace_body,
    split_raw,
    update_frontmatter,
)

NOTE = """---
title: Write report  # from the meeting template
status: open
priority: high
due: 2024-03-10
tags:
  - task
  - work
projects:
  - "[[Projects/Q1]]"
reminders:
  - id: rem_a
    type: relative
    relatedTo: due
    offset: -PT15M
vikunja_id: 77
---

Draft the **summary**.
"""


class TestParsing:
    """Test reading task notes."""

    def test_parse_task(self) -> None:
        data, body = split_frontmatter(NOTE, "Tasks/Write report.md")
        task = parse_task(data, body, "Tasks/Write report.md")

        assert task.title == "Write report"
        assert task.priority == "high"
        assert task.due == date(2024, 3, 10)
        assert task.tags == ["task", "work"]
        assert task.projects == ["[[Projects/Q1]]"]
        assert task.external_id == 77
        assert task.reminders == [
            Reminder(id="rem_a", type=ReminderType.RELATIVE, related_to="due", offset="-PT15M")
        ]
        assert body.strip() == "Draft the **summary**."

    def test_title_falls_back_to_filename(self) -> None:
        task = parse_task({"tags": ["task"]}, "", "Tasks/Call Bob.md")
        assert task.title == "Call Bob"
        assert task.status == "open"
        assert task.priority == "none"
        assert task.external_id is None

    def test_unquoted_wikilink_is_folded_back(self) -> None:
        """YAML reads an unquoted [[Parent]] as a nested list."""
        data, _ = split_frontmatter("---\nprojects: [[Parent]]\n---\n", "a.md")
        assert normalize_link_list(data["projects"]) == ["[[Parent]]"]

    def test_invalid_yaml(self) -> None:
        with pytest.raises(TaskFileError) as exc_info:
            split_frontmatter("---\ntitle: [unclosed\n---\n", "bad.md")
        assert exc_info.value.error_code == "VLT-YAML-001"

    @pytest.mark.parametrize(
        ("tags", "expected"),
        [(["task"], True), (["#Task"], True), ("task", True), (["work"], False), (None, False)],
    )
    def test_is_task_frontmatter(self, tags, expected) -> None:
        assert is_task_frontmatter({"tags": tags}, "task") is expected

    def test_bad_values_are_ignored(self) -> None:
        task = parse_task(
            {"tags": ["task"], "vikunja_id": "abc", "reminders": [{"type": "psychic"}, "x"]},
            "",
            "a.md",
        )
        assert task.external_id is None
        assert task.reminders == []

    def test_task_to_frontmatter_marks_unset_fields(self) -> None:
        data = task_to_frontmatter(LocalTask(path="a.md", title="A", tags=["task"]))
        assert data["due"] is None
        assert data["projects"] is None
        assert data["vikunja_id"] is None
        assert data["tags"] == ["task"]


class TestWriter:
    """Test structure-preserving writes."""

    def test_update_preserves_comments_and_order(self, tmp_path) -> None:
        note = tmp_path / "Write report.md"
        note.write_text(NOTE, encoding="utf-8")

        update_frontmatter(note, {"vikunja_last_sync": 1_700_000_000_000, "status": "done"})

        content = note.read_text(encoding="utf-8")
        assert "# from the meeting template" in content
        assert "status: done" in content
        assert "vikunja_last_sync: 1700000000000" in content
        assert content.index("title:") < content.index("status:") < content.index("vikunja_id:")
        assert content.endswith("Draft the **summary**.\n")

    def test_none_removes_key(self, tmp_path) -> None:
        note = tmp_path / "n.md"
        note.write_text(NOTE, encoding="utf-8")

        update_frontmatter(note, {"due": None})

        data, _ = split_frontmatter(note.read_text(encoding="utf-8"), "n.md")
        assert "due" not in data
        assert data["title"] == "Write report"

    def test_dates_are_written_as_iso_strings(self, tmp_path) -> None:
        note = tmp_path / "n.md"
        note.write_text(NOTE, encoding="utf-8")

        update_frontmatter(note, {"scheduled": date(2024, 3, 8)})

        data, _ = split_frontmatter(note.read_text(encoding="utf-8"), "n.md")
        assert str(data["scheduled"]) == "2024-03-08"

    def test_note_without_frontmatter_gets_block(self, tmp_path) -> None:
        note = tmp_path / "plain.md"
        note.write_text("Just text\n", encoding="utf-8")

        update_frontmatter(note, {"title": "Plain"})

        content = note.read_text(encoding="utf-8")
        assert content.startswith("---\ntitle: Plain\n---\n")
        assert content.endswith("Just text\n")

    def test_dashes_inside_values_are_not_a_delimiter(self, tmp_path) -> None:
        note = tmp_path / "n.md"
        note.write_text("---\ntitle: a --- b\nnote: ---\n---\nBody\n", encoding="utf-8")

        frontmatter_text, body = split_raw(note.read_text(encoding="utf-8"))

        assert frontmatter_text == "title: a --- b\nnote: ---"
        assert body == "Body\n"

    def test_non_mapping_frontmatter(self, tmp_path) -> None:
        note = tmp_path / "list.md"
        note.write_text("---\n- a\n- b\n---\n", encoding="utf-8")

        with pytest.raises(TaskFileError) as exc_info:
            update_frontmatter(note, {"title": "x"})
        assert exc_info.value.error_code == "VLT-YAML-001"

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(TaskFileError) as exc_info:
            update_frontmatter(tmp_path / "gone.md", {"title": "x"})
        assert exc_info.value.error_code == "VLT-FILE-001"

    def test_replace_body_keeps_frontmatter(self, tmp_path) -> None:
        note = tmp_path / "n.md"
        note.write_text(NOTE, encoding="utf-8")

        replace_body(note, "New body")

        content = note.read_text(encoding="utf-8")
        head, _ = split_raw(NOTE)
        assert split_raw(content)[0] == head
        assert content.endswith("---\n\nNew body\n")

    def test_render_task_file(self) -> None:
        text = render_task_file({"title": "A", "due": date(2024, 3, 10), "vikunja_id": None}, "Body")

        data, body = split_frontmatter(text, "a.md")
        assert text.startswith("---\ntitle: A\n")
        assert str(data["due"]) == "2024-03-10"
        assert "vikunja_id" not in data
        assert body.strip() == "Body"
        assert text.endswith("---\n\nBody\n")

    def test_empty_frontmatter_block(self) -> None:
        assert split_raw("---\n---\nBody") == ("", "Body")
        assert split_raw("No frontmatter") == (None, "No frontmatter")
