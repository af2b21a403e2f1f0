"""Tests for wikilink and markdown link helpers."""

import pytest

from obsidian_vikunja_sync.obsidian.links import format_wikilink, parse_link_to_path


class TestLinks:
    """Test project link parsing."""

    @pytest.mark.parametrize(
        ("link", "expected"),
        [
            ("[[Parent]]", "Parent"),
            ("[[Projects/Parent|The parent]]", "Projects/Parent"),
            ("[[Parent#Open items]]", "Parent"),
            ("[Parent](Projects/My%20Parent.md)", "Projects/My Parent.md"),
            ("[Parent](<Projects/My Parent.md>)", "Projects/My Parent.md"),
            ("  Parent  ", "Parent"),
        ],
    )
    def test_parse_link_to_path(self, link, expected) -> None:
        assert parse_link_to_path(link) == expected

    def test_format_wikilink_drops_extension(self) -> None:
        assert format_wikilink("TaskNotes/Tasks/Parent.md") == "[[TaskNotes/Tasks/Parent]]"
        assert format_wikilink("Parent") == "[[Parent]]"
