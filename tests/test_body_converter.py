"""Tests for Markdown/HTML body conversion."""

from obsidian_vikunja_sync.obsidian.body_converter import (
    bodies_equal,
    html_to_markdown,
    markdown_to_html,
)


class TestMarkdownToHtml:
    """Test rendering note bodies for Vikunja."""

    def test_basic_formatting(self) -> None:
        html = markdown_to_html("Draft the **summary** and *review*.")
        assert html == "<p>Draft the <strong>summary</strong> and <em>review</em>.</p>"

    def test_empty_body(self) -> None:
        assert markdown_to_html("") == ""
        assert markdown_to_html("  \n ") == ""

    def test_raw_html_is_escaped(self) -> None:
        html = markdown_to_html("**bold** <script>alert(1)</script>")
        assert "<script>" not in html
        assert "<strong>bold</strong>" in html

    def test_links_have_no_rel(self) -> None:
        html = markdown_to_html("[site](https://example.com)")
        assert 'href="https://example.com"' in html
        assert "rel=" not in html

    def test_task_list_checkboxes(self) -> None:
        html = markdown_to_html("- [x] done\n- [ ] todo")
        assert 'type="checkbox"' in html

        markdown = html_to_markdown(html)
        assert "- [x] done" in markdown
        assert "- [ ] todo" in markdown


class TestHtmlToMarkdown:
    """Test converting Vikunja descriptions back to Markdown."""

    def test_plain_text_passes_through(self) -> None:
        assert html_to_markdown("Just a note") == "Just a note"
        assert html_to_markdown(None) == ""
        assert html_to_markdown("") == ""

    def test_paragraphs_and_inline(self) -> None:
        html = "<p>Hello <strong>world</strong></p><p>Line one<br>line two</p>"
        assert html_to_markdown(html) == "Hello **world**\n\nLine one\nline two"

    def test_headings_and_lists(self) -> None:
        html = "<h2>Notes</h2><ul><li>one</li><li>two</li></ul><ol><li>a</li><li>b</li></ol>"
        assert html_to_markdown(html) == "## Notes\n\n- one\n- two\n\n1. a\n2. b"

    def test_code_block(self) -> None:
        html = '<pre><code class="language-python">print(1)\n</code></pre>'
        assert html_to_markdown(html) == "```python\nprint(1)\n```"

    def test_blockquote(self) -> None:
        assert html_to_markdown("<blockquote><p>quoted</p></blockquote>") == "> quoted"

    def test_editor_task_list(self) -> None:
        html = (
            '<ul data-type="taskList">'
            '<li data-checked="true" data-type="taskItem">'
            '<label><input type="checkbox" checked="checked"><span></span></label>'
            "<div><p>Buy milk</p></div></li>"
            '<li data-checked="false" data-type="taskItem">'
            '<label><input type="checkbox"><span></span></label>'
            "<div><p>Call Bob</p></div></li></ul>"
        )
        assert html_to_markdown(html) == "- [x] Buy milk\n- [ ] Call Bob"

    def test_link_and_code(self) -> None:
        html = '<p>See <a href="https://example.com">docs</a> for <code>run</code></p>'
        assert html_to_markdown(html) == "See [docs](https://example.com) for `run`"


class TestBodiesEqual:
    """Test whitespace-insensitive comparison."""

    def test_whitespace_is_ignored(self) -> None:
        assert bodies_equal("a\n\nb\n", "a b")
        assert bodies_equal(None, "  ")
        assert not bodies_equal("a", "b")

    def test_round_trip_is_stable(self) -> None:
        markdown = "Draft the **summary**.\n\n- one\n- two"
        assert bodies_equal(html_to_markdown(markdown_to_html(markdown)), markdown)
