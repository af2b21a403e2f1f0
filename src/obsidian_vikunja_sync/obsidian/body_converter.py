"""Convert task note bodies between Markdown and Vikunja's HTML descriptions.

Uses mistune for Markdown parsing, nh3 for sanitizing the produced HTML and
BeautifulSoup (html5lib) to walk HTML coming back from Vikunja. The
conversion is not a perfect round trip; callers compare results with
``bodies_equal``, which ignores whitespace differences.
"""

import re

import mistune
import nh3
from bs4 import BeautifulSoup, NavigableString, Tag

# Tags Vikunja's editor (tiptap) produces and accepts
ALLOWED_TAGS = {
    "p",
    "br",
    "strong",
    "b",
    "em",
    "i",
    "u",
    "s",
    "del",
    "code",
    "pre",
    "ul",
    "ol",
    "li",
    "blockquote",
    "h1",
    "h2",
    "h3",
    "h4",
    "h5",
    "h6",
    "a",
    "img",
    "hr",
    "input",
}

ALLOWED_ATTRIBUTES = {
    "a": {"href", "title"},
    "img": {"src", "alt", "title"},
    "input": {"type", "checked", "disabled"},
    "code": {"class"},
}

_markdown = mistune.create_markdown(
    renderer=mistune.HTMLRenderer(escape=True),
    plugins=["strikethrough", "task_lists"],
)

_WHITESPACE_RE = re.compile(r"\s+")


def markdown_to_html(text: str) -> str:
    """Render a Markdown body to sanitized HTML; empty input gives ''."""
    if not text or not text.strip():
        return ""
    result = _markdown(text)
    html = result if isinstance(result, str) else str(result)
    return nh3.clean(
        html,
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        link_rel=None,
    ).strip()


def html_to_markdown(html: str | None) -> str:
    """Convert an HTML description to Markdown.

    Plain text without any markup passes through unchanged.
    """
    if not html or not html.strip():
        return ""
    if "<" not in html:
        return html.strip()

    soup = BeautifulSoup(html, "html5lib")
    root = soup.body or soup
    blocks = _render_blocks(root)
    text = "\n\n".join(b for b in blocks if b.strip())
    return re.sub(r"\n{3,}", "\n\n", text).strip()


def bodies_equal(left: str | None, right: str | None) -> bool:
    """Compare two bodies ignoring all whitespace differences."""
    return _WHITESPACE_RE.sub("", left or "") == _WHITESPACE_RE.sub("", right or "")


def _render_blocks(node: Tag) -> list[str]:
    blocks: list[str] = []
    inline: list[str] = []

    def flush() -> None:
        text = "".join(inline).strip()
        if text:
            blocks.append(text)
        inline.clear()

    for child in node.children:
        if isinstance(child, Tag) and child.name in _BLOCK_RENDERERS:
            flush()
            blocks.append(_BLOCK_RENDERERS[child.name](child))
        else:
            inline.append(_render_inline(child))
    flush()
    return blocks


def _render_inline(node: object) -> str:
    if isinstance(node, NavigableString):
        return _WHITESPACE_RE.sub(" ", str(node))
    if not isinstance(node, Tag):
        return ""

    inner = "".join(_render_inline(c) for c in node.children)
    name = node.name
    if name in ("strong", "b"):
        return f"**{inner}**" if inner.strip() else inner
    if name in ("em", "i"):
        return f"*{inner}*" if inner.strip() else inner
    if name in ("s", "del", "strike"):
        return f"~~{inner}~~" if inner.strip() else inner
    if name == "code":
        return f"`{node.get_text()}`"
    if name == "a":
        href = node.get("href")
        return f"[{inner}]({href})" if href else inner
    if name == "img":
        return f"![{node.get('alt', '')}]({node.get('src', '')})"
    if name == "br":
        return "\n"
    if name == "input":
        return ""
    return inner


def _render_paragraph(node: Tag) -> str:
    return "".join(_render_inline(c) for c in node.children).strip()


def _render_heading(node: Tag) -> str:
    level = int(node.name[1])
    return "#" * level + " " + _render_paragraph(node)


def _render_pre(node: Tag) -> str:
    code = node.find("code")
    language = ""
    if isinstance(code, Tag):
        for cls in code.get("class") or []:
            if cls.startswith("language-"):
                language = cls[len("language-"):]
    return f"```{language}\n{node.get_text().rstrip()}\n```"


def _render_blockquote(node: Tag) -> str:
    inner = "\n\n".join(_render_blocks(node))
    return "\n".join(f"> {line}" if line else ">" for line in inner.splitlines())


def _render_list(node: Tag, depth: int = 0) -> str:
    ordered = node.name == "ol"
    lines: list[str] = []
    index = 1
    for item in node.find_all("li", recursive=False):
        marker = f"{index}." if ordered else "-"
        index += 1

        checkbox = item.find("input", recursive=True)
        if isinstance(checkbox, Tag) and checkbox.get("type") == "checkbox":
            marker += " [x]" if checkbox.has_attr("checked") else " [ ]"
        elif item.get("data-checked") in ("true", "false"):
            marker += " [x]" if item.get("data-checked") == "true" else " [ ]"

        text_parts: list[str] = []
        nested: list[str] = []
        for child in item.children:
            if isinstance(child, Tag) and child.name in ("ul", "ol"):
                nested.append(_render_list(child, depth + 1))
            elif isinstance(child, Tag) and child.name in ("p", "div", "label"):
                text_parts.append(_render_paragraph(child))
            else:
                text_parts.append(_render_inline(child))

        text = " ".join(p.strip() for p in text_parts if p.strip())
        lines.append("  " * depth + f"{marker} {text}".rstrip())
        lines.extend(nested)
    return "\n".join(lines)


_BLOCK_RENDERERS = {
    "p": _render_paragraph,
    "div": lambda node: "\n\n".join(_render_blocks(node)),
    "h1": _render_heading,
    "h2": _render_heading,
    "h3": _render_heading,
    "h4": _render_heading,
    "h5": _render_heading,
    "h6": _render_heading,
    "pre": _render_pre,
    "blockquote": _render_blockquote,
    "ul": _render_list,
    "ol": _render_list,
    "hr": lambda node: "---",
}
