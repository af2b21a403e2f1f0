"""Wikilink and markdown link helpers for project references."""

from __future__ import annotations

import re
from urllib.parse import unquote

_WIKILINK_RE = re.compile(r"^\[\[([^\]]+)\]\]$")
_MARKDOWN_LINK_RE = re.compile(r"^\[[^\]]*\]\(([^)]+)\)$")


def format_wikilink(path: str) -> str:
    """Build a wikilink to a vault-relative note path (without the .md suffix)."""
    target = path[:-3] if path.endswith(".md") else path
    return f"[[{target}]]"


def parse_link_to_path(link: str) -> str:
    """Extract the link target from a wikilink or markdown link.

    Aliases (``|``) and heading anchors (``#``) are dropped. Plain text is
    returned unchanged.
    """
    text = link.strip()

    match = _WIKILINK_RE.match(text)
    if match:
        target = match.group(1)
        target = target.split("|", 1)[0]
        target = target.split("#", 1)[0]
        return target.strip()

    match = _MARKDOWN_LINK_RE.match(text)
    if match:
        target = unquote(match.group(1).strip())
        if target.startswith("<") and target.endswith(">"):
            target = target[1:-1]
        return target.split("#", 1)[0].strip()

    return text

