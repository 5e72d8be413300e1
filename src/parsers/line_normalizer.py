"""
Single-line normalisation for checklist items.

Grammar handled here (one line at a time, no multi-line markdown):

    <indent><bullet> [<status>] <text> ^<anchor>

    bullet  := "-" | "*" | "+" | <digits>"." | <digits>")"   (optional)
    status  := one of CHECKBOX_STATUS_CHARS
    anchor  := [A-Za-z0-9-]+, preceded by whitespace (or at line start)

Every function is pure. Anchor tokens are immutable line content: the
editing helpers carry an existing anchor through verbatim.
"""

import re
from typing import Optional

# Checkbox characters recognised as task status markers
CHECKBOX_STATUS_CHARS = " xX/-!bc"

ANCHOR_MARKER = "^"

_STATUS_CLASS = "[" + re.escape(CHECKBOX_STATUS_CHARS) + "]"

_CHECKBOX_PREFIX_RE = re.compile(
    rf"^(\s*(?:(?:[-*+]|\d+[.)])\s+)?\[({_STATUS_CLASS})\])(\s?)"
)
_ANCHOR_RE = re.compile(r"(?:^|\s)\^([A-Za-z0-9-]+)\s*$")

# "✅ 2026-01-15" (Tasks plugin) or "[completion:: 2026-01-15]" (Dataview)
_COMPLETION_DATE_RE = re.compile(
    r"\s*(?:✅\s*\d{4}-\d{2}-\d{2}|\[completion::\s*\d{4}-\d{2}-\d{2}\])\s*$"
)


def detect_anchor(line: str) -> Optional[str]:
    """Return the trailing anchor token (without the caret), or None."""
    m = _ANCHOR_RE.search(line)
    return m.group(1) if m else None


def strip_anchor(line: str) -> str:
    """Remove a trailing anchor marker; other content is left alone."""
    return _ANCHOR_RE.sub("", line)


def checkbox_prefix(line: str) -> Optional[str]:
    """
    Return the indentation, bullet and checkbox prefix of a task line
    including one following space, e.g. "    - [x] ". None if absent.
    """
    m = _CHECKBOX_PREFIX_RE.match(line)
    if not m:
        return None
    return m.group(1) + m.group(3)


def display_text(line: str) -> str:
    """Text of a task line without checkbox marker and anchor, trimmed."""
    text = _CHECKBOX_PREFIX_RE.sub("", line, count=1)
    return strip_anchor(text).strip()


def strip_completion_date(text: str) -> str:
    return _COMPLETION_DATE_RE.sub("", text)


def _split_line_ending(line: str):
    if line.endswith("\r"):
        return line[:-1], "\r"
    return line, ""


def with_anchor(line: str, token: str) -> str:
    """
    Append `` ^token`` to a line. A line that already ends with an anchor is
    returned unchanged.
    """
    if detect_anchor(line) is not None:
        return line
    body, ending = _split_line_ending(line)
    return f"{body.rstrip()} {ANCHOR_MARKER}{token}{ending}"


def replace_text(line: str, new_text: str) -> str:
    """
    Replace the text of a task line, keeping its checkbox prefix and anchor.

    Lines without a checkbox are replaced wholesale, but a trailing anchor is
    still carried over.
    """
    body, ending = _split_line_ending(line)
    anchor = detect_anchor(body)
    prefix = checkbox_prefix(body) or ""
    new_text = new_text.strip()
    if anchor is not None and detect_anchor(new_text) != anchor:
        new_text = f"{strip_anchor(new_text).rstrip()} {ANCHOR_MARKER}{anchor}"
    return f"{prefix}{new_text}{ending}"


def render_task_line(text: str, token: Optional[str] = None, status: str = " ") -> str:
    """Render a new checklist line, e.g. "- [ ] buy milk ^k3x9q2"."""
    line = f"- [{status}] {text.strip()}"
    if token:
        line = f"{line} {ANCHOR_MARKER}{token}"
    return line
