"""
Stable identifier resolution.

    resolve_task_id(path, raw_line, assigned) -> identifier

A line carrying an anchor token resolves to ``path::^token``. Otherwise a
key is derived from the display text and the id is ``path::#key``, with
``_1``, ``_2``, ... appended until it is unique among ``assigned``.

Fallback ids are only unique within one extraction pass. They change when
the leading text changes or when duplicate lines are reordered.
"""

import re
from typing import AbstractSet

from parsers.line_normalizer import detect_anchor, display_text, strip_completion_date
from utils.ids import anchor_id, fallback_id

# Number of display-text characters feeding the fallback key
FALLBACK_KEY_LENGTH = 30

# ASCII letters/digits, CJK ideographs, kana and hangul survive; all else is dropped
_KEY_DROP_RE = re.compile(
    r"[^0-9A-Za-z"
    r"぀-ヿ"  # hiragana, katakana
    r"㐀-䶿"  # CJK extension A
    r"一-鿿"  # CJK unified ideographs
    r"가-힯"  # hangul syllables
    r"豈-﫿"  # CJK compatibility ideographs
    r"]"
)


def fallback_key(line: str, length: int = FALLBACK_KEY_LENGTH) -> str:
    """Derive the fallback key from a raw task line."""
    text = strip_completion_date(display_text(line))
    return _KEY_DROP_RE.sub("", text[:length])


def resolve_task_id(document_path: str, raw_line: str, assigned: AbstractSet[str]) -> str:
    """
    Compute the identifier for one task line.

    Args:
        document_path: Vault-relative document path
        raw_line: The full line text
        assigned: Identifiers already handed out in this extraction pass

    Returns:
        An identifier not contained in ``assigned`` (anchor ids are unique
        by construction and are returned as-is)
    """
    token = detect_anchor(raw_line)
    if token is not None:
        return anchor_id(document_path, token)

    base = fallback_id(document_path, fallback_key(raw_line))
    candidate = base
    n = 0
    while candidate in assigned:
        n += 1
        candidate = f"{base}_{n}"
    return candidate
