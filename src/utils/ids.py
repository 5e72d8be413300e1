"""
Anchor token and stable identifier helpers.

Identifier grammar:
    <documentPath>::^<anchorToken>           anchor form (durable)
    <documentPath>::#<derivedKey>[_<n>]      fallback form (fragile)
"""

import secrets
import string

ANCHOR_SEPARATOR = "::^"
FALLBACK_SEPARATOR = "::#"

_TOKEN_ALPHABET = string.ascii_lowercase + string.digits


def generate_anchor_token(length: int = 6) -> str:
    """
    Generate a random lowercase alphanumeric anchor token.

    Args:
        length: Number of characters (default 6)

    Returns:
        Token string, e.g. "k3x9q2"
    """
    return "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(length))


def anchor_id(document_path: str, token: str) -> str:
    return f"{document_path}{ANCHOR_SEPARATOR}{token}"


def fallback_id(document_path: str, key: str) -> str:
    return f"{document_path}{FALLBACK_SEPARATOR}{key}"


def is_anchor_id(task_id: str) -> bool:
    return ANCHOR_SEPARATOR in task_id

