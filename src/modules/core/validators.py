"""Input sanitisation helpers shared by the DTO layer."""

from __future__ import annotations

import re

_UNSAFE_CHARS = re.compile(r"[<>\"']")


def clean_string(value: str) -> str:
    """Trim whitespace and strip characters that could break out of markup."""
    return _UNSAFE_CHARS.sub("", value.strip())


def clean_optional_string(value: str | None) -> str | None:
    """``clean_string`` for nullable columns; blank input becomes ``None``."""
    if value is None:
        return None
    cleaned = clean_string(value)
    return cleaned or None
