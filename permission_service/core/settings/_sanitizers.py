"""Helpers to sanitize environment variable values before validation."""

from __future__ import annotations

from typing import Any


def strip_inline_comment(value: str) -> str:
    """Remove inline comments of the form "value  # comment".

    Some env-file parsers keep inline comments, so values like
    ``64  # passes`` show up in the process environment. A ``#`` only starts
    a comment when preceded by whitespace, so ``foo#bar`` is kept whole.
    """
    idx = value.find("#")
    if idx == -1:
        return value.strip()
    if idx == 0:
        return ""
    if not value[idx - 1].isspace():
        return value.strip()
    return value[:idx].strip()


def sanitize_inline_numeric(value: Any) -> Any:
    """Normalize numeric env vars that may include inline comments."""
    if isinstance(value, str):
        cleaned = strip_inline_comment(value)
        if cleaned:
            return cleaned
    return value
