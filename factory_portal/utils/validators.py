"""Deterministic sanitizers used by services and triggers."""

from __future__ import annotations

import html

PREVIEW_LENGTH = 80
ELLIPSIS = "…"


def sanitize_text(value: str | None, max_len: int = 20000) -> str:
    """Sanitize free-form content before persistence/display."""
    if value is None:
        return ""
    cleaned = str(value).replace("\x00", "").strip()
    cleaned = cleaned[:max_len]
    return cleaned


def escape_html(value: str | None) -> str:
    """Escape user-supplied text before embedding it in email markup."""
    return html.escape(value or "", quote=True)


def preview_text(message: str | None, limit: int = PREVIEW_LENGTH) -> str:
    """Truncate a comment body to ``limit`` characters plus a single ellipsis.

    Messages of exactly ``limit`` characters are passed through unmodified.
    """
    text = message or ""
    if len(text) > limit:
        return text[:limit] + ELLIPSIS
    return text


def join_label(*parts: str | None, separator: str = " – ") -> str:
    """Join non-empty label parts, e.g. ``"Hype GTR – Interstellar"``."""
    return separator.join(part for part in parts if part)
