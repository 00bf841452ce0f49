"""Identifier generation helpers."""

from __future__ import annotations

import uuid


def new_id() -> str:
    """Create an opaque UUID4-based document identifier."""
    return uuid.uuid4().hex
