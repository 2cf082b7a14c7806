"""Sanitisation helpers.

Free-form text (habit names, log notes, skip comments, goal
descriptions) is stripped of HTML tags and surrounding whitespace
before it is stored, so that values rendered later by a web client
cannot carry markup.
"""
from __future__ import annotations

import re
from typing import Optional

TAG_RE = re.compile(r"<[^>]+>")


def strip_tags(text: str) -> str:
    """Remove HTML tags from ``text`` and trim whitespace."""
    if not text:
        return ""
    return TAG_RE.sub("", text).strip()


def clean_optional(text: Optional[str]) -> Optional[str]:
    """Like :func:`strip_tags`, but empty results become ``None``."""
    if text is None:
        return None
    return strip_tags(text) or None
