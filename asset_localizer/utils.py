"""Utility helpers for attribute parsing and string normalization."""

from __future__ import annotations

import re
from typing import Any, Optional

DIMENSION_PATTERN = re.compile(r"^\s*(\d+)")
WHITESPACE_PATTERN = re.compile(r"\s+")


def parse_dimension(value: Any) -> Optional[int]:
    """Read the leading integer of a width/height attribute, ignoring zero."""
    if value is None:
        return None
    match = DIMENSION_PATTERN.match(str(value))
    if not match:
        return None
    number = int(match.group(1))
    return number or None


def attribute_text(value: Any) -> str:
    """Flatten a BeautifulSoup attribute value (string or list) to plain text."""
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return " ".join(str(part) for part in value)
    return str(value)


def collapse_whitespace(value: str) -> str:
    return WHITESPACE_PATTERN.sub(" ", value).strip()
