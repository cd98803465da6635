"""Text normalisation for markup fragments."""

from __future__ import annotations

import re
from typing import Any, Optional

from bs4 import BeautifulSoup

_WHITESPACE = re.compile(r"\s+")
_NON_CONTENT_TAGS = ["script", "style", "noscript", "iframe"]


def collapse_whitespace(value: str) -> str:
    """Collapse every whitespace run to a single space and trim."""
    return _WHITESPACE.sub(" ", value).strip()


def clean_text(fragment: Optional[Any]) -> str:
    """Flatten *fragment* (HTML or plain text) into one trimmed line.

    ``None`` or empty input returns ``""``.  Numbers and booleans (common in
    JSON-LD) are stringified first; lists, dicts and other containers give
    ``""`` so their repr never leaks into a record.
    """
    if isinstance(fragment, str):
        text = fragment
    elif isinstance(fragment, (bool, int, float)):
        text = str(fragment)
    else:
        return ""
    if not text.strip():
        return ""
    if "<" not in text and "&" not in text:
        return collapse_whitespace(text)

    soup = BeautifulSoup(text, "html.parser")
    for tag in soup(_NON_CONTENT_TAGS):
        tag.decompose()
    return collapse_whitespace(soup.get_text())
