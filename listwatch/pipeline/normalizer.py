"""Display-name cleanup for entity metadata.

Source metadata is hand-edited JSON, so names can carry stray markup,
doubled spaces, or be missing entirely.
"""

import re
import html
from typing import Any, Iterable, Optional


def strip_html(text: str) -> str:
    """Remove HTML tags and decode entities."""
    text = re.sub(r"<[^>]+>", "", text)
    return html.unescape(text)


def normalize_whitespace(text: str) -> str:
    """Collapse whitespace runs and strip."""
    return re.sub(r"\s+", " ", text).strip()


def normalize_display_name(raw_name: Any, key: str) -> str:
    """Clean a display name, falling back to the key when nothing usable remains."""
    if raw_name is None:
        return key
    if not isinstance(raw_name, str):
        raw_name = str(raw_name)
    name = normalize_whitespace(strip_html(raw_name))
    return name or key


def pick_display_name(document: Any, name_fields: Iterable[str]) -> Optional[str]:
    """Return the first non-empty field of ``document`` among ``name_fields``."""
    if not isinstance(document, dict):
        return None
    for field in name_fields:
        value = document.get(field)
        if isinstance(value, str) and value.strip():
            return value
    return None
