"""Text normalization utilities for extracted document text.

Two concerns live here:

1. **Whitespace cleaning** -- PDF text layers and slide XML are full of hard
   line breaks, tabs and runs of spaces.  :func:`clean_text` collapses every
   whitespace run to a single space so that chunk windows measure real
   content, not layout.

2. **Preview truncation** -- Vector-store metadata carries a short preview
   of each chunk so a hit can be shown even if the in-memory catalog no
   longer holds it.
"""

import re

_WHITESPACE_RUN = re.compile(r"\s+")


def clean_text(text: str) -> str:
    """Collapse whitespace runs to one space and trim both ends.

    Args:
        text: Raw page or slide text.

    Returns:
        The cleaned text; empty when *text* held only whitespace.
    """
    return _WHITESPACE_RUN.sub(" ", text).strip()


def truncate_preview(text: str, limit: int = 200) -> str:
    """Return the first *limit* characters of *text*, marking truncation.

    ``"..."`` is appended only when something was cut off, so a short
    chunk's preview equals its content.
    """
    if len(text) <= limit:
        return text
    return text[:limit] + "..."
