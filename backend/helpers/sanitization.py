"""
Plain-text sanitization for user submitted fields.

Titles, descriptions, addresses and support messages never carry markup;
every tag is stripped before storage so the frontend can render them as-is.
"""

from typing import Optional

import bleach


def sanitize_plain_text(content: Optional[str]) -> Optional[str]:
    """
    Strip all HTML tags.

    Args:
        content: Raw content from user input

    Returns:
        Plain text with all HTML removed, or None if input is None

    Examples:
        >>> sanitize_plain_text('<script>alert(1)</script>Pothole')
        'alert(1)Pothole'
        >>> sanitize_plain_text('<b>Broken</b> light')
        'Broken light'
    """
    if content is None:
        return None

    return bleach.clean(content, tags=[], strip=True)


def clean_text(content: Optional[str]) -> str:
    """Sanitized and stripped text; empty string for missing input."""
    return (sanitize_plain_text(content) or "").strip()
