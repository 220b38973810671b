"""
Image URL normalisation for API responses.
"""

from typing import Any, Iterable, List, Optional

from models.config import settings


def absolute_image_url(url: Optional[str], base_url: Optional[str] = None) -> str:
    """
    Turn a stored image URL into one a browser can load.

    Absolute http(s) URLs are returned unchanged. Anything else is treated as
    a path on this backend and prefixed with BACKEND_URL.

    Examples:
        >>> absolute_image_url("/uploads/a.png", "http://api")
        'http://api/uploads/a.png'
        >>> absolute_image_url("https://cdn/x.png", "http://api")
        'https://cdn/x.png'
    """
    if not url:
        return ""
    if url.startswith("http://") or url.startswith("https://"):
        return url
    base = (base_url if base_url is not None else settings.BACKEND_URL).rstrip("/")
    if url.startswith("/"):
        return f"{base}{url}"
    return f"{base}/{url}"


def image_urls(images: Optional[Iterable[Any]]) -> List[str]:
    """
    Normalise a list of image rows or URL strings, dropping empty entries.

    Args:
        images: IssueImage/SuggestionImage rows (anything with ``url``) or
            plain strings, already in display order

    Returns:
        Absolute URLs
    """
    urls: List[str] = []
    for image in images or []:
        raw = image if isinstance(image, str) else getattr(image, "url", None)
        url = absolute_image_url(raw)
        if url:
            urls.append(url)
    return urls
