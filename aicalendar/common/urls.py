"""Event URL utilities.

Event URLs are the only identity shared across platforms, so the same link
published by two sources must compare equal after normalisation.
"""

from __future__ import annotations


def normalise_event_url(url: str) -> str:
    """Return the dedup key for an event URL.

    The URL is lowercased and every trailing slash is stripped. Nothing else
    is rewritten: query strings and schemes are significant.

    Examples
    --------
    >>> normalise_event_url("https://lu.ma/Foo/")
    'https://lu.ma/foo'
    >>> normalise_event_url("https://lu.ma/foo//")
    'https://lu.ma/foo'

    """
    return url.lower().rstrip("/")


def absolute_url(value: str, *, base: str) -> str:
    """Join a relative platform path onto ``base`` unless already absolute.

    Examples
    --------
    >>> absolute_url("ai-night", base="https://lu.ma")
    'https://lu.ma/ai-night'
    >>> absolute_url("https://example.com/x", base="https://lu.ma")
    'https://example.com/x'

    """
    if value.startswith("http"):
        return value
    return f"{base.rstrip('/')}/{value.lstrip('/')}"
