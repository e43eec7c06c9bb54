r"""Base-URL resolution helpers."""

from __future__ import annotations

__all__ = ["normalize_base_url", "resolve_url"]


def normalize_base_url(url: str | None) -> str:
    """Strip trailing slashes from a base URL.

    Example:
        ```pycon
        >>> from rehttp.url import normalize_base_url
        >>> normalize_base_url("https://api.example.com/v1//")
        'https://api.example.com/v1'
        >>> normalize_base_url(None)
        ''

        ```
    """
    if not url:
        return ""
    return url.rstrip("/")


def resolve_url(base_url: str, url: str) -> str:
    """Resolve ``url`` against ``base_url``.

    Absolute ``http://`` and ``https://`` URLs bypass the base URL, as
    does an empty base URL. Otherwise the path is joined to the base
    with exactly one ``/``.

    Args:
        base_url: A normalized base URL (no trailing slash), or ``""``.
        url: An absolute URL or a path.

    Returns:
        The final request URL.

    Example:
        ```pycon
        >>> from rehttp.url import resolve_url
        >>> resolve_url("https://api.example.com", "/users")
        'https://api.example.com/users'
        >>> resolve_url("https://api.example.com", "users")
        'https://api.example.com/users'
        >>> resolve_url("https://api.example.com", "http://other.example.com/data")
        'http://other.example.com/data'
        >>> resolve_url("", "/users")
        '/users'

        ```
    """
    if not base_url:
        return url
    if url.startswith(("https://", "http://")):
        return url
    return f"{base_url}/{url.lstrip('/')}"
