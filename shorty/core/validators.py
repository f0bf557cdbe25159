"""
Destination Normalizers and Checks

Destinations are stored as absolute URLs. Users may type a shortened
protocol form (``https:/example.com``) or leave the scheme out entirely,
so every destination passes through normalize_destination before it is
stored.
"""

from urllib.parse import urlparse

DEFAULT_SCHEME = "http://"


def normalize_destination(destination: str) -> str:
    """
    Turn a user supplied destination into an absolute URL.

    Rules, applied in order:
    - contains ``://``: returned unchanged
    - contains ``:/``: the first ``:/`` becomes ``://``
    - otherwise: ``http://`` is prepended

    Example:
        normalize_destination("example.com") -> "http://example.com"
        normalize_destination("https:/example.com") -> "https://example.com"
    """
    if "://" in destination:
        return destination
    if ":/" in destination:
        return destination.replace(":/", "://", 1)
    return DEFAULT_SCHEME + destination


def is_redirectable_url(url: str) -> bool:
    """
    Check that a destination looks like something a browser can follow.

    Advisory only: a False result is logged, the redirect is still served.

    Args:
        url: The stored destination

    Returns:
        True if the URL has both a scheme and a network location
    """
    if not url or not isinstance(url, str):
        return False

    try:
        result = urlparse(url)
    except ValueError:
        return False

    return bool(result.scheme and result.netloc)
