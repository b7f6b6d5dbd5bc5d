"""
Provider address validation
"""

import re
from urllib.parse import unquote, urlsplit, urlunsplit

from structgen.domain.errors import InvalidURLError

MAX_URL_LENGTH = 2048
ALLOWED_SCHEMES = ("http", "https")

_CONTROL_CHARS = re.compile(r"[\r\n]")


def validate_url(url: str) -> str:
    """
    Validate a caller-supplied provider address

    Args:
        url: Address taken from configuration or a field description

    Returns:
        The normalized address (lower-cased scheme and host, "/" for an empty path)

    Raises:
        InvalidURLError: If the address is not a plain http(s) url
    """

    try:
        parts = urlsplit(url)
        hostname = parts.hostname
    except ValueError as e:
        raise InvalidURLError(f"Invalid URL: {e}") from e

    if parts.scheme.lower() not in ALLOWED_SCHEMES or not hostname:
        raise InvalidURLError("Invalid URL: Invalid scheme")
    if parts.fragment or parts.username or parts.password:
        raise InvalidURLError("Invalid URL: Forbidden URL components")
    if _CONTROL_CHARS.search(unquote(url)):
        raise InvalidURLError("Invalid URL: Suspicious encoding")

    netloc = parts.netloc.lower()
    normalized = urlunsplit((parts.scheme.lower(), netloc, parts.path or "/", parts.query, ""))
    if len(normalized) > MAX_URL_LENGTH:
        raise InvalidURLError("Invalid URL: URL too long")

    return normalized
