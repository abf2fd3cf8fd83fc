"""
Shortcode generation and input validation.

Pure functions; logging of outcomes is left to the caller.
"""

import re
import secrets
import string
from urllib.parse import urlsplit

SHORTCODE_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits
SHORTCODE_PATTERN = re.compile(r"^[A-Za-z0-9]{3,10}$")
DEFAULT_SHORTCODE_LENGTH = 6


def generate_shortcode(length: int = DEFAULT_SHORTCODE_LENGTH) -> str:
    """
    Generate a random shortcode.

    Every character is drawn uniformly from the 62 alphanumerics.
    """
    if not 3 <= length <= 10:
        raise ValueError("Shortcode length must be between 3 and 10")
    return "".join(secrets.choice(SHORTCODE_ALPHABET) for _ in range(length))


def is_valid_shortcode(shortcode: str) -> bool:
    """True for 3-10 ASCII alphanumeric characters."""
    return isinstance(shortcode, str) and SHORTCODE_PATTERN.fullmatch(shortcode) is not None


def is_valid_url(url: str) -> bool:
    """True if url is absolute, i.e. has both a scheme and a host."""
    if not isinstance(url, str):
        return False
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return bool(parts.scheme) and bool(parts.hostname)
