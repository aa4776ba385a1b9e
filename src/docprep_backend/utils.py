"""
Utility functions for data URIs and string normalization.

This module provides helper functions for:
- Encoding raster bytes as inline data URIs
- Recognizing content that is already a usable image reference
- Lower-casing component names without Unicode case folding
"""

from __future__ import annotations

import base64
import re
import string
from typing import Any

PNG_DATA_URI_PREFIX = "data:image/png;base64,"

# Content that can be embedded as-is: any data URI or an absolute http(s) URL
_IMAGE_REFERENCE_PATTERN = re.compile(r"^(data:|https?://)")

# Only the standard base64 alphabet (no URL-safe variant, no whitespace)
BASE64_PATTERN = re.compile(r"^[A-Za-z0-9+/=]+$")

_WHITESPACE_PATTERN = re.compile(r"\s+")

_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)


def png_data_uri(payload: bytes) -> str:
    """
    Wrap PNG bytes into a ``data:image/png;base64,`` URI.

    Args:
        payload: Raw PNG file contents

    Returns:
        The data URI string
    """
    return PNG_DATA_URI_PREFIX + base64.b64encode(payload).decode("ascii")


def is_image_reference(value: str) -> bool:
    """Return True if ``value`` is already a data URI or http(s) URL."""
    return bool(_IMAGE_REFERENCE_PATTERN.match(value))


def strip_whitespace(value: str) -> str:
    return _WHITESPACE_PATTERN.sub("", value)


def ascii_lower(value: Any) -> str:
    """
    Lower-case ASCII letters only.

    Non-ASCII characters are left as received, so ``"FOTO"`` matches ``"foto"``
    but full-width or accented variants do not.

    Example:
        >>> ascii_lower("QrCode")
        'qrcode'
    """
    return str(value).translate(_ASCII_LOWER)


def is_present(value: Any) -> bool:
    """
    Truthiness as the request body sees it: ``None``, ``False``, zero and empty
    strings are missing, while any mapping or list (even empty) is present.
    """
    if value is None or isinstance(value, (str, int, float, bool)):
        return bool(value)
    return True
