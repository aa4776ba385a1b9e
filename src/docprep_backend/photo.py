from __future__ import annotations

import logging
from typing import Optional

from .models import SynthesisResult
from .sections import CONTENT_KEY, PhotoSection
from .utils import BASE64_PATTERN, PNG_DATA_URI_PREFIX, is_image_reference, strip_whitespace

logger = logging.getLogger(__name__)

DEFAULT_MIN_BASE64_LENGTH = 100


def normalize_photo(section: PhotoSection, min_base64_length: int = DEFAULT_MIN_BASE64_LENGTH) -> Optional[SynthesisResult]:
    """
    Turn raw base64 photo content into a PNG data URI.

    Content that is already a data URI or an http(s) URL is left alone, as is
    anything that does not look like a base64 payload longer than
    ``min_base64_length``. Never fails; unusable content is only logged.

    Returns:
        A result rewriting ``conteudo``, or None when nothing changes
    """
    if section.content is None:
        logger.warning(f"Section #{section.position} is a photo but has no 'conteudo'")
        return None

    candidate = str(section.content).strip()
    if is_image_reference(candidate):
        return None

    payload = strip_whitespace(candidate)
    if BASE64_PATTERN.match(payload) and len(payload) > min_base64_length:
        logger.info(f"Photo content normalized to a data URI in section #{section.position}")
        return SynthesisResult.success(section.position, CONTENT_KEY, PNG_DATA_URI_PREFIX + payload)

    logger.warning(f"Section #{section.position} (photo) has unrecognized content; expected data URI or URL")
    return None
