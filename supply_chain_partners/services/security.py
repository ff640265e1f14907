"""
Input limits and API key checks for the HTTP layer.
"""

from __future__ import annotations

import logging
import re

from supply_chain_partners.config import get_settings

logger = logging.getLogger(__name__)

MAX_DISPLAY_NAME_LENGTH = 200

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def validate_request_size(content_length: int | None, max_size_mb: int) -> None:
    """Validate request body size."""
    if content_length is None:
        return
    max_size_bytes = max_size_mb * 1024 * 1024
    if content_length > max_size_bytes:
        raise ValueError(f"Request body too large. Maximum size: {max_size_mb}MB")


def sanitize_display_name(name: str | None) -> str | None:
    """Normalize a caller-supplied company name before it is cached on a record.

    Control characters are dropped and whitespace collapsed; blank names become None.
    """
    if name is None:
        return None
    cleaned = " ".join(_CONTROL_CHARS.sub(" ", name).split())
    if not cleaned:
        return None
    if len(cleaned) > MAX_DISPLAY_NAME_LENGTH:
        raise ValueError(f"Company name longer than {MAX_DISPLAY_NAME_LENGTH} characters")
    return cleaned


def resolve_api_key(api_key: str | None) -> str | None:
    """Name of the client owning ``api_key``, or None if the key is unknown."""
    if not api_key:
        return None
    name = get_settings().api_keys.get(api_key)
    if name is None:
        logger.warning("Rejected unknown API key")
    return name
