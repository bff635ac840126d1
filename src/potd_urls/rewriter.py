"""Thumbnail filename rewriting."""

from __future__ import annotations

import logging
from typing import Optional

from .whitelist import ExtensionWhitelist

logger = logging.getLogger(__name__)

PATH_SEPARATOR = "/"
WIDTH_SEPARATOR = "px-"


def rewrite_filename(filename: str, target_width: int) -> Optional[str]:
    """Replace the leading ``<width>px-`` token of a thumbnail filename.

    Only the first ``px-`` is treated as the width boundary; anything after it
    is kept verbatim, including further ``px-`` occurrences.

    Returns:
        The rewritten filename, or None when the filename has no width token
    """
    parts = filename.split(WIDTH_SEPARATOR)
    if len(parts) < 2:
        return None
    return f"{target_width}{WIDTH_SEPARATOR}{WIDTH_SEPARATOR.join(parts[1:])}"


def rewrite_url(
    raw_url: str, target_width: int, whitelist: Optional[ExtensionWhitelist] = None
) -> Optional[str]:
    """Rewrite a thumbnail URL so it requests ``target_width`` pixels.

    The width is not validated here; callers are expected to pass an already
    clamped value.

    Args:
        raw_url: URL extracted from the feed
        target_width: Thumbnail width in pixels
        whitelist: Allowed filename suffixes (defaults to .jpg/.jpeg)

    Returns:
        The rewritten URL, or None when the URL is skipped because its
        extension is not whitelisted or its filename has no width token
    """
    if whitelist is None:
        whitelist = ExtensionWhitelist()

    prefix, _, filename = raw_url.rpartition(PATH_SEPARATOR)
    if not whitelist.is_whitelisted(filename):
        logger.info("Skipping non-whitelisted file: %s", filename)
        return None

    new_filename = rewrite_filename(filename, target_width)
    if new_filename is None:
        logger.warning("Invalid filename (no width token): %s", filename)
        return None

    if PATH_SEPARATOR not in raw_url:
        return new_filename
    return f"{prefix}{PATH_SEPARATOR}{new_filename}"
