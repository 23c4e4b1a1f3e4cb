"""MIME type selection for staged answer-sheet images.

Selection order:
    1. Content sniffing: Pillow identifies the encoded format from the file's
       header bytes without decoding the full image.
    2. Suffix fallback when Pillow cannot identify the content:
       `.png` -> `image/png`, `.gif` -> `image/gif`, anything else -> `image/jpeg`.

The fallback keeps the historical suffix policy, so a file whose content is
unrecognized and whose extension is wrong is still sent with a wrong type.
"""

import logging
import os

from PIL import Image, UnidentifiedImageError


logger = logging.getLogger(__name__)

PIL_FORMAT_MIME_TYPES = {
    "JPEG": "image/jpeg",
    "MPO": "image/jpeg",
    "PNG": "image/png",
    "GIF": "image/gif",
}


def mime_type_from_suffix(path: str) -> str:
    """Suffix heuristic used when content sniffing is inconclusive."""
    lowered = path.lower()
    if lowered.endswith(".png"):
        return "image/png"
    if lowered.endswith(".gif"):
        return "image/gif"
    return "image/jpeg"


def sniff_mime_type(path: str) -> str | None:
    """Return the MIME type Pillow detects for `path`, or `None`."""
    try:
        with Image.open(path) as img:
            image_format = img.format
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError):
        return None
    return PIL_FORMAT_MIME_TYPES.get(image_format or "")


def detect_mime_type(path: str) -> str:
    """Pick the MIME type to declare for the inline image sent to the model."""
    sniffed = sniff_mime_type(path)
    if sniffed:
        return sniffed

    fallback = mime_type_from_suffix(path)
    logger.warning(
        "Could not identify image content of %s; using suffix type %s",
        os.path.basename(path),
        fallback,
    )
    return fallback
