"""Upload validation and request-scoped staging for answer-sheet images.

Architectural role:
- Enforce content-type and size constraints on the multipart `image` part.
- Write accepted bytes into a scoped upload directory under a unique name.
- Guarantee removal of the staged file on every exit path.

Processing lifecycle:
1. Pre-check `Content-Length` before the multipart body is parsed.
2. Check the declared content type before any byte is written.
3. Check the spooled part size when the parser reports one.
4. Copy chunks to the staging file, aborting at the first chunk that crosses
   the ceiling.
5. Yield the staged path to the caller; delete it when the block exits.

Side effects:
- Creates the upload directory on first use.
- Writes and deletes exactly one file per staged upload; disk I/O runs in
  worker threads via `asyncio.to_thread`.

Determinism considerations:
- Staged names are `uuid4` tokens, so concurrent uploads with identical
  original filenames never collide.
"""

import asyncio
import logging
import os
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator

from starlette.datastructures import UploadFile

from sheet_scanner.config import Settings
from sheet_scanner.errors import InputRejected


logger = logging.getLogger(__name__)


# ============================================================
# CONFIG
# ============================================================

ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/png", "image/jpg", "image/gif"}
ALLOWED_SUFFIXES = {".jpg", ".jpeg", ".png", ".gif"}
CHUNK_SIZE = 1024 * 1024
# Headroom for multipart boundaries and part headers on top of the file itself.
MULTIPART_OVERHEAD_BYTES = 64 * 1024

INVALID_TYPE_MESSAGE = "Invalid file type. Only JPEG, PNG, JPG, and GIF are allowed."


def too_large_message(settings: Settings) -> str:
    return f"File too large. Maximum size is {settings.max_upload_mb}MB."


# ============================================================
# VALIDATION
# ============================================================

def check_content_length(header_value: str | None, settings: Settings) -> None:
    """Reject a request whose declared body cannot possibly fit the ceiling.

    Missing or unparsable headers are left to the streaming check.
    """
    if not header_value:
        return
    try:
        declared = int(header_value)
    except ValueError:
        return

    if declared > settings.max_upload_bytes + MULTIPART_OVERHEAD_BYTES:
        logger.info("Rejected upload by Content-Length (%d bytes)", declared)
        raise InputRejected(too_large_message(settings))


def normalize_content_type(content_type: str | None) -> str:
    """Lower-case media type without parameters (`image/PNG; x=1` -> `image/png`)."""
    return (content_type or "").split(";", 1)[0].strip().lower()


def validate_content_type(content_type: str | None) -> None:
    if normalize_content_type(content_type) not in ALLOWED_CONTENT_TYPES:
        logger.info("Rejected upload with content type %r", content_type)
        raise InputRejected(INVALID_TYPE_MESSAGE)


def staged_file_name(original_name: str | None) -> str:
    """Unique staging name keeping only a recognized image suffix."""
    _, ext = os.path.splitext(os.path.basename(original_name or ""))
    ext = ext.lower()
    if ext not in ALLOWED_SUFFIXES:
        ext = ""
    return f"{uuid.uuid4().hex}{ext}"


# ============================================================
# CLEANUP
# ============================================================

def remove_staged_file(path: str | None) -> None:
    """Delete a staged file; a failed delete is logged, never raised."""
    if not path or not os.path.exists(path):
        return
    try:
        os.remove(path)
    except OSError:
        logger.exception("Failed to remove staged upload %s", path)


# ============================================================
# STAGING
# ============================================================

@asynccontextmanager
async def stage_upload(upload: UploadFile, settings: Settings) -> AsyncIterator[str]:
    """Validate `upload`, write it to the upload directory, and yield its path.

    Raises:
        InputRejected: Wrong content type or size over the ceiling. Nothing is
            left on disk in either case.
    """
    validate_content_type(upload.content_type)

    if upload.size is not None and upload.size > settings.max_upload_bytes:
        logger.info("Rejected upload of %d bytes", upload.size)
        raise InputRejected(too_large_message(settings))

    os.makedirs(settings.upload_dir, exist_ok=True)
    path = os.path.join(settings.upload_dir, staged_file_name(upload.filename))

    # Exclusive create: a name clash fails here, before cleanup owns the path.
    out = await asyncio.to_thread(open, path, "xb")
    try:
        written = 0
        try:
            while True:
                chunk = await upload.read(CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > settings.max_upload_bytes:
                    logger.info("Rejected upload exceeding %d bytes", settings.max_upload_bytes)
                    raise InputRejected(too_large_message(settings))
                await asyncio.to_thread(out.write, chunk)
        finally:
            await asyncio.to_thread(out.close)

        logger.debug("Staged %d bytes at %s", written, path)
        yield path
    finally:
        remove_staged_file(path)
