"""
Scratch storage for uploaded PDFs.

An upload is written to the upload directory under a random name for the
duration of one request and removed on every exit path.
"""
import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Optional, Union

from fastapi import UploadFile

from .errors import UploadTooLarge

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_BYTES = 1024 * 1024


@dataclass(frozen=True)
class StoredUpload:
    path: Path
    size: int
    filename: Optional[str] = None


def discard_upload(path: Union[str, Path]) -> bool:
    """
    Delete a stored upload. Best-effort: a missing file is fine and an
    OSError is logged, never raised.

    Returns:
        True if a file was removed
    """
    path = Path(path)
    try:
        if path.exists():
            path.unlink()
            logger.debug(f"[upload] Removed {path}")
            return True
        return False
    except OSError as e:
        logger.warning(f"[upload] Could not remove {path}: {e}")
        return False


@asynccontextmanager
async def stored_upload(
    upload: UploadFile,
    upload_dir: Union[str, Path],
    max_bytes: int,
    chunk_bytes: int = DEFAULT_CHUNK_BYTES,
) -> AsyncIterator[StoredUpload]:
    """
    Copy an UploadFile to upload_dir and yield its location.

    The file is deleted when the block exits, whether it returns or raises.

    Raises:
        UploadTooLarge: upload is larger than max_bytes (partial file removed)
    """
    base_dir = Path(upload_dir)
    base_dir.mkdir(parents=True, exist_ok=True)
    path = base_dir / f"{uuid.uuid4().hex}.pdf"

    try:
        size = 0
        with open(path, "wb") as f:
            while True:
                chunk = await upload.read(chunk_bytes)
                if not chunk:
                    break
                size += len(chunk)
                if size > max_bytes:
                    logger.warning(
                        f"[upload] Rejected {upload.filename!r}: more than {max_bytes} bytes"
                    )
                    raise UploadTooLarge(max_bytes)
                await asyncio.to_thread(f.write, chunk)

        logger.debug(f"[upload] Stored {size} bytes from {upload.filename!r} at {path}")
        yield StoredUpload(path=path, size=size, filename=upload.filename)
    finally:
        discard_upload(path)
