"""Local file storage for uploaded payment proofs."""

import shutil
import uuid
from pathlib import Path
from typing import BinaryIO

from rewards.logging_config import get_logger
from rewards.settings import settings

logger = get_logger(__name__)


def save_upload(fileobj: BinaryIO, filename: str, owner_id: int, upload_dir: str | None = None) -> str:
    """Copy an uploaded file into the upload directory.

    Args:
        fileobj: Readable binary stream
        filename: Original client-side filename
        owner_id: Account the file belongs to
        upload_dir: Target directory (defaults to settings)

    Returns:
        Stored file path
    """
    directory = Path(upload_dir or settings.upload_dir)
    directory.mkdir(parents=True, exist_ok=True)

    # Drop any client-supplied directory components
    safe_name = Path(filename).name or "upload"
    target = directory / f"{owner_id}_{uuid.uuid4().hex[:8]}_{safe_name}"

    with target.open("wb") as buffer:
        shutil.copyfileobj(fileobj, buffer)

    logger.info("upload_saved", owner_id=owner_id, path=str(target))
    return str(target)
