import logging
from pathlib import Path

from fastapi import BackgroundTasks

from account_service.core import config

logger = logging.getLogger(__name__)


def resolve_upload_path(reference: str, upload_dir: str | None = None) -> Path | None:
    """Map a stored file reference onto the upload directory, or None if it escapes it."""
    root = Path(upload_dir or config.UPLOAD_DIR).resolve()
    candidate = (root / reference.lstrip("/")).resolve()
    if candidate != root and root not in candidate.parents:
        return None
    return candidate


def delete_file(reference: str, upload_dir: str | None = None) -> bool:
    path = resolve_upload_path(reference, upload_dir)
    if path is None:
        logger.warning("Refusing to delete %s: outside the upload directory", reference)
        return False
    try:
        path.unlink()
    except FileNotFoundError:
        logger.info("File %s was already removed", reference)
        return False
    except OSError:
        logger.exception("Failed to delete file %s", reference)
        return False
    logger.info("Deleted file %s", reference)
    return True


def schedule_file_deletion(background_tasks: BackgroundTasks, reference: str | None) -> None:
    if not reference:
        return
    background_tasks.add_task(delete_file, reference)
