"""
Upload storage on the local filesystem.

Files live under UPLOAD_DIR/<user_id>/<sanitized filename>; the database
stores the relative path "<user_id>/<filename>".
"""

import asyncio
import logging
import re
import secrets
from email.utils import formatdate
from pathlib import Path

from fastapi import UploadFile

from app.core.config import settings
from app.modules.shared import ServiceError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".pdf"}
CACHE_MAX_AGE_SECONDS = 86400

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class FileTooLargeError(ServiceError):
    def __init__(self, max_bytes: int):
        super().__init__(
            message=f"File exceeds the maximum size of {max_bytes // (1024 * 1024)}MB",
            error_code="FILE_TOO_LARGE",
            status_code=413,
        )


class InvalidFileTypeError(ServiceError):
    def __init__(self):
        super().__init__(
            message="Only JPG, PNG and PDF files are allowed",
            error_code="INVALID_FILE_TYPE",
            status_code=400,
        )


def upload_root() -> Path:
    return Path(settings.upload_dir).resolve()


def sanitize_filename(filename: str) -> str:
    """Replace anything outside [A-Za-z0-9._-] with an underscore."""
    cleaned = _UNSAFE_CHARS.sub("_", Path(filename).name)
    return cleaned.lstrip(".") or "upload"


def resolve_path(relative_path: str) -> Path | None:
    """
    Resolve a stored relative path inside the upload root.

    Returns None for paths that escape the root.
    """
    root = upload_root()
    candidate = (root / relative_path).resolve()
    if not candidate.is_relative_to(root):
        logger.warning(f"Rejected file path outside upload root: {relative_path}")
        return None
    return candidate


def check_file_type(upload: UploadFile) -> str:
    """
    Sanitized filename of an upload with an allowed extension.

    Raises:
        InvalidFileTypeError: Extension is not jpg, jpeg, png or pdf
    """
    original = sanitize_filename(upload.filename or "upload")
    if Path(original).suffix.lower() not in ALLOWED_EXTENSIONS:
        raise InvalidFileTypeError()
    return original


async def save_upload(user_id: str, upload: UploadFile, prefix: str | None = None) -> tuple[str, int]:
    """
    Validate and store an uploaded file.

    Args:
        user_id: Owner of the file, used as the directory name
        upload: The multipart upload
        prefix: Optional name prefix such as the document type

    Returns:
        (relative path, size in bytes)

    Raises:
        InvalidFileTypeError: Extension is not jpg, jpeg, png or pdf
        FileTooLargeError: Upload exceeds the configured maximum
    """
    original = check_file_type(upload)
    extension = Path(original).suffix.lower()

    content = await upload.read(settings.max_upload_size_bytes + 1)
    if len(content) > settings.max_upload_size_bytes:
        raise FileTooLargeError(settings.max_upload_size_bytes)

    stem = Path(original).stem
    name_parts = [part for part in (prefix, stem, secrets.token_hex(4)) if part]
    filename = f"{'_'.join(name_parts)}{extension}"

    directory = upload_root() / str(user_id)
    await asyncio.to_thread(directory.mkdir, parents=True, exist_ok=True)
    await asyncio.to_thread((directory / filename).write_bytes, content)

    logger.info(f"Stored upload {user_id}/{filename} ({len(content)} bytes)")
    return f"{user_id}/{filename}", len(content)


async def delete_file(relative_path: str | None) -> None:
    """Remove a stored file. Missing files and IO errors are logged only."""
    if not relative_path:
        return

    path = resolve_path(relative_path)
    if path is None:
        return

    try:
        await asyncio.to_thread(path.unlink, missing_ok=True)
    except OSError as e:
        logger.error(f"Error deleting file {relative_path}: {e}")


def cache_headers(path: Path) -> dict[str, str]:
    """Caching headers for a served upload: max-age, Last-Modified and ETag."""
    stat = path.stat()
    mtime_ms = int(stat.st_mtime * 1000)
    return {
        "Cache-Control": f"public, max-age={CACHE_MAX_AGE_SECONDS}",
        "Last-Modified": formatdate(stat.st_mtime, usegmt=True),
        "ETag": f'"{mtime_ms}-{stat.st_size}"',
    }
