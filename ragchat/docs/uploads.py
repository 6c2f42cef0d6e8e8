"""Upload surface validation - runs before any processing."""

from pathlib import PurePath

from ragchat.config import Settings
from ragchat.docs.extract import DOCX, MARKDOWN, PDF, PLAIN
from ragchat.errors import UploadRejectedError

MEDIA_TYPES_BY_EXTENSION = {
    ".pdf": PDF,
    ".txt": PLAIN,
    ".md": MARKDOWN,
    ".docx": DOCX,
}


def file_extension(filename: str) -> str:
    """Lowercased extension including the dot ("" when absent)."""
    return PurePath(filename).suffix.lower()


def guess_media_type(filename: str) -> str:
    """Media type for a filename, falling back to application/octet-stream."""
    return MEDIA_TYPES_BY_EXTENSION.get(file_extension(filename), "application/octet-stream")


def validate_upload(filename: str, size: int, settings: Settings) -> None:
    """Reject uploads violating the extension allow-list or size limit.

    Raises:
        UploadRejectedError: reason is "extension", "size" or "empty"
    """
    allowed = {ext.lower() for ext in settings.upload_allowed_extensions}
    extension = file_extension(filename)

    if extension not in allowed:
        raise UploadRejectedError(
            f"File type {extension or '(none)'} is not allowed; "
            f"accepted: {', '.join(sorted(allowed))}",
            reason="extension",
        )

    if size <= 0:
        raise UploadRejectedError("Uploaded file is empty", reason="empty")

    if size > settings.upload_max_bytes:
        raise UploadRejectedError(
            f"File is {size} bytes; maximum is {settings.upload_max_bytes} bytes",
            reason="size",
        )
