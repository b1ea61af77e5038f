"""File validation — upload type, size and name checks.

Uploads never pass through the API: the client asks for a pre-signed URL
and PUTs the bytes straight to S3. Validation therefore runs on the
metadata the client declares (name, MIME type, size) before a URL is
issued.
"""

import re

from loguru import logger

from ..config import settings

# Maximum upload size (10 MB by default)
MAX_FILE_SIZE = settings.max_upload_size_mb * 1024 * 1024

# MIME types scholars may attach to requests and tasks
ALLOWED_TYPES = {
    "application/pdf": "pdf",
    "application/msword": "doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "application/vnd.ms-excel": "xls",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": "xlsx",
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "text/plain": "txt",
}

# Executable and script extensions never accepted, whatever MIME type is claimed
BLOCKED_EXTENSIONS = {
    ".exe", ".bat", ".cmd", ".com", ".msi", ".scr", ".pif",
    ".sh", ".ps1", ".vbs", ".js", ".jar", ".dll", ".app",
}

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


def validate_upload(file_name: str, file_type: str, file_size: int) -> tuple[bool, str | None]:
    """Validate declared upload metadata.

    Returns (True, None) when acceptable, else (False, reason).
    """
    if not file_name or not file_name.strip():
        return False, "File name is required"

    ext = _get_extension(file_name)
    if ext in BLOCKED_EXTENSIONS:
        logger.warning("Blocked upload of executable file type {}", ext)
        return False, f"File extension {ext} is not allowed"

    if file_type not in ALLOWED_TYPES:
        return False, f"File type {file_type} is not allowed"

    if file_size <= 0:
        return False, "Empty file"

    if file_size > MAX_FILE_SIZE:
        return False, f"File size exceeds {settings.max_upload_size_mb}MB limit"

    return True, None


def sanitize_filename(file_name: str) -> str:
    """Replace every character outside [A-Za-z0-9.-] with an underscore."""
    return _UNSAFE_CHARS.sub("_", file_name)


def _get_extension(filename: str) -> str:
    """Get lowercase file extension."""
    if not filename:
        return ""
    parts = filename.lower().rsplit(".", 1)
    return f".{parts[-1]}" if len(parts) > 1 else ""
