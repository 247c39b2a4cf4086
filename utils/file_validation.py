"""
Client-side checks for files attached to document requirements.

Only JPEG, PNG and PDF files up to 5 MB are accepted. Checks return the
violated constraint instead of raising so the tracker can report it inline
without touching its state.
"""

from typing import NamedTuple, Optional

from models.document import StagedFile

ALLOWED_UPLOAD_MIME_TYPES = frozenset({"image/jpeg", "image/jpg", "image/png", "application/pdf"})

DEFAULT_MAX_UPLOAD_BYTES = 5 * 1024 * 1024


class FileValidationIssue(NamedTuple):
    """A violated upload constraint, phrased for a notification."""

    constraint: str  # "format", "size" or "missing"
    title: str
    description: str


def validate_upload_file(
    file: Optional[StagedFile], max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
) -> Optional[FileValidationIssue]:
    """
    Check a staged file against the allowed formats and size limit.

    Args:
        file: The file to check (None when nothing was chosen)
        max_bytes: Maximum accepted size in bytes

    Returns:
        None when the file is acceptable, otherwise the violated constraint

    Examples:
        >>> validate_upload_file(StagedFile("a.pdf", "application/pdf", b"%PDF")) is None
        True
        >>> validate_upload_file(StagedFile("a.gif", "image/gif", b"GIF8")).constraint
        'format'
    """
    if file is None:
        return FileValidationIssue("missing", "Upload error", "Please choose a file")

    if (file.content_type or "").lower() not in ALLOWED_UPLOAD_MIME_TYPES:
        return FileValidationIssue(
            "format",
            "Invalid file format",
            "Please upload only JPEG, PNG, or PDF files.",
        )

    if file.size > max_bytes:
        limit_mb = max_bytes / (1024 * 1024)
        return FileValidationIssue(
            "size",
            "File too large",
            f"Please upload files smaller than {limit_mb:g}MB.",
        )

    return None
