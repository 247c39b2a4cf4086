"""
Atomic file operations for stored documents.

Uploaded files and generated checklists are written through a temporary file
plus atomic rename, so the storage directory never holds a partially written
document.
"""

import os
import tempfile
from pathlib import Path
from typing import Union


def atomic_write(file_path: Union[str, Path], content: Union[str, bytes]) -> None:
    """
    Write content to file atomically using temporary file + rename.

    Text is encoded as UTF-8; bytes are written unchanged. The temporary file
    is created in the target directory so the rename stays on one filesystem.

    Args:
        file_path: Target file path (string or Path object)
        content: Text or binary content to write

    Raises:
        OSError: If directory creation, file write, or rename fails

    Examples:
        >>> atomic_write("uploads/direct_hire/1/passport.pdf", b"%PDF-1.4")
        >>> Path("uploads/direct_hire/1/passport.pdf").read_bytes()
        b'%PDF-1.4'
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    if isinstance(content, str):
        content = content.encode("utf-8")

    temp_fd = None
    temp_path = None

    try:
        temp_fd, temp_path = tempfile.mkstemp(
            dir=file_path.parent, prefix=f".{file_path.name}.", suffix=".tmp"
        )
        os.write(temp_fd, content)
        os.fsync(temp_fd)

        os.close(temp_fd)
        temp_fd = None

        # os.replace is atomic on both Unix and Windows
        os.replace(temp_path, file_path)

    except Exception:
        if temp_fd is not None:
            try:
                os.close(temp_fd)
            except OSError:
                pass  # Ignore errors during cleanup

        if temp_path is not None and os.path.exists(temp_path):
            try:
                os.unlink(temp_path)
            except OSError:
                pass  # Ignore errors during cleanup

        raise


def remove_file(file_path: Union[str, Path]) -> bool:
    """
    Delete a stored file if it exists.

    Returns:
        True if a file was removed, False if nothing was there
    """
    path = Path(file_path)
    if not path.is_file():
        return False
    path.unlink()
    return True


def safe_file_name(file_name: str) -> str:
    """
    Reduce a client-supplied file name to a safe basename.

    Examples:
        >>> safe_file_name("../../etc/passwd")
        'passwd'
        >>> safe_file_name("my passport.pdf")
        'my_passport.pdf'
    """
    base = Path(file_name.replace("\\", "/")).name.strip()
    cleaned = "".join(ch if ch.isalnum() or ch in "._-" else "_" for ch in base)
    cleaned = cleaned.lstrip(".")
    return cleaned or "upload"
