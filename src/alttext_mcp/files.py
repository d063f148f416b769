from __future__ import annotations

import base64
from pathlib import Path
from typing import Iterable, Optional

from alttext_mcp.api.errors import LocalValidationError

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MiB

IMAGE_EXTENSIONS = (
    ".jpg",
    ".jpeg",
    ".png",
    ".gif",
    ".webp",
    ".bmp",
    ".tiff",
    ".tif",
    ".svg",
    ".avif",
)


def resolve_file(
    file_path: str,
    allowed_extensions: Optional[Iterable[str]] = None,
    max_size: int = MAX_FILE_SIZE,
) -> Path:
    """Resolve `file_path` to its canonical location and check it is an acceptable upload.

    Raises LocalValidationError for a missing path, a disallowed extension,
    a non-regular file, or a file larger than `max_size` bytes.
    """
    if not file_path or "\x00" in file_path:
        raise LocalValidationError(f"File not found: {file_path}")
    try:
        resolved = Path(file_path).expanduser().resolve(strict=True)
    except (OSError, RuntimeError):
        raise LocalValidationError(f"File not found: {file_path}") from None

    if allowed_extensions is not None:
        allowed = tuple(allowed_extensions)
        ext = resolved.suffix.lower()
        if ext not in allowed:
            raise LocalValidationError(
                f"Unsupported file type: {ext or '(none)'}. Supported: {', '.join(allowed)}"
            )

    if not resolved.is_file():
        raise LocalValidationError(f"Not a regular file: {file_path}")
    size = resolved.stat().st_size
    if size > max_size:
        raise LocalValidationError(f"File too large ({size} bytes, max {max_size})")
    return resolved


def encode_base64(path: Path) -> str:
    return base64.b64encode(path.read_bytes()).decode("utf-8")
