"""
Local content directory for uploaded photos.
Files live under UPLOAD_DIR; the database stores paths relative to it.
"""
import logging
import secrets
import time
from pathlib import Path
from typing import List, Optional, Tuple

from wedding_api.config import settings

logger = logging.getLogger(__name__)

IMAGES_SUBDIR = "images"
GALLERY_FILE_PREFIXES = ("main_", "gallery_")
SERVABLE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".gif"}


class UnsafePathError(ValueError):
    """Raised when a requested path tries to leave the upload root."""


class ForbiddenFileTypeError(ValueError):
    """Raised when a requested file has an extension that is not served."""


def upload_root() -> Path:
    return Path(settings.UPLOAD_DIR)


def ensure_image_dir() -> Path:
    """
    Create <UPLOAD_DIR>/images if needed.

    Returns:
        Path: The images directory

    Raises:
        OSError: If the directory cannot be created
    """
    images_dir = upload_root() / IMAGES_SUBDIR
    images_dir.mkdir(parents=True, exist_ok=True)
    return images_dir


def generate_gallery_filename(image_type: str) -> str:
    """Unique relative path for an admin upload, e.g. images/gallery_1700000000000_k3j2h1.jpg."""
    timestamp = int(time.time() * 1000)
    return f"{IMAGES_SUBDIR}/{image_type}_{timestamp}_{secrets.token_hex(6)}.jpg"


def generate_image_filename(target_id: Optional[str] = None) -> str:
    """File name for the generic image upload: <targetId>.jpg or <ms timestamp>.jpg."""
    if target_id:
        return f"{target_id}.jpg"
    return f"{int(time.time() * 1000)}.jpg"


def write_file(relative_path: str, content: bytes) -> Path:
    """Write bytes under the upload root and return the absolute path."""
    ensure_image_dir()
    path = resolve_upload_path(relative_path.split("/"))
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    logger.info(f"Saved file: {path} ({len(content):,} bytes)")
    return path


def delete_physical_file(relative_path: Optional[str]) -> bool:
    """
    Best-effort removal of a stored file.
    A missing file is not an error; other failures are logged and swallowed.

    Returns:
        bool: True if a file was removed
    """
    if not relative_path:
        return False

    try:
        path = resolve_upload_path(relative_path.split("/"))
    except ValueError as e:
        logger.warning(f"Refusing to delete file outside upload root: {relative_path} ({e})")
        return False

    try:
        path.unlink()
        logger.info(f"File deleted: {path}")
        return True
    except FileNotFoundError:
        logger.info(f"File already gone, nothing to delete: {path}")
    except OSError as e:
        logger.warning(f"Could not delete file {path}: {str(e)}")
    return False


def resolve_upload_path(parts: List[str]) -> Path:
    """
    Resolve path segments against the upload root.

    Raises:
        UnsafePathError: If a segment is empty, '..', contains a backslash or
            NUL byte, or the resolved path leaves the upload root
    """
    for part in parts:
        if part in ("", ".", "..") or "\\" in part or "\x00" in part or "/" in part:
            raise UnsafePathError(f"Invalid path segment: {part!r}")

    root = upload_root().resolve()
    path = root.joinpath(*parts).resolve()
    if not path.is_relative_to(root):
        raise UnsafePathError("Path escapes the upload root")
    return path


def resolve_servable_file(path: str) -> Path:
    """
    Validate a request path for the uploads route.

    Raises:
        UnsafePathError: For traversal attempts (400)
        ForbiddenFileTypeError: For extensions outside the allow-list or
            symlinks pointing out of the root (403)
    """
    parts = path.split("/")
    for part in parts:
        if part in ("", ".", "..") or "\\" in part or "\x00" in part:
            raise UnsafePathError(f"Invalid path segment: {part!r}")

    if Path(parts[-1]).suffix.lower() not in SERVABLE_EXTENSIONS:
        raise ForbiddenFileTypeError("File type not allowed")

    try:
        resolved = resolve_upload_path(parts)
    except UnsafePathError as e:
        # Only reachable through a symlink that points outside the root
        raise ForbiddenFileTypeError(str(e))

    # A symlink inside the root may still point at a non-image file
    if resolved.suffix.lower() not in SERVABLE_EXTENSIONS:
        raise ForbiddenFileTypeError("File type not allowed")
    return resolved


def list_image_files(prefixes: Optional[Tuple[str, ...]] = None) -> List[str]:
    """Relative paths of files under <UPLOAD_DIR>/images, optionally filtered by name prefix."""
    images_dir = upload_root() / IMAGES_SUBDIR
    if not images_dir.is_dir():
        return []
    return sorted(
        f"{IMAGES_SUBDIR}/{p.name}"
        for p in images_dir.iterdir()
        if p.is_file()
        and not p.name.startswith(".")
        and (prefixes is None or p.name.startswith(prefixes))
    )


def file_exists(relative_path: str) -> bool:
    try:
        return resolve_upload_path(relative_path.split("/")).is_file()
    except ValueError:
        return False
