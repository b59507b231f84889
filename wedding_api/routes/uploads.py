"""
Serving of uploaded files from the content directory.
"""
from fastapi import APIRouter
from fastapi.responses import FileResponse, PlainTextResponse
import logging

from wedding_api.services import file_store
from wedding_api.services.file_store import ForbiddenFileTypeError, UnsafePathError

logger = logging.getLogger(__name__)

router = APIRouter()

CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".gif": "image/gif",
}


@router.get("/uploads/{file_path:path}")
async def serve_upload(file_path: str):
    """
    Serve an uploaded image.

    Traversal attempts get 400, disallowed extensions or paths leaving the
    upload root get 403, missing files get 404.
    """
    try:
        path = file_store.resolve_servable_file(file_path)
    except UnsafePathError:
        logger.warning(f"Rejected upload path: {file_path!r}")
        return PlainTextResponse("Invalid path", status_code=400)
    except ForbiddenFileTypeError:
        logger.warning(f"Forbidden upload path: {file_path!r}")
        return PlainTextResponse("File type not allowed", status_code=403)

    if not path.is_file():
        return PlainTextResponse("File not found", status_code=404)

    return FileResponse(
        path,
        media_type=CONTENT_TYPES[path.suffix.lower()],
        headers={"Cache-Control": "public, max-age=31536000, immutable"},
    )
