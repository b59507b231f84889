"""
Image upload routes.
Uploads are validated, re-encoded to JPEG with Pillow and written to the
local content directory. Admin uploads are also recorded in the gallery.
"""
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import asyncio
import logging
import re

from wedding_api.config import settings
from wedding_api.database import get_db
from wedding_api.models import IMAGE_TYPES
from wedding_api.schemas import ApiResponse
from wedding_api.services import file_store, gallery_service
from wedding_api.utils.image_processor import (
    GALLERY_JPEG_QUALITY,
    GALLERY_MAX_DIMENSION,
    IMAGE_JPEG_QUALITY,
    IMAGE_MAX_DIMENSION,
    ImageProcessingError,
    process_image,
    validate_upload,
)
from wedding_api.utils.jwt_auth import require_admin

logger = logging.getLogger(__name__)

router = APIRouter()

TARGET_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


async def _read_upload(file: UploadFile) -> bytes:
    """
    Read and validate an uploaded file.

    Raises:
        HTTPException: 400 if the file is too large or of an unsupported type
    """
    # Reject oversized uploads before reading them into memory
    if file.size is not None and file.size > settings.MAX_UPLOAD_SIZE:
        size = file.size
        content = b""
    else:
        content = await file.read()
        size = len(content)

    logger.info(
        f"Upload received: filename={file.filename}, content_type={file.content_type}, "
        f"size={size / 1024 / 1024:.2f}MB"
    )

    try:
        validate_upload(file.filename, file.content_type, size, settings.MAX_UPLOAD_SIZE)
    except ImageProcessingError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return content


async def _process_and_store(content: bytes, relative_path: str, max_dimension: int, quality: int) -> None:
    """
    Re-encode and write the image in a worker thread, racing the upload timeout.

    Raises:
        HTTPException: 400 if the image cannot be decoded, 504 on timeout,
            500 if the file cannot be written
    """
    def work():
        jpeg_bytes = process_image(content, max_dimension=max_dimension, quality=quality)
        file_store.write_file(relative_path, jpeg_bytes)

    try:
        await asyncio.wait_for(asyncio.to_thread(work), timeout=settings.UPLOAD_TIMEOUT)
    except asyncio.TimeoutError:
        # The worker thread cannot be cancelled; a late file is left for the orphan sweep
        logger.error(f"Image processing timed out after {settings.UPLOAD_TIMEOUT}s: {relative_path}")
        raise HTTPException(status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail="Image upload timed out")
    except ImageProcessingError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except OSError as e:
        logger.error(f"Failed to store image {relative_path}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to store uploaded image"
        )


@router.post("/admin/upload", response_model=ApiResponse, response_model_exclude_unset=True)
async def upload_gallery_image(
    file: UploadFile = File(...),
    image_type: str = Form("gallery"),
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(require_admin)
):
    """
    Upload a gallery or main image and record it in the gallery table.

    Uploading a main image replaces the current one.
    """
    if image_type not in IMAGE_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Invalid image_type. Must be "main" or "gallery"'
        )

    content = await _read_upload(file)
    relative_path = file_store.generate_gallery_filename(image_type)

    await _process_and_store(content, relative_path, GALLERY_MAX_DIMENSION, GALLERY_JPEG_QUALITY)

    try:
        image = await gallery_service.add_gallery_image(db, relative_path, image_type)
    except Exception as e:
        logger.error(f"Failed to record upload {relative_path}: {str(e)}", exc_info=True)
        await db.rollback()
        file_store.delete_physical_file(relative_path)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to upload file"
        )

    logger.info(f"Admin upload stored: ID {image.id}, {relative_path} ({image_type})")
    return ApiResponse(success=True, data={"id": image.id, "filename": relative_path})


@router.post("/upload/image", response_model=ApiResponse, response_model_exclude_unset=True)
async def upload_image(
    file: UploadFile = File(...),
    targetId: Optional[str] = Form(None),
    admin: dict = Depends(require_admin)
):
    """
    Upload an image to the content directory without touching the gallery table.
    The file is named after targetId when given, otherwise after the current timestamp.
    """
    if targetId and not TARGET_ID_PATTERN.match(targetId):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="targetId may only contain letters, digits, '-' and '_'"
        )
    # main_* and gallery_* names belong to gallery rows and the orphan sweep
    if targetId and targetId.startswith(file_store.GALLERY_FILE_PREFIXES):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"targetId may not start with {' or '.join(file_store.GALLERY_FILE_PREFIXES)}"
        )

    content = await _read_upload(file)
    file_name = file_store.generate_image_filename(targetId)
    relative_path = f"{file_store.IMAGES_SUBDIR}/{file_name}"

    await _process_and_store(content, relative_path, IMAGE_MAX_DIMENSION, IMAGE_JPEG_QUALITY)

    file_url = f"/uploads/{relative_path}"
    logger.info(f"Image uploaded: {file_url}")
    return ApiResponse(success=True, data={"fileUrl": file_url, "fileName": file_name})
