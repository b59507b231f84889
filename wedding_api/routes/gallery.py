"""
Gallery routes.
Public listing for the invitation page plus the admin mutations
(register, reorder, soft delete).
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import logging

from wedding_api.database import get_db, with_query_timeout
from wedding_api.schemas import ApiResponse, GalleryImageCreate, GalleryImageResponse, GalleryReorderRequest
from wedding_api.services import gallery_service
from wedding_api.services.gallery_service import GalleryNotFoundError
from wedding_api.utils.jwt_auth import require_admin

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/gallery", response_model=ApiResponse, response_model_exclude_unset=True)
async def get_gallery(db: AsyncSession = Depends(get_db)):
    """
    Get live gallery images in display order (main image first).

    A slow or failing database yields an empty list instead of an error so the
    invitation page still renders.
    """
    try:
        images = await with_query_timeout(gallery_service.list_gallery_images(db))
    except Exception as e:
        logger.error(f"Error fetching gallery, returning empty list: {type(e).__name__}: {str(e)}")
        return ApiResponse(success=True, data=[])

    gallery = [GalleryImageResponse.from_model(img) for img in images]
    logger.debug(
        f"Gallery response: {len(gallery)} items, "
        f"main={sum(1 for g in gallery if g.image_type == 'main')}"
    )
    return ApiResponse(success=True, data=gallery)


@router.post("/gallery", response_model=ApiResponse, response_model_exclude_unset=True)
async def create_gallery_entry(
    payload: GalleryImageCreate,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(require_admin)
):
    """
    Register an already stored file as a gallery or main image.
    Requires an admin session.
    """
    try:
        image = await gallery_service.add_gallery_image(db, payload.filename, payload.image_type)
        return ApiResponse(success=True, data=GalleryImageResponse.from_model(image))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error creating gallery entry: {str(e)}", exc_info=True)
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create gallery entry"
        )


@router.delete("/gallery", response_model=ApiResponse, response_model_exclude_unset=True)
async def delete_gallery_entry(
    id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(require_admin)
):
    """
    Soft-delete a gallery image by query parameter id.
    Requires an admin session.
    """
    if id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="ID is required")
    return await _remove(db, id)


@router.put("/admin/gallery", response_model=ApiResponse, response_model_exclude_unset=True)
async def reorder_gallery(
    payload: GalleryReorderRequest,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(require_admin)
):
    """
    Reorder gallery images.

    The admin panel sends every gallery id in the desired display order;
    each image's order_index becomes its 1-based position.
    """
    try:
        final_ids = await gallery_service.reorder_gallery_images(db, payload.sortedIds)
        return ApiResponse(success=True, data={"sortedIds": final_ids, "count": len(payload.sortedIds)})
    except GalleryNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error reordering gallery images: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to reorder gallery images"
        )


@router.delete("/admin/gallery/{image_id}", response_model=ApiResponse, response_model_exclude_unset=True)
async def delete_admin_gallery_image(
    image_id: int,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(require_admin)
):
    """Soft-delete a gallery image from the admin panel."""
    return await _remove(db, image_id)


async def _remove(db: AsyncSession, image_id: int) -> ApiResponse:
    try:
        await gallery_service.remove_gallery_image(db, image_id)
        return ApiResponse(success=True)
    except GalleryNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Image not found")
    except Exception as e:
        logger.error(f"Error deleting gallery entry {image_id}: {str(e)}", exc_info=True)
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete gallery entry"
        )
