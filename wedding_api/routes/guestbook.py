"""
Guestbook routes.
Visitors post messages protected by their own password; the admin can remove any entry.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import logging

from wedding_api.database import get_db, with_query_timeout
from wedding_api.models import GuestbookEntry
from wedding_api.schemas import (
    ApiResponse,
    AdminGuestbookEntryResponse,
    GuestbookCreate,
    GuestbookEntryResponse,
)
from wedding_api.utils.auth import hash_password, verify_guestbook_password
from wedding_api.utils.jwt_auth import require_admin
from wedding_api.utils.rate_limit import limiter, RATE_LIMITS
from wedding_api.utils.timeutils import format_guestbook_date, utcnow

logger = logging.getLogger(__name__)

router = APIRouter()

GUESTBOOK_PAGE_SIZE = 50


def set_no_cache_headers(response: Response) -> None:
    """Admin edits must show up immediately on the page."""
    response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
    response.headers["Pragma"] = "no-cache"
    response.headers["Expires"] = "0"


async def _latest_entries(db: AsyncSession):
    result = await db.execute(
        select(GuestbookEntry)
        .where(GuestbookEntry.deleted_at.is_(None))
        .order_by(GuestbookEntry.created_at.desc(), GuestbookEntry.id.desc())
        .limit(GUESTBOOK_PAGE_SIZE)
    )
    return result.scalars().all()


@router.get("/guestbook", response_model=ApiResponse, response_model_exclude_unset=True)
async def get_guestbook(response: Response, db: AsyncSession = Depends(get_db)):
    """Get the 50 newest guestbook entries with display-formatted dates."""
    try:
        rows = await with_query_timeout(_latest_entries(db))
    except Exception as e:
        logger.error(f"Error fetching guestbook: {type(e).__name__}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch guestbook"
        )

    set_no_cache_headers(response)
    return ApiResponse(
        success=True,
        data=[
            GuestbookEntryResponse(
                id=row.id,
                name=row.name,
                content=row.content,
                created_at=format_guestbook_date(row.created_at),
            )
            for row in rows
        ],
    )


@router.post("/guestbook", response_model=ApiResponse, response_model_exclude_unset=True)
@limiter.limit(RATE_LIMITS["guestbook"])
async def create_guestbook_entry(
    request: Request,
    payload: GuestbookCreate,
    db: AsyncSession = Depends(get_db)
):
    """Create a guestbook entry. Only the password is hashed."""
    try:
        entry = GuestbookEntry(
            name=payload.name,
            password=hash_password(payload.password),
            content=payload.content,
        )
        db.add(entry)
        await db.commit()
        logger.info(f"Guestbook entry created: ID {entry.id}")
        return ApiResponse(success=True)
    except Exception as e:
        logger.error(f"Error creating guestbook entry: {str(e)}", exc_info=True)
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create guestbook entry"
        )


@router.delete("/guestbook", response_model=ApiResponse, response_model_exclude_unset=True)
async def delete_guestbook_entry(
    id: Optional[int] = Query(None),
    password: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    """
    Soft-delete a guestbook entry after checking its password.

    Raises:
        HTTPException: 400 without id/password, 404 if missing, 401 on a wrong password
    """
    if id is None or not password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="ID and password are required")

    result = await db.execute(
        select(GuestbookEntry).where(GuestbookEntry.id == id, GuestbookEntry.deleted_at.is_(None))
    )
    entry = result.scalar_one_or_none()
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")

    matches, needs_rehash = verify_guestbook_password(password, entry.password)
    if not matches:
        logger.info(f"Wrong password for guestbook entry {id}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Password does not match")

    try:
        if needs_rehash:
            entry.password = hash_password(password)
            logger.info(f"Legacy plaintext password re-hashed for guestbook entry {id}")
        entry.deleted_at = utcnow()
        await db.commit()
        return ApiResponse(success=True)
    except Exception as e:
        logger.error(f"Error deleting guestbook entry {id}: {str(e)}", exc_info=True)
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete message"
        )


@router.get("/admin/guestbook", response_model=ApiResponse, response_model_exclude_unset=True)
async def get_admin_guestbook(
    response: Response,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(require_admin)
):
    """Guestbook listing for the admin panel (raw timestamps)."""
    try:
        rows = await with_query_timeout(_latest_entries(db))
    except Exception as e:
        logger.error(f"Error fetching admin guestbook: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch guestbook"
        )

    set_no_cache_headers(response)
    return ApiResponse(
        success=True,
        data=[AdminGuestbookEntryResponse.model_validate(row) for row in rows],
    )


@router.delete("/admin/guestbook/{entry_id}", response_model=ApiResponse, response_model_exclude_unset=True)
async def delete_admin_guestbook_entry(
    entry_id: int,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(require_admin)
):
    """Soft-delete any guestbook entry without its password."""
    result = await db.execute(
        select(GuestbookEntry).where(GuestbookEntry.id == entry_id, GuestbookEntry.deleted_at.is_(None))
    )
    entry = result.scalar_one_or_none()
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")

    entry.deleted_at = utcnow()
    await db.commit()
    logger.info(f"Admin deleted guestbook entry {entry_id}")
    return ApiResponse(success=True)
