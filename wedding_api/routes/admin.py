"""
Admin session routes: login, logout and session check.
The session is a JWT in the httpOnly admin_session cookie.
"""
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from wedding_api.database import get_db
from wedding_api.schemas import AdminLoginRequest, ApiResponse
from wedding_api.utils.jwt_auth import (
    authenticate_admin,
    clear_session_cookie,
    is_admin_session,
    set_session_cookie,
)
from wedding_api.utils.rate_limit import limiter, RATE_LIMITS

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin")


@router.post("/login", response_model=ApiResponse, response_model_exclude_unset=True)
@limiter.limit(RATE_LIMITS["login"])
async def login(
    request: Request,
    response: Response,
    credentials: AdminLoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Log in with username and password.
    Sets the admin_session cookie for ADMIN_SESSION_HOURS.

    Raises:
        HTTPException: 401 on invalid credentials
    """
    try:
        admin = await authenticate_admin(db, credentials.username, credentials.password)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Login error: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Login failed due to a server error"
        )

    set_session_cookie(response, admin)
    logger.info(f"Admin logged in: {admin.username}")
    return ApiResponse(success=True, data={"id": admin.id, "username": admin.username})


@router.post("/logout", response_model=ApiResponse, response_model_exclude_unset=True)
async def logout(response: Response):
    clear_session_cookie(response)
    return ApiResponse(success=True)


@router.get("/verify", response_model=ApiResponse, response_model_exclude_unset=True)
async def verify(request: Request):
    """Report whether the request carries a valid admin session."""
    return ApiResponse(success=True, data={"authenticated": is_admin_session(request)})
