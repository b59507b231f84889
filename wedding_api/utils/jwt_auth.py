"""
JWT session utilities for the admin panel.
The token travels in the httpOnly admin_session cookie (Authorization header as fallback).
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
import logging

from jose import JWTError, jwt
from fastapi import HTTPException, status, Header, Request, Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wedding_api.config import settings
from wedding_api.models import Admin
from wedding_api.utils.auth import verify_password

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
SESSION_COOKIE_NAME = "admin_session"


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Dictionary of claims to include in token
        expires_delta: Optional custom expiration time (default: ADMIN_SESSION_HOURS)

    Returns:
        str: Encoded JWT token
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(hours=settings.ADMIN_SESSION_HOURS))

    to_encode.update({
        "exp": expire,
        "iat": now,
        "type": "access"
    })

    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=ALGORITHM)


def verify_token(token: str) -> dict:
    """
    Verify and decode a JWT token. Expiry is checked by jose.

    Raises:
        HTTPException: 401 if token is invalid, expired, or malformed
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication token is invalid or expired"
        )

    if payload.get("type") != "access" or payload.get("role") != "admin":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type"
        )
    return payload


def _extract_token(request: Request, authorization: Optional[str]) -> Optional[str]:
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if not token and authorization:
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            token = parts[1]
    return token


def require_admin(
    request: Request,
    authorization: Optional[str] = Header(None, description="Bearer token (fallback to cookie)")
) -> dict:
    """
    FastAPI dependency guarding admin endpoints.

    Returns:
        dict: Decoded token payload

    Raises:
        HTTPException: 401 if the session is missing, invalid, or expired
    """
    token = _extract_token(request, authorization)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"}
        )
    return verify_token(token)


def is_admin_session(request: Request) -> bool:
    """Non-raising variant used by GET /api/admin/verify."""
    token = _extract_token(request, request.headers.get("authorization"))
    if not token:
        return False
    try:
        verify_token(token)
    except HTTPException:
        return False
    return True


async def authenticate_admin(db: AsyncSession, username: str, password: str) -> Admin:
    """
    Look up an admin account and check its password.

    Raises:
        HTTPException: 401 if the username is unknown or the password is wrong
    """
    result = await db.execute(select(Admin).where(Admin.username == username))
    admin = result.scalar_one_or_none()

    if admin is None or not verify_password(password, admin.password):
        logger.warning(f"Failed admin login for username={username!r}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password"
        )
    return admin


def set_session_cookie(response: Response, admin: Admin) -> str:
    token = create_access_token({"role": "admin", "sub": str(admin.id), "username": admin.username})
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.ADMIN_SESSION_HOURS * 3600,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        path="/",
    )
    return token


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(key=SESSION_COOKIE_NAME, path="/")
