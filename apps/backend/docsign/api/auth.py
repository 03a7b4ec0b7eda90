"""
Owner authentication.

Owners log in with a magic link and receive an access token; every
owner-side route takes that token as the ``token`` query parameter.
Signers never authenticate here, their signing link is their credential.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docsign.core.logging import get_logger
from docsign.core.security import (
    create_access_token,
    create_magic_link_token,
    verify_access_token,
    verify_magic_link_token,
)
from docsign.models import User, get_db
from docsign.schemas import AuthRequest, AuthResponse, UserResponse

router = APIRouter(prefix="/auth", tags=["auth"])
LOGGER = get_logger(__name__)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


async def get_current_user(
    token: str,
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve an access token to an active user or fail with 401."""
    user_id = verify_access_token(token)
    if user_id is None:
        raise _unauthorized("Invalid or expired token")

    user = await db.get(User, user_id)
    if user is None or not user.is_active:
        raise _unauthorized("User not found")
    return user


async def _user_for_email(
    db: AsyncSession,
    email: str,
    name: str | None = None,
) -> User:
    """Look up an owner by email, registering them on first contact."""
    user = await db.scalar(select(User).where(User.email == email))

    if user is None:
        user = User(email=email, name=name)
        db.add(user)
        await db.commit()
        LOGGER.info("User registered", extra={"user_id": user.id})
    elif name and not user.name:
        user.name = name
        await db.commit()

    return user


@router.post("/magic-link", response_model=dict)
async def request_magic_link(
    auth_data: AuthRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Request a magic link for authentication.

    No mail is sent; the token is returned for the client to deliver.
    """
    await _user_for_email(db, auth_data.email, auth_data.name)
    token = create_magic_link_token(auth_data.email)

    return {
        "message": "Magic link generated",
        "token": token,
        "magic_link": f"/auth/verify?token={token}",
    }


@router.post("/verify", response_model=AuthResponse)
async def verify_magic_link(
    token: str,
    db: AsyncSession = Depends(get_db),
):
    """Exchange a magic link token for an access token."""
    email = verify_magic_link_token(token)
    if email is None:
        raise _unauthorized("Invalid or expired magic link")

    user = await _user_for_email(db, email)
    return AuthResponse(access_token=create_access_token(user.id))


@router.get("/me", response_model=UserResponse)
async def get_me(
    token: str,
    db: AsyncSession = Depends(get_db),
):
    """Get current user info."""
    return await get_current_user(token, db)
