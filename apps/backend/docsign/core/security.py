"""
Token handling for owner sessions and signer capability links.

Every token is an HS256 JWT signed with ``settings.secret_key`` and carries a
``type`` claim, so a token issued for one purpose is never accepted for
another.
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from docsign.core.config import get_settings

settings = get_settings()

ALGORITHM = "HS256"

ACCESS = "access"
MAGIC_LINK = "magic_link"
SIGNING = "signing"

MAGIC_LINK_LIFETIME = timedelta(minutes=15)


def _encode(token_type: str, subject: str, expires_in: timedelta | None, **claims: Any) -> str:
    payload = {"type": token_type, "sub": subject, **claims}
    if expires_in is not None:
        payload["exp"] = datetime.now(timezone.utc) + expires_in
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def decode_token(token: str, token_type: str) -> dict | None:
    """Return the payload of a valid, unexpired token of the given type."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return None
    if payload.get("type") != token_type or not payload.get("sub"):
        return None
    return payload


def create_access_token(subject: str | Any, expires_delta: timedelta | None = None) -> str:
    """Create the bearer token an owner sends with every request."""
    return _encode(
        ACCESS,
        str(subject),
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes),
    )


def verify_access_token(token: str) -> str | None:
    """Return the user id an access token was issued to."""
    payload = decode_token(token, ACCESS)
    return payload["sub"] if payload else None


def create_magic_link_token(email: str) -> str:
    return _encode(MAGIC_LINK, email, MAGIC_LINK_LIFETIME)


def verify_magic_link_token(token: str) -> str | None:
    """Verify a magic link token and return the email."""
    payload = decode_token(token, MAGIC_LINK)
    return payload["sub"] if payload else None


def create_signing_token(document_id: str, signer_id: str) -> str:
    """
    Create the capability token that lets a signer open their session.

    The token names the document and signer and carries a random nonce, so
    two tokens for the same pair never collide. It does not expire: a
    pending document stays signable until it completes or is deleted.
    """
    return _encode(
        SIGNING,
        signer_id,
        None,
        document_id=document_id,
        nonce=generate_secure_token(),
    )


def verify_signing_token(token: str) -> dict | None:
    """Return ``sub`` (signer id) and ``document_id`` of a signing token."""
    payload = decode_token(token, SIGNING)
    if payload and payload.get("document_id"):
        return payload
    return None


def build_sign_url(token: str) -> str:
    """Build the link sent to a signer."""
    return f"{settings.signing_link_base_url.rstrip('/')}/sign/{token}"


def generate_secure_token(length: int = 32) -> str:
    return secrets.token_urlsafe(length)
