from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Depends, Header, Request
from jose import jwt, JWTError, ExpiredSignatureError
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import JWT_SECRET, JWT_ALGORITHM, JWT_EXPIRES_MINUTES
from app.core.db import get_db
from app.core.errors import AuthError
from app.models.user import User


@dataclass(frozen=True)
class TokenIdentity:
    user_id: str
    username: str | None = None
    email: str | None = None


# ------------------------------------------------------------
# Issuing
# ------------------------------------------------------------
def create_access_token(user, expires_minutes: int = JWT_EXPIRES_MINUTES) -> str:
    now = datetime.now(timezone.utc)
    claims = {
        "sub": str(user.id),
        "username": user.username,
        "email": user.email,
        "iat": now,
        "exp": now + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(claims, JWT_SECRET, algorithm=JWT_ALGORITHM)


# ------------------------------------------------------------
# Verification
# ------------------------------------------------------------
def _get_bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise AuthError("No authorization header provided")

    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0] != "Bearer":
        raise AuthError("Invalid authorization header format. Use: Bearer <token>")

    token = parts[1].strip()
    if not token:
        raise AuthError("Missing bearer token")

    return token


def decode_access_token(token: str) -> TokenIdentity:
    try:
        payload: Dict[str, Any] = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise AuthError("Token has expired")
    except JWTError:
        raise AuthError("Invalid token")

    sub = payload.get("sub")
    if not sub:
        raise AuthError("Token missing sub claim")

    return TokenIdentity(
        user_id=str(sub),
        username=payload.get("username"),
        email=payload.get("email"),
    )


# ------------------------------------------------------------
# Dependencies
# ------------------------------------------------------------
def get_current_user(
    authorization: Optional[str] = Header(default=None),
) -> TokenIdentity:
    token = _get_bearer_token(authorization)
    identity = decode_access_token(token)
    logger.debug(f"[auth] user_id={identity.user_id}")
    return identity


def get_optional_user(
    authorization: Optional[str] = Header(default=None),
) -> TokenIdentity | None:
    try:
        return get_current_user(authorization)
    except AuthError as e:
        if authorization:
            logger.debug(f"[auth] ignoring bad token on optional route: {e.message}")
        return None


async def get_owner_id(
    request: Request,
    authorization: Optional[str] = Header(default=None),
    db: AsyncSession = Depends(get_db),
) -> str:
    """
    Resolve whose media list a request works on.

    Normally the bearer token is required. In demo mode an absent or invalid
    token falls back to the fixed demo user. A token whose user has since
    been deleted is rejected before any item is touched.
    """
    if not request.app.state.demo_mode:
        identity = get_current_user(authorization)
    else:
        identity = get_optional_user(authorization)
        if identity is None:
            return request.app.state.demo_user_id

    if await db.get(User, identity.user_id) is None:
        logger.info(f"[auth] token for missing user_id={identity.user_id}")
        raise AuthError("User not found")
    return identity.user_id
