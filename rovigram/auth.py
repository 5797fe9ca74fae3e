import logging
from datetime import timedelta
from typing import Optional

import bcrypt
from fastapi import Cookie, Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError as PydanticValidationError

from rovigram.config import settings
from rovigram.exceptions import NotAuthenticatedError
from rovigram.models.base import utcnow
from rovigram.models.user import User

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token", auto_error=False)


class SessionUser(BaseModel):
    """Identity claims carried by a session token."""

    id: int
    username: str
    display_name: str
    phone: str


def get_password_hash(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    """Sign a session token for ``user``.

    Raises SessionConfigError when no SECRET_KEY is configured.
    """
    secret = settings.require_secret_key()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {
        "sub": str(user.id),
        "id": user.id,
        "username": user.username,
        "displayName": user.display_name,
        "phone": user.phone,
        "exp": utcnow() + expires_delta,
    }
    return jwt.encode(claims, secret, algorithm=settings.ALGORITHM)


def verify_access_token(token: str) -> Optional[SessionUser]:
    """Return the session claims, or None for any invalid token."""
    if not token or not settings.SECRET_KEY:
        return None
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        return SessionUser(
            id=payload["id"],
            username=payload["username"],
            display_name=payload["displayName"],
            phone=payload["phone"],
        )
    except (JWTError, KeyError, PydanticValidationError) as exc:
        logger.debug("Rejected session token: %s", type(exc).__name__)
        return None


async def get_optional_user(
    bearer: Optional[str] = Depends(oauth2_scheme),
    auth_cookie: Optional[str] = Cookie(None, alias=settings.AUTH_COOKIE_NAME),
) -> Optional[SessionUser]:
    token = bearer or auth_cookie
    if not token:
        return None
    return verify_access_token(token)


async def get_current_user(
    current_user: Optional[SessionUser] = Depends(get_optional_user),
) -> SessionUser:
    if current_user is None:
        raise NotAuthenticatedError()
    return current_user
