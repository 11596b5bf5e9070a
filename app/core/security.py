import hashlib
import hmac
import os
from typing import Optional
import uuid

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session, select
from jose.exceptions import ExpiredSignatureError, JWTError

from ..database import get_session
from ..models.user import User
from .errors import NotAuthenticated
from .jwt import decode_access_token


ALGORITHM = "pbkdf2_sha256"
ITERATIONS = 100_000
SALT_BYTES = 16

ACCESS_TOKEN_COOKIE = "access_token"


def _pbkdf2_hash(password: str, salt: bytes) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, ITERATIONS)


def hash_password(password: str) -> str:
    salt = os.urandom(SALT_BYTES)
    digest = _pbkdf2_hash(password, salt)
    return f"{ALGORITHM}${salt.hex()}${digest.hex()}"


def verify_password(password: str, stored: str) -> bool:
    try:
        algorithm, salt_hex, hash_hex = stored.strip().split("$")
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(hash_hex)
    except ValueError:
        return False
    if algorithm != ALGORITHM:
        return False
    return hmac.compare_digest(_pbkdf2_hash(password, salt), expected)


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)


def get_current_user(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    session: Session = Depends(get_session),
) -> User:
    # Bearer header first, then the HttpOnly cookie set by /auth/login
    token = token or request.cookies.get(ACCESS_TOKEN_COOKIE)
    if not token:
        raise NotAuthenticated("Not authenticated")

    try:
        payload = decode_access_token(token)
    except ExpiredSignatureError:
        raise NotAuthenticated("Token expired")
    except JWTError:
        raise NotAuthenticated("Invalid token")

    sub = payload.get("sub")
    if sub is None:
        raise NotAuthenticated("Invalid token: missing subject")
    try:
        user_id = uuid.UUID(str(sub))
    except ValueError:
        raise NotAuthenticated("Invalid token: bad subject format")

    user = session.exec(select(User).where(User.id == user_id)).first()
    if user is None or user.deleted_at is not None:
        raise NotAuthenticated("User not found")
    return user
