"""
Admin identity: password check, token issue and token validation.
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Header
from jose import JWTError, jwt
from passlib.context import CryptContext

import settings
from errors import Unauthorized
from log import get_logger

logger = get_logger("auth")

# pbkdf2_sha256 avoids the native bcrypt dependency
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

# Either a precomputed hash, or the plain password hashed at startup
ADMIN_PASSWORD_HASH = os.getenv("ADMIN_PASSWORD_HASH") or pwd_context.hash(os.getenv("ADMIN_PASSWORD", "admin123"))


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def authenticate(email: str, password: str) -> str:
    if email.lower() != settings.ADMIN_EMAIL.lower() or not verify_password(password, ADMIN_PASSWORD_HASH):
        logger.warning("Failed admin login for %s", email)
        raise Unauthorized("Invalid credentials")
    return create_access_token({"sub": settings.ADMIN_EMAIL, "role": "admin", "name": settings.ADMIN_NAME})


def decode_identity(authorization: Optional[str]) -> Optional[Dict[str, Any]]:
    """The admin behind a bearer header, or None when there is none or it is invalid."""
    if not authorization or not authorization.lower().startswith("bearer "):
        return None
    token = authorization.split(" ", 1)[1]
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
    email = payload.get("sub")
    if email != settings.ADMIN_EMAIL or payload.get("role") != "admin":
        return None
    return {"id": email, "email": email, "role": "admin", "name": payload.get("name") or settings.ADMIN_NAME}


def get_current_admin(authorization: Optional[str] = Header(None)) -> Dict[str, Any]:
    if not authorization:
        raise Unauthorized()
    identity = decode_identity(authorization)
    if identity is None:
        raise Unauthorized("Invalid token")
    return identity


def get_optional_admin(authorization: Optional[str] = Header(None)) -> Optional[Dict[str, Any]]:
    return decode_identity(authorization)
