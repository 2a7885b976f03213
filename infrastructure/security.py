"""Credential hashing and bearer tokens for the demo user directory"""
import hashlib
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt
from passlib.context import CryptContext

from infrastructure import config

BCRYPT_MAX_BYTES = 72

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__ident="2b")


def _bcrypt_input(password: str) -> str:
    # bcrypt truncates at 72 bytes; longer secrets are digested first
    raw = password.encode("utf-8")
    return hashlib.sha256(raw).hexdigest() if len(raw) > BCRYPT_MAX_BYTES else password


def get_password_hash(password: str) -> str:
    return pwd_context.hash(_bcrypt_input(password))


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(_bcrypt_input(plain_password), hashed_password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Sign ``data`` as a JWT expiring after ``expires_delta`` (config default)"""
    lifetime = expires_delta or timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
    issued_at = datetime.now(timezone.utc)
    claims = {**data, "iat": issued_at, "exp": issued_at + lifetime}
    return jwt.encode(claims, config.SECRET_KEY, algorithm=config.ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Verified claims of ``token``; raises jose.JWTError when invalid or expired"""
    return jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM])
