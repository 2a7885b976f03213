"""API Dependencies - Authentication"""
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError

from domain.auth import User, UserInDB
from domain.errors import Unauthenticated
from infrastructure.security import decode_access_token, get_password_hash
from api.schemas import TokenData

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token", auto_error=False)

# Development user directory standing in for the auth provider
_fake_users_db = {
    "guest": {
        "username": "guest",
        "full_name": "Guest User",
        "email": "guest@example.com",
        "plain_password": "guest123",
        "disabled": False,
        "user_id": "123e4567-e89b-12d3-a456-426614174000"
    },
    "traveler": {
        "username": "traveler",
        "full_name": "Second Guest",
        "email": "traveler@example.com",
        "plain_password": "traveler123",
        "disabled": False,
        "user_id": "223e4567-e89b-12d3-a456-426614174001"
    },
    "host": {
        "username": "host",
        "full_name": "Listing Host",
        "email": "host@example.com",
        "plain_password": "host123",
        "disabled": False,
        "user_id": "323e4567-e89b-12d3-a456-426614174002"
    },
}

fake_users_db = _fake_users_db

_password_hash_cache = {}


def _get_hashed_password(username: str) -> str:
    """Lazily hash passwords on first access"""
    if username not in _password_hash_cache:
        user = _fake_users_db.get(username)
        if user and "plain_password" in user:
            _password_hash_cache[username] = get_password_hash(user["plain_password"])
    return _password_hash_cache.get(username, "")


def get_user(db, username: str) -> Optional[UserInDB]:
    if username in db:
        user_dict = db[username].copy()
        if "plain_password" in user_dict:
            user_dict["hashed_password"] = _get_hashed_password(username)
            del user_dict["plain_password"]
        return UserInDB(**user_dict)
    return None


async def get_current_user(token: Optional[str] = Depends(oauth2_scheme)) -> User:
    if not token:
        raise Unauthenticated()
    try:
        payload = decode_access_token(token)
        username: str = payload.get("sub")
        if username is None:
            raise Unauthenticated("Could not validate credentials")
        token_data = TokenData(username=username)
    except JWTError:
        raise Unauthenticated("Could not validate credentials")

    user = get_user(_fake_users_db, username=token_data.username)
    if user is None:
        raise Unauthenticated("Could not validate credentials")
    return user


async def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    if current_user.disabled:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")
    return current_user
