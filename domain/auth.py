"""Domain Entities - Auth collaborator"""
from pydantic import BaseModel
from uuid import UUID
from typing import Optional


class User(BaseModel):
    """Authenticated caller; the booking core only ever sees user_id"""
    user_id: UUID
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    disabled: bool = False

    class Config:
        from_attributes = True


class UserInDB(User):
    """User with hashed password for the user directory"""
    hashed_password: str
