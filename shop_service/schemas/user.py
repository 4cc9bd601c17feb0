from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from .common import CamelModel
from ..models.user import UserRole


class UserCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    role: UserRole = UserRole.USER


class UserUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6, max_length=128)
    role: Optional[UserRole] = None


class UserResponse(CamelModel):
    id: str
    name: str
    email: str
    role: UserRole
    created_at: datetime
    updated_at: datetime
