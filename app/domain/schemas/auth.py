"""Pydantic schemas for User, Auth and the caller identity."""

from pydantic import BaseModel
from datetime import datetime
from typing import Optional

ADMIN_ROLE = "admin"


class UserCreate(BaseModel):
    name: str
    email: str
    password: str


class UserRead(BaseModel):
    id: int
    name: str
    email: str
    role: str
    is_active: bool
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserRead


class Identity(BaseModel):
    """The authenticated caller as seen by the services."""

    id: int
    role: str
    is_active: bool = True

    model_config = {"from_attributes": True}

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE
