# src/auth/schemas.py
from pydantic import BaseModel, EmailStr
from datetime import datetime
from typing import Literal


class UserCreate(BaseModel):
    """Schema for user registration."""
    username: str
    email: EmailStr
    password: str
    role: Literal["student", "teacher"] = "student"


class UserLogin(BaseModel):
    """Schema for user login."""
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    """Schema for user response."""
    id: int
    username: str
    email: str
    created_at: datetime
    role: str

    class Config:
        from_attributes = True


class RoleUpdate(BaseModel):
    role: Literal["student", "teacher", "admin"]


class Token(BaseModel):
    """Schema for token response."""
    access_token: str
    token_type: str


class AdminActionLogResponse(BaseModel):
    """Schema for admin action log response."""
    id: int
    admin_id: int
    action: str
    timestamp: datetime

    class Config:
        from_attributes = True
