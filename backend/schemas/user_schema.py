from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, EmailStr, Field, HttpUrl
from core.config import settings
from schemas.common_schema import Money, PageQuery


class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6)
    full_name: str = Field(..., min_length=1, max_length=100)
    bio: Optional[str] = Field(default=None, max_length=500)
    profile_picture_url: Optional[HttpUrl] = None

class UserUpdate(BaseModel):
    username: Optional[str] = Field(default=None, min_length=3, max_length=50)
    email: Optional[EmailStr] = None
    full_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    bio: Optional[str] = Field(default=None, max_length=500)
    profile_picture_url: Optional[HttpUrl] = None

class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)

class UserStatusUpdate(BaseModel):
    is_active: bool

class User(BaseModel):
    id: int
    username: str
    email: str
    full_name: str
    bio: Optional[str] = None
    profile_picture_url: Optional[str] = None
    followers_count: int
    following_count: int
    balance: Money
    is_premium: bool
    premium_expires_at: Optional[datetime] = None
    is_admin: bool
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class AuthResponse(BaseModel):
    user: User
    token: str
    token_type: str = "bearer"

class GetUsersQuery(PageQuery):
    limit: int = Field(default=settings.MAX_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE)
    search: Optional[str] = Field(default=None, max_length=100)
    is_active: Optional[bool] = None
    is_premium: Optional[bool] = None
    is_admin: Optional[bool] = None
    order_by: Literal["created_at", "username", "followers_count"] = "created_at"
    order_direction: Literal["asc", "desc"] = "desc"

class SearchUsersQuery(PageQuery):
    query: str = Field(..., min_length=1, max_length=100)
    limit: int = Field(default=20, ge=1, le=settings.MAX_PAGE_SIZE)
