from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, HttpUrl
from db.models.post import MediaType
from schemas.common_schema import PageQuery


class PostCreate(BaseModel):
    user_id: int
    content: Optional[str] = Field(default=None, max_length=2000)
    media_urls: Optional[List[HttpUrl]] = None
    media_type: MediaType = MediaType.TEXT
    link_url: Optional[HttpUrl] = None

class PostUpdate(BaseModel):
    content: Optional[str] = Field(default=None, max_length=2000)
    media_urls: Optional[List[HttpUrl]] = None
    media_type: Optional[MediaType] = None
    link_url: Optional[HttpUrl] = None

class Post(BaseModel):
    id: int
    user_id: int
    content: Optional[str] = None
    media_urls: Optional[List[str]] = None
    media_type: MediaType
    link_url: Optional[str] = None
    likes_count: int
    comments_count: int
    shares_count: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class GetPostsQuery(PageQuery):
    user_id: Optional[int] = None

class CommentCreate(BaseModel):
    user_id: int
    post_id: int
    content: str = Field(..., min_length=1, max_length=1000)

class Comment(BaseModel):
    id: int
    user_id: int
    post_id: int
    content: str
    likes_count: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
