from datetime import datetime
from pydantic import BaseModel


class LikeInput(BaseModel):
    user_id: int
    post_id: int

class Like(BaseModel):
    id: int
    user_id: int
    post_id: int
    created_at: datetime

    class Config:
        from_attributes = True

class ShareInput(BaseModel):
    user_id: int
    post_id: int

class Share(BaseModel):
    id: int
    user_id: int
    post_id: int
    created_at: datetime

    class Config:
        from_attributes = True

class CommentLikeInput(BaseModel):
    user_id: int
    comment_id: int

class CommentLike(BaseModel):
    id: int
    user_id: int
    comment_id: int
    created_at: datetime

    class Config:
        from_attributes = True

class FollowInput(BaseModel):
    follower_id: int
    followed_id: int

class Follow(BaseModel):
    id: int
    follower_id: int
    followed_id: int
    created_at: datetime

    class Config:
        from_attributes = True
