from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field
from core.config import settings
from db.models.notification import NotificationType
from schemas.common_schema import PageQuery


class NotificationCreate(BaseModel):
    user_id: int
    type: NotificationType
    title: str = Field(..., min_length=1, max_length=100)
    message: str = Field(..., min_length=1, max_length=500)
    related_id: Optional[int] = None

class Notification(BaseModel):
    id: int
    user_id: int
    type: NotificationType
    title: str
    message: str
    is_read: bool
    related_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True

class MarkNotificationsRead(BaseModel):
    user_id: int
    notification_ids: Optional[List[int]] = None

class MarkReadResult(BaseModel):
    success: bool
    updated: int

class GetNotificationsQuery(PageQuery):
    limit: int = Field(default=20, ge=1, le=settings.MAX_PAGE_SIZE)
