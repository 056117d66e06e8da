from schemas.notification_schema import NotificationCreate, Notification, MarkNotificationsRead, MarkReadResult
from db.session import get_or_use_session
from db.models.notification import Notification as NotificationModel, NotificationType
from db.models.user import User as UserModel
from core.config import settings
from core.exceptions import NotFoundError
from fastapi import HTTPException
from typing import List, Optional
import logging
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value
from utils.db import safe_commit

logger = logging.getLogger(__name__)


async def notify(
    session: AsyncSession,
    user_id: int,
    type: NotificationType,
    title: str,
    message: str,
    related_id: Optional[int] = None,
    actor_id: Optional[int] = None,
) -> Optional[NotificationModel]:
    """Queue a notification on the caller's session.

    Nothing is committed here; the row lands together with the action that
    caused it. Acting on your own content notifies nobody.
    """
    if not settings.NOTIFICATIONS_ENABLED:
        return None
    if actor_id is not None and actor_id == user_id:
        return None
    notification = NotificationModel(
        user_id=user_id,
        type=type,
        title=title[:100],
        message=message[:500],
        related_id=related_id,
    )
    session.add(notification)
    return notification


async def create_notification(data: NotificationCreate, db: AsyncSession = None) -> Notification:
    async with get_or_use_session(db) as session:
        try:
            user = (await session.execute(select(UserModel.id).where(UserModel.id == data.user_id))).scalar_one_or_none()
            if user is None:
                raise NotFoundError("User not found")
            notification = NotificationModel(
                user_id=data.user_id,
                type=data.type,
                title=data.title,
                message=data.message,
                related_id=data.related_id,
            )
            session.add(notification)
            await safe_commit(session)
            logger.info(f"Notification {notification.id} created for user {data.user_id}")
            return Notification.model_validate(notification)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating notification for user {data.user_id}: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")


async def get_notifications(user_id: int, page: int = 1, limit: int = 20, db: AsyncSession = None) -> List[Notification]:
    """Fetch a page of notifications and mark exactly those rows as read.

    A second call returns the same rows, now already read.
    """
    async with get_or_use_session(db) as session:
        try:
            result = await session.execute(
                select(NotificationModel)
                .where(NotificationModel.user_id == user_id)
                .order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())
                .offset((page - 1) * limit)
                .limit(limit)
                .execution_options(populate_existing=True)
            )
            rows = result.scalars().all()
            unread_ids = [n.id for n in rows if not n.is_read]
            if unread_ids:
                await session.execute(
                    update(NotificationModel)
                    .where(NotificationModel.id.in_(unread_ids))
                    .values(is_read=True)
                    .execution_options(synchronize_session=False)
                )
                await safe_commit(session)
                for n in rows:
                    set_committed_value(n, "is_read", True)
            return [Notification.model_validate(n) for n in rows]
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error fetching notifications for user {user_id}: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")


async def mark_notifications_read(data: MarkNotificationsRead, db: AsyncSession = None) -> MarkReadResult:
    async with get_or_use_session(db) as session:
        try:
            stmt = (
                update(NotificationModel)
                .where(NotificationModel.user_id == data.user_id, NotificationModel.is_read.is_(False))
                .values(is_read=True)
                .execution_options(synchronize_session=False)
            )
            if data.notification_ids is not None:
                if not data.notification_ids:
                    return MarkReadResult(success=True, updated=0)
                stmt = stmt.where(NotificationModel.id.in_(data.notification_ids))
            result = await session.execute(stmt)
            await safe_commit(session)
            return MarkReadResult(success=True, updated=result.rowcount or 0)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error marking notifications read for user {data.user_id}: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")
