"""
Unit tests for notifications, including fetch-and-acknowledge.
"""
import pytest

from services.notification_service import (
    create_notification,
    get_notifications,
    mark_notifications_read,
    notify,
)
from schemas.notification_schema import NotificationCreate, MarkNotificationsRead
from db.models.notification import NotificationType
from core.config import settings
from core.exceptions import NotFoundError


async def _seed(db_session, user, count: int):
    created = []
    for i in range(count):
        created.append(await create_notification(
            NotificationCreate(user_id=user.id, type=NotificationType.ADMIN, title=f"Notice {i}", message="Hello"),
            db=db_session,
        ))
    return created


class TestNotifications:

    @pytest.mark.asyncio
    async def test_create_requires_existing_user(self, db_session):
        with pytest.raises(NotFoundError):
            await create_notification(
                NotificationCreate(user_id=999, type=NotificationType.ADMIN, title="Hi", message="There"),
                db=db_session,
            )

    @pytest.mark.asyncio
    async def test_fetch_marks_returned_rows_read(self, db_session, make_user):
        user = await make_user()
        created = await _seed(db_session, user, 3)

        first = await get_notifications(user.id, db=db_session)
        second = await get_notifications(user.id, db=db_session)

        assert [n.id for n in first] == [n.id for n in reversed(created)]
        assert all(n.is_read for n in first)
        assert [n.id for n in second] == [n.id for n in first]
        assert all(n.is_read for n in second)

    @pytest.mark.asyncio
    async def test_fetch_only_acknowledges_the_page(self, db_session, make_user):
        user = await make_user()
        created = await _seed(db_session, user, 3)

        page = await get_notifications(user.id, page=1, limit=2, db=db_session)
        assert [n.id for n in page] == [created[2].id, created[1].id]

        result = await mark_notifications_read(MarkNotificationsRead(user_id=user.id), db=db_session)
        assert result.success is True
        assert result.updated == 1

    @pytest.mark.asyncio
    async def test_mark_selected_ids(self, db_session, make_user):
        user = await make_user()
        other = await make_user()
        mine = await _seed(db_session, user, 2)
        theirs = await _seed(db_session, other, 1)

        result = await mark_notifications_read(
            MarkNotificationsRead(user_id=user.id, notification_ids=[mine[0].id, theirs[0].id]),
            db=db_session,
        )

        assert result.updated == 1
        again = await mark_notifications_read(MarkNotificationsRead(user_id=user.id), db=db_session)
        assert again.updated == 1

    @pytest.mark.asyncio
    async def test_notify_skips_self_and_respects_flag(self, db_session, make_user, monkeypatch):
        user = await make_user()
        assert await notify(db_session, user.id, NotificationType.LIKE, "t", "m", actor_id=user.id) is None

        monkeypatch.setattr(settings, "NOTIFICATIONS_ENABLED", False)
        assert await notify(db_session, user.id, NotificationType.LIKE, "t", "m", actor_id=None) is None
