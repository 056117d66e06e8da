from typing import Annotated
from fastapi import APIRouter, Depends, Query
from schemas.user_schema import User
from schemas.notification_schema import MarkNotificationsRead, GetNotificationsQuery
from api.dependencies import get_current_user, ensure_self_or_admin
from db.session import get_db_session
from sqlalchemy.ext.asyncio import AsyncSession
from services.notification_service import get_notifications, mark_notifications_read
from utils.responses import no_store_json
from utils.timing import timeit

router = APIRouter()

@router.get("/notifications")
@timeit("notifications.fetch")
async def fetch_notifications(page: Annotated[GetNotificationsQuery, Query()], current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db_session)):
    """Returns the page and marks it read"""
    return no_store_json(await get_notifications(current_user.id, page.page, page.limit, db))

@router.post("/notifications/read")
@timeit("notifications.mark_read")
async def mark_read(data: MarkNotificationsRead, current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db_session)):
    ensure_self_or_admin(current_user, data.user_id)
    return no_store_json(await mark_notifications_read(data, db))
