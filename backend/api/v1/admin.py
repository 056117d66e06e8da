from fastapi import APIRouter, Depends, status
from schemas.user_schema import User, UserStatusUpdate
from schemas.wallet_schema import PremiumPackageCreate, RefundInput
from schemas.notification_schema import NotificationCreate
from api.dependencies import admin_required
from db.session import get_db_session
from sqlalchemy.ext.asyncio import AsyncSession
from services.admin_service import get_dashboard_stats
from services.premium_service import create_premium_package
from services.wallet_service import refund_transaction
from services.notification_service import create_notification
from services.user_service import set_user_active
from utils.responses import no_store_json
from utils.timing import timeit

router = APIRouter()

@router.get("/admin/stats")
@timeit("admin.stats")
async def dashboard_stats(current_user: User = Depends(admin_required), db: AsyncSession = Depends(get_db_session)):
    return no_store_json(await get_dashboard_stats(db))

@router.post("/admin/premium-packages", status_code=status.HTTP_201_CREATED)
@timeit("admin.create_package")
async def add_premium_package(data: PremiumPackageCreate, current_user: User = Depends(admin_required), db: AsyncSession = Depends(get_db_session)):
    return no_store_json(await create_premium_package(data, db), status_code=status.HTTP_201_CREATED)

@router.post("/admin/refunds", status_code=status.HTTP_201_CREATED)
@timeit("admin.refund")
async def refund(data: RefundInput, current_user: User = Depends(admin_required), db: AsyncSession = Depends(get_db_session)):
    return no_store_json(await refund_transaction(data, db), status_code=status.HTTP_201_CREATED)

@router.patch("/admin/users/{user_id}/status")
@timeit("admin.user_status")
async def change_user_status(user_id: int, data: UserStatusUpdate, current_user: User = Depends(admin_required), db: AsyncSession = Depends(get_db_session)):
    return no_store_json(await set_user_active(user_id, data.is_active, db))

@router.post("/admin/notifications", status_code=status.HTTP_201_CREATED)
@timeit("admin.notify")
async def send_notification(data: NotificationCreate, current_user: User = Depends(admin_required), db: AsyncSession = Depends(get_db_session)):
    return no_store_json(await create_notification(data, db), status_code=status.HTTP_201_CREATED)
