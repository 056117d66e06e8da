from schemas.admin_schema import DashboardStats
from db.session import get_or_use_session
from db.models.user import User as UserModel
from db.models.post import Post as PostModel
from db.models.transaction import Transaction as TransactionModel, TransactionType, TransactionStatus
from fastapi import HTTPException
from decimal import Decimal
import logging
from sqlalchemy import select, func
from sqlalchemy.orm import aliased
from sqlalchemy.ext.asyncio import AsyncSession
from utils.timing import utcnow

logger = logging.getLogger(__name__)


async def _count(session: AsyncSession, stmt) -> int:
    return int((await session.execute(stmt)).scalar() or 0)


async def _revenue(session: AsyncSession) -> Decimal:
    """Completed purchases minus completed refunds of purchases"""
    purchases = (await session.execute(
        select(func.coalesce(func.sum(TransactionModel.amount), 0)).where(
            TransactionModel.type == TransactionType.PURCHASE,
            TransactionModel.status == TransactionStatus.COMPLETED,
        )
    )).scalar()
    original = aliased(TransactionModel)
    refunds = (await session.execute(
        select(func.coalesce(func.sum(TransactionModel.amount), 0))
        .join(original, TransactionModel.reference_transaction_id == original.id)
        .where(
            TransactionModel.type == TransactionType.REFUND,
            TransactionModel.status == TransactionStatus.COMPLETED,
            original.type == TransactionType.PURCHASE,
        )
    )).scalar()
    return Decimal(str(purchases or 0)) - Decimal(str(refunds or 0))


async def get_dashboard_stats(db: AsyncSession = None) -> DashboardStats:
    async with get_or_use_session(db) as session:
        try:
            now = utcnow()
            stats = DashboardStats(
                total_users=await _count(session, select(func.count(UserModel.id))),
                active_users=await _count(session, select(func.count(UserModel.id)).where(UserModel.is_active.is_(True))),
                total_posts=await _count(session, select(func.count(PostModel.id)).where(PostModel.is_active.is_(True))),
                total_transactions=await _count(session, select(func.count(TransactionModel.id))),
                revenue=await _revenue(session),
                premium_users=await _count(
                    session,
                    select(func.count(UserModel.id)).where(
                        UserModel.is_premium.is_(True), UserModel.premium_expires_at >= now
                    ),
                ),
            )
            logger.info(f"Dashboard stats computed: users={stats.total_users} revenue={stats.revenue}")
            return stats
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error computing dashboard stats: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")
