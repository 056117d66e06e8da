"""Balance ledger: top-ups, premium purchases and refunds.

Each operation locks the user's row, checks its preconditions against the
locked values, then changes the balance and appends exactly one Transaction
row before committing. Amounts are ``decimal.Decimal`` throughout and are
converted to floats only by the output schemas.
"""

from schemas.wallet_schema import TopUpInput, PurchasePremiumInput, RefundInput, Transaction, Wallet, GetTransactionsQuery
from db.session import get_or_use_session
from db.models.user import User as UserModel
from db.models.premium import PremiumPackage as PremiumPackageModel
from db.models.transaction import Transaction as TransactionModel, TransactionType, TransactionStatus
from db.models.notification import NotificationType
from core.exceptions import NotFoundError, ConflictError, InvalidOperationError
from services.notification_service import notify
from fastapi import HTTPException
from datetime import timedelta
from decimal import Decimal
from typing import List, Optional
import logging
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from utils.db import safe_flush, safe_commit
from utils.timing import utcnow

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def to_money(value) -> Decimal:
    """Normalize a stored or submitted amount to two decimal places"""
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS)


async def _lock_user(session: AsyncSession, user_id: int) -> Optional[UserModel]:
    # FOR UPDATE serializes concurrent balance changes on the same user
    result = await session.execute(
        select(UserModel)
        .where(UserModel.id == user_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


def stacked_expiration(current_expiration, duration_days: int, now=None):
    """New premium expiration, extending from the later of the current one and now"""
    now = now or utcnow()
    base = current_expiration if current_expiration and current_expiration > now else now
    return base + timedelta(days=duration_days)


async def top_up_balance(data: TopUpInput, db: AsyncSession = None) -> Transaction:
    amount = to_money(data.amount)
    async with get_or_use_session(db) as session:
        try:
            user = await _lock_user(session, data.user_id)
            if user is None or not user.is_active:
                raise NotFoundError("User not found")

            user.balance = to_money(user.balance) + amount
            transaction = TransactionModel(
                user_id=user.id,
                type=TransactionType.TOPUP,
                amount=amount,
                description=f"Balance top-up of ${amount}",
                status=TransactionStatus.COMPLETED,
            )
            session.add(transaction)
            await safe_flush(session)
            await safe_commit(session)
            logger.info(f"User {user.id} topped up {amount}; balance now {user.balance}")
            return Transaction.model_validate(transaction)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error topping up balance for user {data.user_id}: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")


async def purchase_premium(data: PurchasePremiumInput, db: AsyncSession = None) -> Transaction:
    """Buy a premium package with the account balance.

    Failures are reported in a fixed order: unknown user, unknown package,
    inactive package, insufficient balance. None of them writes anything.
    """
    async with get_or_use_session(db) as session:
        try:
            user = await _lock_user(session, data.user_id)
            if user is None or not user.is_active:
                raise NotFoundError("User not found")
            package = (await session.execute(
                select(PremiumPackageModel).where(PremiumPackageModel.id == data.package_id)
            )).scalar_one_or_none()
            if package is None:
                raise NotFoundError("Premium package not found")
            if not package.is_active:
                raise InvalidOperationError("Premium package is not available")

            price = to_money(package.price)
            balance = to_money(user.balance)
            if balance < price:
                raise InvalidOperationError("Insufficient balance")

            now = utcnow()
            user.balance = balance - price
            user.is_premium = True
            user.premium_expires_at = stacked_expiration(user.premium_expires_at, package.duration_days, now)
            transaction = TransactionModel(
                user_id=user.id,
                type=TransactionType.PURCHASE,
                amount=price,
                description=f"Premium package purchase: {package.name}"[:200],
                premium_package_id=package.id,
                status=TransactionStatus.COMPLETED,
            )
            session.add(transaction)
            await safe_flush(session)
            await notify(
                session,
                user_id=user.id,
                type=NotificationType.PREMIUM,
                title="Premium activated",
                message=f"Your {package.name} premium is active until {user.premium_expires_at:%Y-%m-%d}",
                related_id=transaction.id,
            )
            await safe_commit(session)
            logger.info(
                f"User {user.id} purchased package {package.id} for {price}; "
                f"premium until {user.premium_expires_at.isoformat()}"
            )
            return Transaction.model_validate(transaction)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error purchasing package {data.package_id} for user {data.user_id}: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")


async def refund_transaction(data: RefundInput, db: AsyncSession = None) -> Transaction:
    """Reverse a completed top-up or purchase by appending a refund row.

    The original row is left untouched. A purchase refund also takes the
    package's duration back off the premium expiration.
    """
    async with get_or_use_session(db) as session:
        try:
            original = (await session.execute(
                select(TransactionModel).where(TransactionModel.id == data.transaction_id)
            )).scalar_one_or_none()
            if original is None:
                raise NotFoundError("Transaction not found")
            if original.type == TransactionType.REFUND:
                raise InvalidOperationError("Refund transactions cannot be refunded")
            if original.status != TransactionStatus.COMPLETED:
                raise InvalidOperationError("Only completed transactions can be refunded")
            already = (await session.execute(
                select(TransactionModel.id).where(TransactionModel.reference_transaction_id == original.id)
            )).scalar_one_or_none()
            if already is not None:
                raise ConflictError("Transaction has already been refunded")

            user = await _lock_user(session, original.user_id)
            if user is None:
                raise NotFoundError("User not found")

            amount = to_money(original.amount)
            balance = to_money(user.balance)
            if original.type == TransactionType.TOPUP:
                if balance < amount:
                    raise InvalidOperationError("Insufficient balance to refund top-up")
                user.balance = balance - amount
            else:
                user.balance = balance + amount
                package = None
                if original.premium_package_id is not None:
                    package = (await session.execute(
                        select(PremiumPackageModel).where(PremiumPackageModel.id == original.premium_package_id)
                    )).scalar_one_or_none()
                if package is not None and user.premium_expires_at is not None:
                    shortened = user.premium_expires_at - timedelta(days=package.duration_days)
                    if shortened <= utcnow():
                        user.is_premium = False
                        user.premium_expires_at = None
                    else:
                        user.premium_expires_at = shortened

            description = f"Refund of transaction #{original.id}"
            if data.reason:
                description = f"{description}: {data.reason}"
            refund = TransactionModel(
                user_id=user.id,
                type=TransactionType.REFUND,
                amount=amount,
                description=description[:200],
                premium_package_id=original.premium_package_id,
                reference_transaction_id=original.id,
                status=TransactionStatus.COMPLETED,
            )
            session.add(refund)
            await safe_flush(session, conflict_message="Transaction has already been refunded")
            await notify(
                session,
                user_id=user.id,
                type=NotificationType.ADMIN,
                title="Refund processed",
                message=f"Transaction #{original.id} was refunded (${amount})",
                related_id=refund.id,
            )
            await safe_commit(session, conflict_message="Transaction has already been refunded")
            logger.info(f"Refunded transaction {original.id} for user {user.id}; balance now {user.balance}")
            return Transaction.model_validate(refund)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error refunding transaction {data.transaction_id}: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")


async def get_transactions(query: GetTransactionsQuery, db: AsyncSession = None) -> List[Transaction]:
    async with get_or_use_session(db) as session:
        stmt = select(TransactionModel)
        if query.user_id is not None:
            stmt = stmt.where(TransactionModel.user_id == query.user_id)
        stmt = (
            stmt.order_by(TransactionModel.created_at.desc(), TransactionModel.id.desc())
            .offset(query.offset)
            .limit(query.limit)
        )
        result = await session.execute(stmt)
        return [Transaction.model_validate(t) for t in result.scalars().all()]


async def get_wallet_info(user_id: int, db: AsyncSession = None) -> Wallet:
    async with get_or_use_session(db) as session:
        result = await session.execute(
            select(UserModel).where(UserModel.id == user_id).execution_options(populate_existing=True)
        )
        user = result.scalar_one_or_none()
        if user is None or not user.is_active:
            raise NotFoundError("User not found")
        return Wallet(
            user_id=user.id,
            balance=to_money(user.balance),
            is_premium=bool(user.is_premium),
            premium_expires_at=user.premium_expires_at,
        )
