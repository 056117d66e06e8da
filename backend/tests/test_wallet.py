"""
Unit tests for the balance ledger: top-up, premium purchase and refund.
"""
import pytest
from datetime import timedelta
from decimal import Decimal
from fastapi import HTTPException
from sqlalchemy import select, func

import services.wallet_service as wallet_service
from services.wallet_service import (
    top_up_balance,
    purchase_premium,
    refund_transaction,
    get_transactions,
    get_wallet_info,
    stacked_expiration,
)
from schemas.wallet_schema import TopUpInput, PurchasePremiumInput, RefundInput, GetTransactionsQuery
from db.models.transaction import Transaction as TransactionModel, TransactionType, TransactionStatus
from core.exceptions import NotFoundError, ConflictError, InvalidOperationError
from utils.timing import utcnow


async def _transaction_count(db_session, user_id: int) -> int:
    return await db_session.scalar(
        select(func.count(TransactionModel.id)).where(TransactionModel.user_id == user_id)
    )


class TestTopUp:
    """Top-ups credit the balance and append one ledger row."""

    @pytest.mark.asyncio
    async def test_top_up_conserves_balance(self, db_session, make_user):
        user = await make_user(balance=Decimal("10.50"))

        tx = await top_up_balance(TopUpInput(user_id=user.id, amount=Decimal("25.25")), db=db_session)

        await db_session.refresh(user)
        assert user.balance == Decimal("35.75")
        assert tx.type == TransactionType.TOPUP
        assert tx.status == TransactionStatus.COMPLETED
        assert tx.amount == 25.25
        assert isinstance(tx.amount, float)
        assert tx.description == "Balance top-up of $25.25"
        assert await _transaction_count(db_session, user.id) == 1

    @pytest.mark.asyncio
    async def test_repeated_top_ups_do_not_drift(self, db_session, make_user):
        user = await make_user()
        for _ in range(10):
            await top_up_balance(TopUpInput(user_id=user.id, amount=Decimal("0.10")), db=db_session)

        await db_session.refresh(user)
        assert user.balance == Decimal("1.00")
        assert await _transaction_count(db_session, user.id) == 10

    @pytest.mark.asyncio
    async def test_top_up_unknown_user(self, db_session):
        with pytest.raises(NotFoundError):
            await top_up_balance(TopUpInput(user_id=999, amount=Decimal("5.00")), db=db_session)

    @pytest.mark.asyncio
    async def test_failure_inside_top_up_rolls_everything_back(self, db_session, make_user, monkeypatch):
        user = await make_user(balance=Decimal("10.00"))
        user_id = user.id

        async def broken_commit(*args, **kwargs):
            raise RuntimeError("connection lost before commit")

        monkeypatch.setattr(wallet_service, "safe_commit", broken_commit)

        with pytest.raises(HTTPException) as exc:
            await top_up_balance(TopUpInput(user_id=user_id, amount=Decimal("5.00")), db=db_session)

        assert exc.value.status_code == 500
        await db_session.refresh(user)
        assert user.balance == Decimal("10.00")
        assert await _transaction_count(db_session, user_id) == 0

    def test_amount_must_be_positive_with_two_decimals(self):
        with pytest.raises(ValueError):
            TopUpInput(user_id=1, amount=Decimal("0"))
        with pytest.raises(ValueError):
            TopUpInput(user_id=1, amount=Decimal("-3.00"))
        with pytest.raises(ValueError):
            TopUpInput(user_id=1, amount=Decimal("1.001"))


class TestPurchasePremium:
    """Premium purchases debit the balance and extend the expiration."""

    @pytest.mark.asyncio
    async def test_purchase_debits_exact_price(self, db_session, make_user, make_package):
        user = await make_user(balance=Decimal("100.00"))
        package = await make_package(price=Decimal("19.99"), duration_days=30)

        tx = await purchase_premium(PurchasePremiumInput(user_id=user.id, package_id=package.id), db=db_session)

        await db_session.refresh(user)
        assert user.balance == Decimal("80.01")
        assert user.is_premium is True
        assert tx.type == TransactionType.PURCHASE
        assert tx.amount == 19.99
        assert tx.status == TransactionStatus.COMPLETED
        assert tx.premium_package_id == package.id
        assert await _transaction_count(db_session, user.id) == 1

    @pytest.mark.asyncio
    async def test_purchase_stacks_on_future_expiration(self, db_session, make_user, make_package):
        now = utcnow()
        user = await make_user(balance=Decimal("50.00"), is_premium=True, premium_expires_at=now + timedelta(days=15))
        package = await make_package(price=Decimal("10.00"), duration_days=30)

        await purchase_premium(PurchasePremiumInput(user_id=user.id, package_id=package.id), db=db_session)

        await db_session.refresh(user)
        expected = now + timedelta(days=45)
        assert abs(user.premium_expires_at - expected) < timedelta(minutes=1)

    @pytest.mark.asyncio
    async def test_purchase_after_expiry_starts_from_now(self, db_session, make_user, make_package):
        now = utcnow()
        user = await make_user(balance=Decimal("50.00"), is_premium=True, premium_expires_at=now - timedelta(days=5))
        package = await make_package(price=Decimal("10.00"), duration_days=30)

        await purchase_premium(PurchasePremiumInput(user_id=user.id, package_id=package.id), db=db_session)

        await db_session.refresh(user)
        assert abs(user.premium_expires_at - (now + timedelta(days=30))) < timedelta(minutes=1)

    @pytest.mark.asyncio
    async def test_unknown_package_leaves_balance_unchanged(self, db_session, make_user):
        user = await make_user(balance=Decimal("100.00"))

        with pytest.raises(NotFoundError):
            await purchase_premium(PurchasePremiumInput(user_id=user.id, package_id=12345), db=db_session)

        await db_session.refresh(user)
        assert user.balance == Decimal("100.00")
        assert user.is_premium is False
        assert await _transaction_count(db_session, user.id) == 0

    @pytest.mark.asyncio
    async def test_precondition_order(self, db_session, make_user, make_package):
        """Missing user beats missing package, inactive package beats low balance."""
        poor = await make_user(balance=Decimal("1.00"))
        inactive = await make_package(is_active=False, price=Decimal("50.00"))
        poor_id, inactive_id = poor.id, inactive.id

        with pytest.raises(NotFoundError) as exc:
            await purchase_premium(PurchasePremiumInput(user_id=9999, package_id=9999), db=db_session)
        assert exc.value.detail == "User not found"

        with pytest.raises(InvalidOperationError) as exc:
            await purchase_premium(PurchasePremiumInput(user_id=poor_id, package_id=inactive_id), db=db_session)
        assert exc.value.detail == "Premium package is not available"

    @pytest.mark.asyncio
    async def test_insufficient_balance(self, db_session, make_user, make_package):
        user = await make_user(balance=Decimal("19.98"))
        package = await make_package(price=Decimal("19.99"))

        with pytest.raises(InvalidOperationError) as exc:
            await purchase_premium(PurchasePremiumInput(user_id=user.id, package_id=package.id), db=db_session)

        assert exc.value.detail == "Insufficient balance"
        await db_session.refresh(user)
        assert user.balance == Decimal("19.98")
        assert await _transaction_count(db_session, user.id) == 0

    @pytest.mark.asyncio
    async def test_failure_inside_purchase_rolls_everything_back(self, db_session, make_user, make_package, monkeypatch):
        user = await make_user(balance=Decimal("100.00"))
        package = await make_package(price=Decimal("19.99"))

        async def broken_notify(*args, **kwargs):
            raise RuntimeError("notification insert failed")

        monkeypatch.setattr(wallet_service, "notify", broken_notify)

        with pytest.raises(HTTPException) as exc:
            await purchase_premium(PurchasePremiumInput(user_id=user.id, package_id=package.id), db=db_session)

        assert exc.value.status_code == 500
        await db_session.refresh(user)
        assert user.balance == Decimal("100.00")
        assert user.is_premium is False
        assert user.premium_expires_at is None
        assert await _transaction_count(db_session, user.id) == 0

    def test_stacked_expiration(self):
        now = utcnow()
        assert stacked_expiration(None, 30, now) == now + timedelta(days=30)
        assert stacked_expiration(now + timedelta(days=2), 30, now) == now + timedelta(days=32)
        assert stacked_expiration(now - timedelta(days=2), 30, now) == now + timedelta(days=30)


class TestRefund:
    """Refunds append a new ledger row and never edit the original."""

    @pytest.mark.asyncio
    async def test_refund_purchase_restores_balance_and_premium(self, db_session, make_user, make_package):
        user = await make_user(balance=Decimal("30.00"))
        package = await make_package(price=Decimal("19.99"), duration_days=30)
        purchase = await purchase_premium(PurchasePremiumInput(user_id=user.id, package_id=package.id), db=db_session)

        refund = await refund_transaction(RefundInput(transaction_id=purchase.id, reason="Changed mind"), db=db_session)

        await db_session.refresh(user)
        assert user.balance == Decimal("30.00")
        assert user.is_premium is False
        assert user.premium_expires_at is None
        assert refund.type == TransactionType.REFUND
        assert refund.reference_transaction_id == purchase.id
        assert refund.amount == 19.99
        assert refund.description == f"Refund of transaction #{purchase.id}: Changed mind"

        original = await db_session.get(TransactionModel, purchase.id)
        assert original.type == TransactionType.PURCHASE
        assert original.status == TransactionStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_refund_purchase_keeps_remaining_premium(self, db_session, make_user, make_package):
        now = utcnow()
        user = await make_user(balance=Decimal("30.00"), is_premium=True, premium_expires_at=now + timedelta(days=10))
        package = await make_package(price=Decimal("5.00"), duration_days=30)
        purchase = await purchase_premium(PurchasePremiumInput(user_id=user.id, package_id=package.id), db=db_session)

        await refund_transaction(RefundInput(transaction_id=purchase.id), db=db_session)

        await db_session.refresh(user)
        assert user.is_premium is True
        assert abs(user.premium_expires_at - (now + timedelta(days=10))) < timedelta(minutes=1)

    @pytest.mark.asyncio
    async def test_refund_top_up_debits(self, db_session, make_user):
        user = await make_user()
        top_up = await top_up_balance(TopUpInput(user_id=user.id, amount=Decimal("40.00")), db=db_session)

        await refund_transaction(RefundInput(transaction_id=top_up.id), db=db_session)

        await db_session.refresh(user)
        assert user.balance == Decimal("0.00")
        assert await _transaction_count(db_session, user.id) == 2

    @pytest.mark.asyncio
    async def test_refund_top_up_already_spent(self, db_session, make_user, make_package):
        user = await make_user()
        package = await make_package(price=Decimal("15.00"))
        top_up = await top_up_balance(TopUpInput(user_id=user.id, amount=Decimal("20.00")), db=db_session)
        await purchase_premium(PurchasePremiumInput(user_id=user.id, package_id=package.id), db=db_session)

        with pytest.raises(InvalidOperationError):
            await refund_transaction(RefundInput(transaction_id=top_up.id), db=db_session)

        await db_session.refresh(user)
        assert user.balance == Decimal("5.00")

    @pytest.mark.asyncio
    async def test_refund_only_once(self, db_session, make_user):
        user = await make_user()
        top_up = await top_up_balance(TopUpInput(user_id=user.id, amount=Decimal("40.00")), db=db_session)
        await refund_transaction(RefundInput(transaction_id=top_up.id), db=db_session)

        with pytest.raises(ConflictError):
            await refund_transaction(RefundInput(transaction_id=top_up.id), db=db_session)

    @pytest.mark.asyncio
    async def test_refund_of_refund_rejected(self, db_session, make_user):
        user = await make_user()
        top_up = await top_up_balance(TopUpInput(user_id=user.id, amount=Decimal("40.00")), db=db_session)
        refund = await refund_transaction(RefundInput(transaction_id=top_up.id), db=db_session)

        with pytest.raises(InvalidOperationError):
            await refund_transaction(RefundInput(transaction_id=refund.id), db=db_session)

    @pytest.mark.asyncio
    async def test_refund_unknown_transaction(self, db_session):
        with pytest.raises(NotFoundError):
            await refund_transaction(RefundInput(transaction_id=404), db=db_session)


class TestLedgerReads:

    @pytest.mark.asyncio
    async def test_transactions_newest_first_and_filtered(self, db_session, make_user):
        alice = await make_user()
        bob = await make_user()
        first = await top_up_balance(TopUpInput(user_id=alice.id, amount=Decimal("1.00")), db=db_session)
        second = await top_up_balance(TopUpInput(user_id=alice.id, amount=Decimal("2.00")), db=db_session)
        await top_up_balance(TopUpInput(user_id=bob.id, amount=Decimal("3.00")), db=db_session)

        rows = await get_transactions(GetTransactionsQuery(user_id=alice.id), db=db_session)
        assert [t.id for t in rows] == [second.id, first.id]

        everything = await get_transactions(GetTransactionsQuery(), db=db_session)
        assert len(everything) == 3

        paged = await get_transactions(GetTransactionsQuery(user_id=alice.id, page=2, limit=1), db=db_session)
        assert [t.id for t in paged] == [first.id]

    @pytest.mark.asyncio
    async def test_wallet_info(self, db_session, make_user):
        user = await make_user(balance=Decimal("12.34"))
        wallet = await get_wallet_info(user.id, db=db_session)
        assert wallet.balance == 12.34
        assert wallet.is_premium is False

        with pytest.raises(NotFoundError):
            await get_wallet_info(9999, db=db_session)
