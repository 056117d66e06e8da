import enum
from sqlalchemy import Column, Integer, String, DateTime, Numeric, ForeignKey, Index, CheckConstraint, Enum as SQLEnum
from db.session import Base
from utils.timing import utcnow


class TransactionType(str, enum.Enum):
    TOPUP = "topup"
    PURCHASE = "purchase"
    REFUND = "refund"


class TransactionStatus(str, enum.Enum):
    # pending/failed are reserved for a payment gateway; ledger writes are always completed
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


def _enum_values(enum_cls):
    return [m.value for m in enum_cls]


class Transaction(Base):
    """Append-only ledger row; never updated after insert."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    type = Column(
        SQLEnum(TransactionType, name="transaction_type", native_enum=False, values_callable=_enum_values),
        nullable=False,
    )
    amount = Column(Numeric(10, 2, asdecimal=True), nullable=False)
    description = Column(String(200), nullable=False)
    premium_package_id = Column(Integer, ForeignKey("premium_packages.id"), nullable=True)
    # Set on refund rows only; unique so a transaction can be refunded once
    reference_transaction_id = Column(Integer, ForeignKey("transactions.id"), unique=True, nullable=True)
    status = Column(
        SQLEnum(TransactionStatus, name="transaction_status", native_enum=False, values_callable=_enum_values),
        default=TransactionStatus.PENDING,
        nullable=False,
    )
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
        Index("ix_transactions_user_created", "user_id", "created_at"),
        Index("ix_transactions_type_status", "type", "status"),
    )
