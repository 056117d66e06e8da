from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field
from db.models.transaction import TransactionType, TransactionStatus
from core.config import settings
from schemas.common_schema import Money, PageQuery, PositiveAmount


class TopUpInput(BaseModel):
    user_id: int
    amount: PositiveAmount

class PurchasePremiumInput(BaseModel):
    user_id: int
    package_id: int

class RefundInput(BaseModel):
    transaction_id: int
    reason: Optional[str] = Field(default=None, max_length=120)

class Transaction(BaseModel):
    id: int
    user_id: int
    type: TransactionType
    amount: Money
    description: str
    premium_package_id: Optional[int] = None
    reference_transaction_id: Optional[int] = None
    status: TransactionStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class GetTransactionsQuery(PageQuery):
    limit: int = Field(default=20, ge=1, le=settings.MAX_PAGE_SIZE)
    user_id: Optional[int] = None

class PremiumPackageCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    price: PositiveAmount
    duration_days: int = Field(..., gt=0)
    features: List[str] = Field(default_factory=list)

class PremiumPackage(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    price: Money
    duration_days: int
    features: List[str]
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class Wallet(BaseModel):
    user_id: int
    balance: Money
    is_premium: bool
    premium_expires_at: Optional[datetime] = None
