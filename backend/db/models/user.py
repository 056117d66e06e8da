from sqlalchemy import Column, String, Integer, Boolean, DateTime, Numeric, Text, Index
from db.session import Base
from utils.timing import utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(100), nullable=False)
    bio = Column(Text, nullable=True)
    profile_picture_url = Column(String(1024), nullable=True)
    # Denormalized; only the follow operations in services.follow_service touch these
    followers_count = Column(Integer, default=0, nullable=False)
    following_count = Column(Integer, default=0, nullable=False)
    # Mutated only by the ledger operations in services.wallet_service
    balance = Column(Numeric(10, 2, asdecimal=True), default=0, nullable=False)
    is_premium = Column(Boolean, default=False, nullable=False)
    premium_expires_at = Column(DateTime, nullable=True)
    is_admin = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    __table_args__ = (
        Index("ix_users_premium_expires", "is_premium", "premium_expires_at"),
        Index("ix_users_followers_count", "followers_count"),
    )
