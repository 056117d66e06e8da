import enum
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Index, Enum as SQLEnum
from db.session import Base
from utils.timing import utcnow


class NotificationType(str, enum.Enum):
    LIKE = "like"
    COMMENT = "comment"
    FOLLOW = "follow"
    SHARE = "share"
    PREMIUM = "premium"
    ADMIN = "admin"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    type = Column(
        SQLEnum(NotificationType, name="notification_type", native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    title = Column(String(100), nullable=False)
    message = Column(String(500), nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    # Post, user or transaction id depending on type
    related_id = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    __table_args__ = (
        Index("ix_notifications_user_read", "user_id", "is_read"),
        Index("ix_notifications_user_created", "user_id", "created_at"),
    )
