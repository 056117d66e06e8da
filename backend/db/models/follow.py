from sqlalchemy import Column, Integer, DateTime, ForeignKey, UniqueConstraint, CheckConstraint
from db.session import Base
from utils.timing import utcnow


class Follow(Base):
    __tablename__ = "follows"

    id = Column(Integer, primary_key=True, autoincrement=True)
    follower_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    followed_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    __table_args__ = (
        UniqueConstraint("follower_id", "followed_id", name="uq_follows_relation"),
        CheckConstraint("follower_id <> followed_id", name="ck_follows_not_self"),
    )
