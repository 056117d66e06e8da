from core.security import get_password_hash
from core.config import settings
from db.session import Base, engine, SessionLocal
from db.models.user import User
from db.models.post import Post, Comment
from db.models.interaction import Like, Share, CommentLike
from db.models.follow import Follow
from db.models.premium import PremiumPackage
from db.models.transaction import Transaction
from db.models.notification import Notification
import logging
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

async def initialize_database():
    """Create tables and seed the admin account when configured."""
    try:
        assert isinstance(engine, AsyncEngine)
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Error creating database tables: {e}")
        raise
    await seed_admin_user()

async def seed_admin_user():
    if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD:
        logger.info("ADMIN_EMAIL/ADMIN_PASSWORD not set; skipping admin seed")
        return
    async with SessionLocal() as db:
        existing = (await db.execute(
            select(User).where(or_(User.email == settings.ADMIN_EMAIL, User.username == settings.ADMIN_USERNAME))
        )).scalars().first()
        if existing:
            return
        db.add(User(
            username=settings.ADMIN_USERNAME,
            email=settings.ADMIN_EMAIL,
            password_hash=get_password_hash(settings.ADMIN_PASSWORD),
            full_name=settings.ADMIN_FULL_NAME,
            is_admin=True,
        ))
        await db.commit()
        logger.info(f"Seeded admin user {settings.ADMIN_USERNAME}")
