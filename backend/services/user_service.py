from schemas.user_schema import UserCreate, UserUpdate, User, AuthResponse, GetUsersQuery, SearchUsersQuery
from db.session import get_or_use_session
from db.models.user import User as UserModel
from core.security import get_password_hash, verify_password, create_access_token
from core.exceptions import NotFoundError, ConflictError, AuthenticationError
from fastapi import HTTPException
from typing import List, Optional
import logging
from sqlalchemy import select, or_, asc, desc
from sqlalchemy.ext.asyncio import AsyncSession
from utils.db import safe_flush, safe_commit

logger = logging.getLogger(__name__)

USER_ORDER_COLUMNS = {
    "created_at": UserModel.created_at,
    "username": UserModel.username,
    "followers_count": UserModel.followers_count,
}


def _optional_str(value) -> Optional[str]:
    return str(value) if value is not None else None


async def get_active_user(session: AsyncSession, user_id: int, message: str = "User not found") -> UserModel:
    """Load a user that exists and is active, else raise NotFound.

    Missing and deactivated accounts produce the same error.
    """
    result = await session.execute(
        select(UserModel).where(UserModel.id == user_id).execution_options(populate_existing=True)
    )
    user = result.scalar_one_or_none()
    if user is None or not user.is_active:
        raise NotFoundError(message)
    return user


async def create_user(user: UserCreate, db: AsyncSession = None) -> User:
    """Register a new account with a zero balance"""
    async with get_or_use_session(db) as session:
        try:
            existing = (await session.execute(
                select(UserModel).where(or_(UserModel.username == user.username, UserModel.email == user.email))
            )).scalars().first()
            if existing is not None:
                if existing.username == user.username:
                    raise ConflictError("Username already registered")
                raise ConflictError("Email already registered")

            db_user = UserModel(
                username=user.username,
                email=user.email,
                password_hash=get_password_hash(user.password),
                full_name=user.full_name,
                bio=user.bio,
                profile_picture_url=_optional_str(user.profile_picture_url),
            )
            session.add(db_user)
            # Concurrent registrations are settled by the unique indexes
            await safe_flush(session, conflict_message="Username or email already registered")
            await safe_commit(session, conflict_message="Username or email already registered")
            logger.info(f"Registered user {db_user.username} (id={db_user.id})")
            return User.model_validate(db_user)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating user {user.username}: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")


async def login_user(email: str, password: str, db: AsyncSession = None) -> AuthResponse:
    """Check credentials and issue an access token"""
    async with get_or_use_session(db) as session:
        result = await session.execute(select(UserModel).where(UserModel.email == email))
        db_user = result.scalar_one_or_none()
        if db_user is None or not verify_password(password, db_user.password_hash):
            logger.warning(f"Failed login attempt for {email}")
            raise AuthenticationError("Invalid credentials")
        if not db_user.is_active:
            raise AuthenticationError("Account is deactivated")

        token = create_access_token(data={
            "sub": str(db_user.id),
            "email": db_user.email,
            "is_admin": bool(db_user.is_admin),
            "is_premium": bool(db_user.is_premium),
        })
        logger.info(f"User {db_user.id} logged in")
        return AuthResponse(user=User.model_validate(db_user), token=token)


async def get_user_by_id(user_id: int, db: AsyncSession = None) -> Optional[User]:
    async with get_or_use_session(db) as session:
        result = await session.execute(
            select(UserModel).where(UserModel.id == user_id).execution_options(populate_existing=True)
        )
        db_user = result.scalar_one_or_none()
        return User.model_validate(db_user) if db_user else None


async def update_user(user_id: int, user_update: UserUpdate, db: AsyncSession = None) -> User:
    """Apply a partial profile update"""
    async with get_or_use_session(db) as session:
        try:
            result = await session.execute(select(UserModel).where(UserModel.id == user_id))
            db_user = result.scalar_one_or_none()
            if db_user is None:
                raise NotFoundError("User not found")

            changes = user_update.model_dump(exclude_unset=True)
            if changes.get("username") and changes["username"] != db_user.username:
                clash = await session.execute(select(UserModel.id).where(UserModel.username == changes["username"]))
                if clash.scalar_one_or_none() is not None:
                    raise ConflictError("Username already registered")
            if changes.get("email") and changes["email"] != db_user.email:
                clash = await session.execute(select(UserModel.id).where(UserModel.email == changes["email"]))
                if clash.scalar_one_or_none() is not None:
                    raise ConflictError("Email already registered")

            for field, value in changes.items():
                if field == "profile_picture_url":
                    value = _optional_str(value)
                if value is None and field in ("username", "email", "full_name"):
                    continue
                setattr(db_user, field, value)

            await safe_flush(session, conflict_message="Username or email already registered")
            await safe_commit(session, conflict_message="Username or email already registered")
            await session.refresh(db_user)
            logger.info(f"Updated user {user_id}: {sorted(changes)}")
            return User.model_validate(db_user)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating user {user_id}: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")


async def get_users(query: GetUsersQuery, db: AsyncSession = None) -> List[User]:
    async with get_or_use_session(db) as session:
        stmt = select(UserModel)
        if query.search:
            stmt = stmt.where(UserModel.username.ilike(f"%{query.search}%"))
        if query.is_active is not None:
            stmt = stmt.where(UserModel.is_active == query.is_active)
        if query.is_premium is not None:
            stmt = stmt.where(UserModel.is_premium == query.is_premium)
        if query.is_admin is not None:
            stmt = stmt.where(UserModel.is_admin == query.is_admin)

        column = USER_ORDER_COLUMNS[query.order_by]
        ordering = asc(column) if query.order_direction == "asc" else desc(column)
        stmt = (
            stmt.order_by(ordering, UserModel.id.asc())
            .offset(query.offset)
            .limit(query.limit)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return [User.model_validate(u) for u in result.scalars().all()]


async def search_users(query: SearchUsersQuery, db: AsyncSession = None) -> List[User]:
    """Case-insensitive substring match on username or full name, most followed first"""
    pattern = f"%{query.query}%"
    async with get_or_use_session(db) as session:
        stmt = (
            select(UserModel)
            .where(
                UserModel.is_active.is_(True),
                or_(UserModel.username.ilike(pattern), UserModel.full_name.ilike(pattern)),
            )
            .order_by(UserModel.followers_count.desc(), UserModel.id.asc())
            .offset(query.offset)
            .limit(query.limit)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return [User.model_validate(u) for u in result.scalars().all()]


async def set_user_active(user_id: int, is_active: bool, db: AsyncSession = None) -> User:
    async with get_or_use_session(db) as session:
        try:
            result = await session.execute(select(UserModel).where(UserModel.id == user_id))
            db_user = result.scalar_one_or_none()
            if db_user is None:
                raise NotFoundError("User not found")
            db_user.is_active = is_active
            await safe_commit(session)
            await session.refresh(db_user)
            logger.info(f"User {user_id} is_active set to {is_active}")
            return User.model_validate(db_user)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error changing status of user {user_id}: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")
