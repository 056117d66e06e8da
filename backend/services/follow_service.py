from schemas.interaction_schema import FollowInput, Follow
from schemas.common_schema import SuccessResponse
from db.session import get_or_use_session
from db.models.follow import Follow as FollowModel
from db.models.user import User as UserModel
from db.models.notification import NotificationType
from core.exceptions import ConflictError, InvalidOperationError
from services.user_service import get_active_user
from services.notification_service import notify
from fastapi import HTTPException
import logging
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from utils.db import safe_flush, safe_commit, adjust_counter

logger = logging.getLogger(__name__)

DUPLICATE_FOLLOW = "Follow relationship already exists"


async def create_follow(data: FollowInput, db: AsyncSession = None) -> Follow:
    """Follow a user and bump both sides' counters atomically"""
    if data.follower_id == data.followed_id:
        raise InvalidOperationError("Users cannot follow themselves")

    async with get_or_use_session(db) as session:
        try:
            missing = "One or both users do not exist or are inactive"
            follower = await get_active_user(session, data.follower_id, missing)
            followed = await get_active_user(session, data.followed_id, missing)
            existing = await session.execute(
                select(FollowModel.id).where(
                    FollowModel.follower_id == follower.id, FollowModel.followed_id == followed.id
                )
            )
            if existing.scalar_one_or_none() is not None:
                raise ConflictError(DUPLICATE_FOLLOW)

            follow = FollowModel(follower_id=follower.id, followed_id=followed.id)
            session.add(follow)
            await safe_flush(session, conflict_message=DUPLICATE_FOLLOW)
            await adjust_counter(session, UserModel, follower.id, "following_count", 1)
            await adjust_counter(session, UserModel, followed.id, "followers_count", 1)
            await notify(
                session,
                user_id=followed.id,
                actor_id=follower.id,
                type=NotificationType.FOLLOW,
                title="New follower",
                message=f"{follower.username} started following you",
                related_id=follower.id,
            )
            await safe_commit(session, conflict_message=DUPLICATE_FOLLOW)
            logger.info(f"User {follower.id} followed user {followed.id}")
            return Follow.model_validate(follow)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating follow {data.follower_id}->{data.followed_id}: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")


async def delete_follow(data: FollowInput, db: AsyncSession = None) -> SuccessResponse:
    """Unfollow; both counters are decremented with a floor of zero"""
    async with get_or_use_session(db) as session:
        try:
            result = await session.execute(
                delete(FollowModel)
                .where(FollowModel.follower_id == data.follower_id, FollowModel.followed_id == data.followed_id)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                return SuccessResponse(success=False)
            await adjust_counter(session, UserModel, data.follower_id, "following_count", -1)
            await adjust_counter(session, UserModel, data.followed_id, "followers_count", -1)
            await safe_commit(session)
            logger.info(f"User {data.follower_id} unfollowed user {data.followed_id}")
            return SuccessResponse(success=True)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error deleting follow {data.follower_id}->{data.followed_id}: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")
