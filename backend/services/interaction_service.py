"""Likes, shares and comment likes.

Every relationship row is written together with the counter that mirrors it,
inside one transaction. Duplicate pairs are rejected by the unique
constraints on the relationship tables; the lookup before the insert only
produces a friendlier message in the common, non-racing case.
"""

from schemas.interaction_schema import LikeInput, Like, ShareInput, Share, CommentLikeInput, CommentLike
from schemas.common_schema import SuccessResponse
from db.session import get_or_use_session
from db.models.post import Post as PostModel, Comment as CommentModel
from db.models.interaction import Like as LikeModel, Share as ShareModel, CommentLike as CommentLikeModel
from db.models.notification import NotificationType
from core.exceptions import NotFoundError, ConflictError
from services.user_service import get_active_user
from services.post_service import get_active_post
from services.notification_service import notify
from fastapi import HTTPException
import logging
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from utils.db import safe_flush, safe_commit, adjust_counter

logger = logging.getLogger(__name__)

DUPLICATE_LIKE = "User has already liked this post"
DUPLICATE_SHARE = "User has already shared this post"
DUPLICATE_COMMENT_LIKE = "User has already liked this comment"


async def create_like(data: LikeInput, db: AsyncSession = None) -> Like:
    async with get_or_use_session(db) as session:
        try:
            user = await get_active_user(session, data.user_id, "User not found or inactive")
            post = await get_active_post(session, data.post_id)
            existing = await session.execute(
                select(LikeModel.id).where(LikeModel.user_id == user.id, LikeModel.post_id == post.id)
            )
            if existing.scalar_one_or_none() is not None:
                raise ConflictError(DUPLICATE_LIKE)

            like = LikeModel(user_id=user.id, post_id=post.id)
            session.add(like)
            await safe_flush(session, conflict_message=DUPLICATE_LIKE)
            await adjust_counter(session, PostModel, post.id, "likes_count", 1)
            await notify(
                session,
                user_id=post.user_id,
                actor_id=user.id,
                type=NotificationType.LIKE,
                title="New like",
                message=f"{user.username} liked your post",
                related_id=post.id,
            )
            await safe_commit(session, conflict_message=DUPLICATE_LIKE)
            logger.info(f"User {user.id} liked post {post.id}")
            return Like.model_validate(like)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error liking post {data.post_id} by user {data.user_id}: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")


async def delete_like(data: LikeInput, db: AsyncSession = None) -> SuccessResponse:
    """Remove a like; a missing like is a no-op reported as success=False.

    The post must exist but may be inactive, so likes on a deleted post can
    still be withdrawn.
    """
    async with get_or_use_session(db) as session:
        try:
            post_id = (await session.execute(
                select(PostModel.id).where(PostModel.id == data.post_id)
            )).scalar_one_or_none()
            if post_id is None:
                raise NotFoundError("Post not found")

            result = await session.execute(
                delete(LikeModel)
                .where(LikeModel.user_id == data.user_id, LikeModel.post_id == post_id)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                return SuccessResponse(success=False)
            await adjust_counter(session, PostModel, post_id, "likes_count", -1)
            await safe_commit(session)
            logger.info(f"User {data.user_id} unliked post {post_id}")
            return SuccessResponse(success=True)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error unliking post {data.post_id} by user {data.user_id}: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")


async def create_share(data: ShareInput, db: AsyncSession = None) -> Share:
    async with get_or_use_session(db) as session:
        try:
            user = await get_active_user(session, data.user_id)
            post = await get_active_post(session, data.post_id)
            existing = await session.execute(
                select(ShareModel.id).where(ShareModel.user_id == user.id, ShareModel.post_id == post.id)
            )
            if existing.scalar_one_or_none() is not None:
                raise ConflictError(DUPLICATE_SHARE)

            share = ShareModel(user_id=user.id, post_id=post.id)
            session.add(share)
            await safe_flush(session, conflict_message=DUPLICATE_SHARE)
            await adjust_counter(session, PostModel, post.id, "shares_count", 1)
            await notify(
                session,
                user_id=post.user_id,
                actor_id=user.id,
                type=NotificationType.SHARE,
                title="Post shared",
                message=f"{user.username} shared your post",
                related_id=post.id,
            )
            await safe_commit(session, conflict_message=DUPLICATE_SHARE)
            logger.info(f"User {user.id} shared post {post.id}")
            return Share.model_validate(share)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error sharing post {data.post_id} by user {data.user_id}: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")


async def create_comment_like(data: CommentLikeInput, db: AsyncSession = None) -> CommentLike:
    async with get_or_use_session(db) as session:
        try:
            user = await get_active_user(session, data.user_id, "User not found or inactive")
            comment = (await session.execute(
                select(CommentModel).where(CommentModel.id == data.comment_id)
            )).scalar_one_or_none()
            if comment is None or not comment.is_active:
                raise NotFoundError("Comment not found or inactive")
            existing = await session.execute(
                select(CommentLikeModel.id).where(
                    CommentLikeModel.user_id == user.id, CommentLikeModel.comment_id == comment.id
                )
            )
            if existing.scalar_one_or_none() is not None:
                raise ConflictError(DUPLICATE_COMMENT_LIKE)

            comment_like = CommentLikeModel(user_id=user.id, comment_id=comment.id)
            session.add(comment_like)
            await safe_flush(session, conflict_message=DUPLICATE_COMMENT_LIKE)
            await adjust_counter(session, CommentModel, comment.id, "likes_count", 1)
            await notify(
                session,
                user_id=comment.user_id,
                actor_id=user.id,
                type=NotificationType.LIKE,
                title="New like",
                message=f"{user.username} liked your comment",
                related_id=comment.post_id,
            )
            await safe_commit(session, conflict_message=DUPLICATE_COMMENT_LIKE)
            logger.info(f"User {user.id} liked comment {comment.id}")
            return CommentLike.model_validate(comment_like)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error liking comment {data.comment_id} by user {data.user_id}: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")


async def delete_comment_like(data: CommentLikeInput, db: AsyncSession = None) -> SuccessResponse:
    async with get_or_use_session(db) as session:
        try:
            comment_id = (await session.execute(
                select(CommentModel.id).where(CommentModel.id == data.comment_id)
            )).scalar_one_or_none()
            if comment_id is None:
                raise NotFoundError("Comment not found")

            result = await session.execute(
                delete(CommentLikeModel)
                .where(CommentLikeModel.user_id == data.user_id, CommentLikeModel.comment_id == comment_id)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                return SuccessResponse(success=False)
            await adjust_counter(session, CommentModel, comment_id, "likes_count", -1)
            await safe_commit(session)
            logger.info(f"User {data.user_id} unliked comment {comment_id}")
            return SuccessResponse(success=True)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error unliking comment {data.comment_id} by user {data.user_id}: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")
