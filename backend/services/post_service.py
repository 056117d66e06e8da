from schemas.post_schema import PostCreate, PostUpdate, Post, GetPostsQuery, CommentCreate, Comment
from schemas.common_schema import SuccessResponse
from db.session import get_or_use_session
from db.models.post import Post as PostModel, Comment as CommentModel
from db.models.notification import NotificationType
from core.exceptions import NotFoundError
from services.user_service import get_active_user
from services.notification_service import notify
from fastapi import HTTPException
from typing import List, Optional
import logging
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from utils.db import safe_flush, safe_commit, adjust_counter

logger = logging.getLogger(__name__)


async def get_active_post(session: AsyncSession, post_id: int, message: str = "Post not found or inactive") -> PostModel:
    result = await session.execute(
        select(PostModel).where(PostModel.id == post_id).execution_options(populate_existing=True)
    )
    post = result.scalar_one_or_none()
    if post is None or not post.is_active:
        raise NotFoundError(message)
    return post


def _urls(values):
    if values is None:
        return None
    return [str(v) for v in values]


async def create_post(data: PostCreate, db: AsyncSession = None) -> Post:
    async with get_or_use_session(db) as session:
        try:
            await get_active_user(session, data.user_id, "User not found or inactive")
            post = PostModel(
                user_id=data.user_id,
                content=data.content,
                media_urls=_urls(data.media_urls),
                media_type=data.media_type,
                link_url=str(data.link_url) if data.link_url else None,
            )
            session.add(post)
            await safe_commit(session)
            logger.info(f"Post {post.id} created by user {data.user_id}")
            return Post.model_validate(post)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating post for user {data.user_id}: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")


async def get_post(post_id: int, db: AsyncSession = None) -> Post:
    async with get_or_use_session(db) as session:
        return Post.model_validate(await get_active_post(session, post_id))


async def get_posts(query: GetPostsQuery, db: AsyncSession = None) -> List[Post]:
    """Active posts, newest first"""
    async with get_or_use_session(db) as session:
        stmt = select(PostModel).where(PostModel.is_active.is_(True))
        if query.user_id is not None:
            stmt = stmt.where(PostModel.user_id == query.user_id)
        stmt = (
            stmt.order_by(PostModel.created_at.desc(), PostModel.id.desc())
            .offset(query.offset)
            .limit(query.limit)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return [Post.model_validate(p) for p in result.scalars().all()]


async def update_post(post_id: int, data: PostUpdate, db: AsyncSession = None) -> Post:
    async with get_or_use_session(db) as session:
        try:
            post = await get_active_post(session, post_id)
            changes = data.model_dump(exclude_unset=True)
            if "content" in changes:
                post.content = data.content
            if "media_urls" in changes:
                post.media_urls = _urls(data.media_urls)
            if "media_type" in changes and data.media_type is not None:
                post.media_type = data.media_type
            if "link_url" in changes:
                post.link_url = str(data.link_url) if data.link_url else None
            await safe_commit(session)
            await session.refresh(post)
            logger.info(f"Post {post_id} updated: {sorted(changes)}")
            return Post.model_validate(post)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating post {post_id}: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")


async def delete_post(post_id: int, db: AsyncSession = None) -> SuccessResponse:
    """Soft delete; relationship rows and counters are left as they are"""
    async with get_or_use_session(db) as session:
        try:
            result = await session.execute(
                update(PostModel)
                .where(PostModel.id == post_id, PostModel.is_active.is_(True))
                .values(is_active=False)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise NotFoundError("Post not found or inactive")
            await safe_commit(session)
            logger.info(f"Post {post_id} deactivated")
            return SuccessResponse(success=True)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error deleting post {post_id}: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")


async def create_comment(data: CommentCreate, db: AsyncSession = None) -> Comment:
    """Insert a comment and bump the post's comments_count in one transaction"""
    async with get_or_use_session(db) as session:
        try:
            user = await get_active_user(session, data.user_id, "User not found or inactive")
            post = await get_active_post(session, data.post_id)
            comment = CommentModel(user_id=user.id, post_id=post.id, content=data.content)
            session.add(comment)
            await safe_flush(session)
            await adjust_counter(session, PostModel, post.id, "comments_count", 1)
            await notify(
                session,
                user_id=post.user_id,
                actor_id=user.id,
                type=NotificationType.COMMENT,
                title="New comment",
                message=f"{user.username} commented on your post",
                related_id=post.id,
            )
            await safe_commit(session)
            logger.info(f"Comment {comment.id} added to post {post.id} by user {user.id}")
            return Comment.model_validate(comment)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating comment on post {data.post_id}: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")


async def get_comment(comment_id: int, db: AsyncSession = None) -> Optional[Comment]:
    async with get_or_use_session(db) as session:
        result = await session.execute(
            select(CommentModel).where(CommentModel.id == comment_id, CommentModel.is_active.is_(True))
        )
        comment = result.scalar_one_or_none()
        return Comment.model_validate(comment) if comment else None


async def get_comments(post_id: int, page: int = 1, limit: int = 20, db: AsyncSession = None) -> List[Comment]:
    async with get_or_use_session(db) as session:
        await get_active_post(session, post_id)
        result = await session.execute(
            select(CommentModel)
            .where(CommentModel.post_id == post_id, CommentModel.is_active.is_(True))
            .order_by(CommentModel.created_at.desc(), CommentModel.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        return [Comment.model_validate(c) for c in result.scalars().all()]


async def delete_comment(comment_id: int, db: AsyncSession = None) -> SuccessResponse:
    """Soft delete a comment and decrement the post's comments_count.

    Only the call whose UPDATE actually flips is_active decrements, so
    repeated or concurrent deletes cannot double count.
    """
    async with get_or_use_session(db) as session:
        try:
            post_id = (await session.execute(
                select(CommentModel.post_id).where(CommentModel.id == comment_id, CommentModel.is_active.is_(True))
            )).scalar_one_or_none()
            if post_id is None:
                return SuccessResponse(success=False)
            result = await session.execute(
                update(CommentModel)
                .where(CommentModel.id == comment_id, CommentModel.is_active.is_(True))
                .values(is_active=False)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                return SuccessResponse(success=False)
            await adjust_counter(session, PostModel, post_id, "comments_count", -1)
            await safe_commit(session)
            logger.info(f"Comment {comment_id} removed from post {post_id}")
            return SuccessResponse(success=True)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error deleting comment {comment_id}: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")
