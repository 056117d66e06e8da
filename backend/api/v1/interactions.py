from typing import Annotated
from fastapi import APIRouter, Depends, Query, status
from schemas.user_schema import User
from schemas.interaction_schema import LikeInput, ShareInput, CommentLikeInput
from api.dependencies import get_current_user, ensure_self_or_admin
from db.session import get_db_session
from sqlalchemy.ext.asyncio import AsyncSession
from services.interaction_service import create_like, delete_like, create_share, create_comment_like, delete_comment_like
from utils.responses import no_store_json
from utils.timing import timeit

router = APIRouter()

@router.post("/likes", status_code=status.HTTP_201_CREATED)
@timeit("likes.create")
async def like_post(data: LikeInput, current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db_session)):
    ensure_self_or_admin(current_user, data.user_id)
    return no_store_json(await create_like(data, db), status_code=status.HTTP_201_CREATED)

@router.delete("/likes")
@timeit("likes.delete")
async def unlike_post(data: Annotated[LikeInput, Query()], current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db_session)):
    ensure_self_or_admin(current_user, data.user_id)
    return no_store_json(await delete_like(data, db))

@router.post("/shares", status_code=status.HTTP_201_CREATED)
@timeit("shares.create")
async def share_post(data: ShareInput, current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db_session)):
    ensure_self_or_admin(current_user, data.user_id)
    return no_store_json(await create_share(data, db), status_code=status.HTTP_201_CREATED)

@router.post("/comment-likes", status_code=status.HTTP_201_CREATED)
@timeit("comment_likes.create")
async def like_comment(data: CommentLikeInput, current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db_session)):
    ensure_self_or_admin(current_user, data.user_id)
    return no_store_json(await create_comment_like(data, db), status_code=status.HTTP_201_CREATED)

@router.delete("/comment-likes")
@timeit("comment_likes.delete")
async def unlike_comment(data: Annotated[CommentLikeInput, Query()], current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db_session)):
    ensure_self_or_admin(current_user, data.user_id)
    return no_store_json(await delete_comment_like(data, db))
