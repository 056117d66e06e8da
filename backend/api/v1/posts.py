from typing import Annotated
from fastapi import APIRouter, Depends, Query, status
from schemas.user_schema import User
from schemas.post_schema import PostCreate, PostUpdate, GetPostsQuery, CommentCreate
from schemas.common_schema import PageQuery
from api.dependencies import get_current_user, ensure_self_or_admin
from db.session import get_db_session
from sqlalchemy.ext.asyncio import AsyncSession
from services.post_service import (
    create_post,
    get_post,
    get_posts,
    update_post,
    delete_post,
    create_comment,
    get_comment,
    get_comments,
    delete_comment,
)
from utils.responses import no_store_json
from utils.timing import timeit

router = APIRouter()

@router.post("/posts", status_code=status.HTTP_201_CREATED)
@timeit("posts.create")
async def new_post(data: PostCreate, current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db_session)):
    ensure_self_or_admin(current_user, data.user_id)
    return no_store_json(await create_post(data, db), status_code=status.HTTP_201_CREATED)

@router.get("/posts")
@timeit("posts.list")
async def list_posts(query: Annotated[GetPostsQuery, Query()], db: AsyncSession = Depends(get_db_session)):
    return no_store_json(await get_posts(query, db))

@router.get("/posts/{post_id}")
async def read_post(post_id: int, db: AsyncSession = Depends(get_db_session)):
    return no_store_json(await get_post(post_id, db))

@router.put("/posts/{post_id}")
@timeit("posts.update")
async def edit_post(post_id: int, data: PostUpdate, current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db_session)):
    post = await get_post(post_id, db)
    ensure_self_or_admin(current_user, post.user_id)
    return no_store_json(await update_post(post_id, data, db))

@router.delete("/posts/{post_id}")
@timeit("posts.delete")
async def remove_post(post_id: int, current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db_session)):
    post = await get_post(post_id, db)
    ensure_self_or_admin(current_user, post.user_id)
    return no_store_json(await delete_post(post_id, db))

@router.get("/posts/{post_id}/comments")
async def list_comments(post_id: int, page: Annotated[PageQuery, Query()], db: AsyncSession = Depends(get_db_session)):
    return no_store_json(await get_comments(post_id, page.page, page.limit, db))

@router.post("/comments", status_code=status.HTTP_201_CREATED)
@timeit("comments.create")
async def new_comment(data: CommentCreate, current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db_session)):
    ensure_self_or_admin(current_user, data.user_id)
    return no_store_json(await create_comment(data, db), status_code=status.HTTP_201_CREATED)

@router.delete("/comments/{comment_id}")
@timeit("comments.delete")
async def remove_comment(comment_id: int, current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db_session)):
    comment = await get_comment(comment_id, db)
    if comment is None:
        return no_store_json({"success": False})
    ensure_self_or_admin(current_user, comment.user_id)
    return no_store_json(await delete_comment(comment_id, db))
