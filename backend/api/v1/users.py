from typing import Annotated
from fastapi import APIRouter, Depends, Query
from schemas.user_schema import User, UserUpdate, GetUsersQuery, SearchUsersQuery
from api.dependencies import get_current_user, ensure_self_or_admin
from core.exceptions import NotFoundError
from db.session import get_db_session
from sqlalchemy.ext.asyncio import AsyncSession
from services.user_service import get_users, search_users, get_user_by_id, update_user
from utils.responses import no_store_json
from utils.timing import timeit

router = APIRouter()

@router.get("/users")
@timeit("users.list")
async def list_users(query: Annotated[GetUsersQuery, Query()], db: AsyncSession = Depends(get_db_session)):
    return no_store_json(await get_users(query, db))

@router.get("/users/search")
@timeit("users.search")
async def search(query: Annotated[SearchUsersQuery, Query()], db: AsyncSession = Depends(get_db_session)):
    return no_store_json(await search_users(query, db))

@router.get("/users/{user_id}")
async def read_user(user_id: int, db: AsyncSession = Depends(get_db_session)):
    user = await get_user_by_id(user_id, db)
    if user is None:
        raise NotFoundError("User not found")
    return no_store_json(user)

@router.put("/users/{user_id}")
@timeit("users.update")
async def edit_user(user_id: int, data: UserUpdate, current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db_session)):
    ensure_self_or_admin(current_user, user_id)
    return no_store_json(await update_user(user_id, data, db))
