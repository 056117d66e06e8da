from typing import Annotated
from fastapi import APIRouter, Depends, Query, status
from schemas.user_schema import User
from schemas.interaction_schema import FollowInput
from api.dependencies import get_current_user, ensure_self_or_admin
from db.session import get_db_session
from sqlalchemy.ext.asyncio import AsyncSession
from services.follow_service import create_follow, delete_follow
from utils.responses import no_store_json
from utils.timing import timeit

router = APIRouter()

@router.post("/follows", status_code=status.HTTP_201_CREATED)
@timeit("follows.create")
async def follow(data: FollowInput, current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db_session)):
    ensure_self_or_admin(current_user, data.follower_id)
    return no_store_json(await create_follow(data, db), status_code=status.HTTP_201_CREATED)

@router.delete("/follows")
@timeit("follows.delete")
async def unfollow(data: Annotated[FollowInput, Query()], current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db_session)):
    ensure_self_or_admin(current_user, data.follower_id)
    return no_store_json(await delete_follow(data, db))
