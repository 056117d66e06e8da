from fastapi import Depends
from core.security import oauth2_scheme, get_user_id_from_token
from core.exceptions import AuthenticationError, PermissionDeniedError
from schemas.user_schema import User as UserSchema
from db.session import get_db_session
from db.models.user import User as UserModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import logging

logger = logging.getLogger(__name__)

async def get_current_user(token: str = Depends(oauth2_scheme), db: AsyncSession = Depends(get_db_session)) -> UserSchema:
    if not token:
        raise AuthenticationError()
    user_id = get_user_id_from_token(token)
    if user_id is None:
        raise AuthenticationError()

    result = await db.execute(select(UserModel).where(UserModel.id == user_id).execution_options(populate_existing=True))
    db_user = result.scalar_one_or_none()
    if db_user is None:
        logger.warning(f"Token subject {user_id} does not match any user")
        raise AuthenticationError()
    if not db_user.is_active:
        raise AuthenticationError("Account is deactivated")
    return UserSchema.model_validate(db_user)

async def admin_required(current_user: UserSchema = Depends(get_current_user)) -> UserSchema:
    if not current_user.is_admin:
        raise PermissionDeniedError("Admin access required")
    return current_user

def ensure_self_or_admin(current_user: UserSchema, user_id: int) -> None:
    """Users act on their own behalf; admins may act for anyone"""
    if current_user.id != user_id and not current_user.is_admin:
        raise PermissionDeniedError("Not allowed to act on behalf of another user")
