from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from schemas.user_schema import UserCreate, UserLogin, User
from services.user_service import create_user, login_user
from api.dependencies import get_current_user
from utils.responses import no_store_json
from utils.timing import timeit
from db.session import get_db_session
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter()

@router.post("/auth/register", status_code=status.HTTP_201_CREATED)
@timeit("auth.register")
async def register(user: UserCreate, db: AsyncSession = Depends(get_db_session)):
    return no_store_json(await create_user(user, db), status_code=status.HTTP_201_CREATED)

@router.post("/auth/login")
@timeit("auth.login")
async def login(credentials: UserLogin, db: AsyncSession = Depends(get_db_session)):
    return no_store_json(await login_user(credentials.email, credentials.password, db))

@router.post("/auth/token")
@timeit("auth.token")
async def token(form_data: OAuth2PasswordRequestForm = Depends(), db: AsyncSession = Depends(get_db_session)):
    # OAuth2 password flow for the docs 'Authorize' button; the username field carries the email
    auth = await login_user(form_data.username, form_data.password, db)
    return no_store_json({"access_token": auth.token, "token_type": "bearer"})

@router.get("/auth/me")
async def read_me(current_user: User = Depends(get_current_user)):
    return no_store_json(current_user)
