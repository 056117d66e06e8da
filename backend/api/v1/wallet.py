from typing import Annotated
from fastapi import APIRouter, Depends, Query, status
from schemas.user_schema import User
from schemas.wallet_schema import TopUpInput, PurchasePremiumInput, GetTransactionsQuery
from api.dependencies import get_current_user, ensure_self_or_admin
from db.session import get_db_session
from sqlalchemy.ext.asyncio import AsyncSession
from services.wallet_service import top_up_balance, purchase_premium, get_transactions, get_wallet_info
from services.premium_service import get_premium_packages
from utils.responses import no_store_json
from utils.timing import timeit

router = APIRouter()

@router.post("/wallet/topup", status_code=status.HTTP_201_CREATED)
@timeit("wallet.topup")
async def wallet_topup(data: TopUpInput, current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db_session)):
    ensure_self_or_admin(current_user, data.user_id)
    return no_store_json(await top_up_balance(data, db), status_code=status.HTTP_201_CREATED)

@router.post("/wallet/purchase", status_code=status.HTTP_201_CREATED)
@timeit("wallet.purchase")
async def wallet_purchase(data: PurchasePremiumInput, current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db_session)):
    ensure_self_or_admin(current_user, data.user_id)
    return no_store_json(await purchase_premium(data, db), status_code=status.HTTP_201_CREATED)

@router.get("/wallet/transactions")
@timeit("wallet.transactions")
async def wallet_transactions(query: Annotated[GetTransactionsQuery, Query()], current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db_session)):
    # Non-admins only ever see their own ledger
    if not current_user.is_admin:
        query = query.model_copy(update={"user_id": current_user.id})
    return no_store_json(await get_transactions(query, db))

@router.get("/wallet/{user_id}")
async def wallet_info(user_id: int, current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db_session)):
    ensure_self_or_admin(current_user, user_id)
    return no_store_json(await get_wallet_info(user_id, db))

@router.get("/premium-packages")
async def premium_packages(db: AsyncSession = Depends(get_db_session)):
    return no_store_json(await get_premium_packages(db))
