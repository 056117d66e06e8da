from schemas.wallet_schema import PremiumPackageCreate, PremiumPackage
from db.session import get_or_use_session
from db.models.premium import PremiumPackage as PremiumPackageModel
from fastapi import HTTPException
from typing import List
import logging
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from utils.db import safe_commit

logger = logging.getLogger(__name__)


async def get_premium_packages(db: AsyncSession = None) -> List[PremiumPackage]:
    """Active packages, cheapest first"""
    async with get_or_use_session(db) as session:
        result = await session.execute(
            select(PremiumPackageModel)
            .where(PremiumPackageModel.is_active.is_(True))
            .order_by(PremiumPackageModel.price.asc(), PremiumPackageModel.id.asc())
        )
        return [PremiumPackage.model_validate(p) for p in result.scalars().all()]


async def create_premium_package(data: PremiumPackageCreate, db: AsyncSession = None) -> PremiumPackage:
    async with get_or_use_session(db) as session:
        try:
            package = PremiumPackageModel(
                name=data.name,
                description=data.description,
                price=data.price,
                duration_days=data.duration_days,
                features=list(data.features),
            )
            session.add(package)
            await safe_commit(session)
            logger.info(f"Premium package {package.id} '{package.name}' created at {package.price}")
            return PremiumPackage.model_validate(package)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating premium package {data.name}: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")
