from decimal import Decimal
from typing import Annotated
from pydantic import BaseModel, BeforeValidator, Field
from core.config import settings


def _decimal_to_float(value):
    if isinstance(value, Decimal):
        return float(value)
    return value


# Monetary values are exact decimals in storage and plain numbers on the way out
Money = Annotated[float, BeforeValidator(_decimal_to_float)]

# Monetary input: positive, at most 2 decimal places, fits NUMERIC(10, 2)
PositiveAmount = Annotated[Decimal, Field(gt=0, max_digits=10, decimal_places=2)]


class PageQuery(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class SuccessResponse(BaseModel):
    success: bool
