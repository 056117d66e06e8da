from pydantic import BaseModel
from schemas.common_schema import Money


class DashboardStats(BaseModel):
    total_users: int
    active_users: int
    total_posts: int
    total_transactions: int
    revenue: Money
    premium_users: int
