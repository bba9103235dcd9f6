"""API V1 Router"""

from fastapi import APIRouter

# Import endpoint routers
from app.api.v1.endpoints import (
    businesses, tables, counters, bills,
    orders, splits, payments,
)

# Create API v1 router
api_router = APIRouter()

# Include endpoint routers with prefixes and tags
api_router.include_router(businesses.router, prefix="/businesses", tags=["Businesses"])
api_router.include_router(tables.router, prefix="/tables", tags=["Tables"])
api_router.include_router(counters.router, prefix="/counters", tags=["Counters"])
api_router.include_router(bills.router, prefix="/bills", tags=["Bills"])
api_router.include_router(splits.router, prefix="/bills", tags=["Bill Splitting"])
api_router.include_router(orders.router, tags=["Orders"])
api_router.include_router(payments.router, tags=["Payments"])
