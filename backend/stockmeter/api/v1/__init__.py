"""
API v1 Router

All metered API endpoints.
"""

from fastapi import APIRouter

from stockmeter.api.v1.endpoints import stocks

router = APIRouter()

# Include all endpoint routers
router.include_router(stocks.router, prefix="/stocks", tags=["Stocks"])
