"""API router aggregation."""

from fastapi import APIRouter

from src.api.deals import router as deals_router
from src.api.health import router as health_router
from src.api.org_snapshots import router as org_snapshots_router
from src.api.pay_plans import router as pay_plans_router

# Main API router (for /api/* endpoints)
api_router = APIRouter(prefix="/api")

api_router.include_router(health_router)
api_router.include_router(deals_router)
api_router.include_router(org_snapshots_router)
api_router.include_router(pay_plans_router)

__all__ = ["api_router"]
