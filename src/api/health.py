"""
Health check endpoints.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.db import get_db
from src.models import PayPlan
from src.services.locks import deal_locks

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check():
    """Process is up. No database access."""
    return {"status": "healthy", "service": "payline"}


@router.get("/ready")
async def readiness_check(db: AsyncSession = Depends(get_db)):
    """
    Ready to recalculate.

    Reads from the pay_plans table, so a database that is reachable
    but not migrated also reports not_ready (503).
    """
    try:
        await db.execute(select(PayPlan.id).limit(1))
    except SQLAlchemyError as e:
        logger.warning(f"Readiness check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "database": f"error: {e.__class__.__name__}"},
        )

    return {
        "status": "ready",
        "database": "connected",
        "lock_mode": settings.recalc_lock_mode,
        "recalculations_in_flight": deal_locks.in_flight(),
    }


@router.get("/live")
async def liveness_check():
    return {"status": "alive"}
