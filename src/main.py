"""
Payline - Commission Calculation Engine

Main FastAPI application with:
- Deal commission recalculation
- Org snapshot audit view
- Pay plan assignment and rule administration
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from src.api import api_router
from src.config import settings
from src.db import engine
from src.services.errors import CommissionEngineError

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Engine error kind -> HTTP status
ERROR_STATUS = {
    "not_found": status.HTTP_404_NOT_FOUND,
    "ambiguous_assignment": status.HTTP_409_CONFLICT,
    "cyclic_hierarchy": status.HTTP_409_CONFLICT,
    "unrecognized_calc_method": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "overlapping_assignment": status.HTTP_409_CONFLICT,
    "invalid_assignment": status.HTTP_400_BAD_REQUEST,
    "concurrent_recalculation": status.HTTP_409_CONFLICT,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Shutdown:
    - Disposes the database engine
    """
    logger.info("Starting Payline...")

    yield

    # Shutdown
    logger.info("Shutting down Payline...")
    await engine.dispose()


# Create FastAPI application
app = FastAPI(
    title="Payline",
    description="Commission Calculation Engine",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)


@app.exception_handler(CommissionEngineError)
async def engine_error_handler(request: Request, exc: CommissionEngineError):
    """Map engine errors to JSON responses by kind."""
    status_code = ERROR_STATUS.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
    if status_code >= 500 or exc.kind in ("cyclic_hierarchy", "ambiguous_assignment", "unrecognized_calc_method"):
        logger.error(f"{request.method} {request.url.path} failed: [{exc.kind}] {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: [{exc.kind}] {exc.message}")

    return JSONResponse(
        status_code=status_code,
        content={"error": exc.to_dict()},
    )


# Include routers
app.include_router(api_router)  # /api/* endpoints


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=not settings.is_production,
    )
