"""
FastAPI application entry point
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError
import logging

from seat_inventory.api import events, reservations, purchases, marketplace, groups
from seat_inventory.core import metrics
from seat_inventory.core.clock import Clock, utcnow
from seat_inventory.core.config import settings
from seat_inventory.core.database import Database, database_from_settings
from seat_inventory.core.logging_config import setup_logging
from seat_inventory.core.security import JWTIdentityProvider, identity_from_settings
from seat_inventory.middleware.rate_limiter import limiter
from seat_inventory.middleware.tracing import TracingMiddleware
from seat_inventory.services import (
    AvailabilityResolver,
    ExpiryWorker,
    GroupPurchaseEngine,
    InventoryError,
    Marketplace,
    PurchaseEngine,
    ReservationManager,
)
from seat_inventory.services.errors import ErrorCode

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.GROUP_SIZE_MISMATCH: 400,
    ErrorCode.AUTH_ERROR: 401,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.NOT_ON_SALE_YET: 403,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.CONFLICT: 409,
    ErrorCode.SEAT_UNAVAILABLE: 409,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for startup and shutdown"""
    setup_logging()
    logger.info(f"🚀 Starting up {settings.APP_NAME}...")

    database: Database = app.state.database
    await database.create_all()
    logger.info("✅ Database schema ready")

    worker: Optional[ExpiryWorker] = None
    if settings.EXPIRY_SWEEP_ENABLED:
        worker = ExpiryWorker(database, clock=app.state.clock)
        await worker.start()

    yield

    logger.info("🛑 Shutting down...")
    if worker is not None:
        await worker.stop()
    await database.dispose()
    logger.info("✅ Cleanup complete")


async def inventory_error_handler(request: Request, exc: InventoryError):
    status_code = ERROR_STATUS.get(exc.code, 400)
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(status_code=status_code, content=exc.to_dict(), headers=headers)


async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"❌ Database error on {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": "INTERNAL_ERROR", "message": "Internal server error"},
    )


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """Handle rate limit exceeded errors"""
    logger.warning(f"⚠️ Rate limit exceeded for {request.url.path}")
    return JSONResponse(
        status_code=429,
        content={
            "error": "RATE_LIMIT_EXCEEDED",
            "message": "Too many requests. Please slow down.",
            "detail": str(exc.detail),
        },
        headers={"Retry-After": "60"},
    )


def create_app(
    database: Optional[Database] = None,
    identity: Optional[JWTIdentityProvider] = None,
    clock: Clock = utcnow,
) -> FastAPI:
    """
    Build the application. Tests pass their own database, identity provider
    and clock; the server uses the ones derived from settings.
    """
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Seat availability, holds, purchases, resale and group purchases",
        lifespan=lifespan,
    )

    app.state.clock = clock
    app.state.database = database or database_from_settings()
    app.state.identity = identity or identity_from_settings()
    app.state.limiter = limiter

    purchase_engine = PurchaseEngine(clock=clock)
    app.state.availability = AvailabilityResolver(clock=clock)
    app.state.reservations = ReservationManager(clock=clock)
    app.state.purchases = purchase_engine
    app.state.marketplace = Marketplace(clock=clock)
    app.state.groups = GroupPurchaseEngine(purchase_engine, clock=clock)

    app.add_exception_handler(InventoryError, inventory_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)

    app.add_middleware(TracingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
        }

    @app.get("/metrics", tags=["Health"])
    async def prometheus_metrics():
        return Response(content=metrics.get_metrics(), media_type=metrics.CONTENT_TYPE_LATEST)

    app.include_router(events.router, prefix="/api/v1", tags=["Events"])
    app.include_router(reservations.router, prefix="/api/v1", tags=["Reservations"])
    app.include_router(purchases.router, prefix="/api/v1", tags=["Purchases"])
    app.include_router(marketplace.router, prefix="/api/v1", tags=["Marketplace"])
    app.include_router(groups.router, prefix="/api/v1", tags=["Groups"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "seat_inventory.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
