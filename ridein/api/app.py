"""
FastAPI application factory.

* Registers routes for auth, trips, drivers, favourites, pricing and admin.
* Starts / stops the background bid reconciler via lifespan events.
* Applies rate-limiting middleware and the ``{error_type, error}`` handlers.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from ridein.api.errors import register_error_handlers
from ridein.api.middleware import limiter
from ridein.api.routes import admin, auth, driver, favorites, pricing, trips
from ridein.infrastructure.redis_client import close_redis
from ridein.workers import reconciler as _reconciler

logging.basicConfig(level=logging.INFO)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the bid reconciler on startup; stop it and drain Redis on shutdown."""
    await _reconciler.start_reconcile_loop()
    yield
    await _reconciler.stop_reconcile_loop()
    await close_redis()


def create_app() -> FastAPI:
    app = FastAPI(
        title="RideIn Zimbabwe API",
        description=(
            "Ride-hailing and freight dispatch.  Riders post trips with a "
            "proposed price, nearby drivers bid, and the rider accepts one "
            "offer.  Trip and bid events are pushed over Redis channels; the "
            "database stays the source of truth."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    register_error_handlers(app)

    # Routers
    app.include_router(auth.router, prefix="/api/v1")
    app.include_router(trips.router, prefix="/api/v1")
    app.include_router(driver.router, prefix="/api/v1")
    app.include_router(favorites.router, prefix="/api/v1")
    app.include_router(pricing.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
