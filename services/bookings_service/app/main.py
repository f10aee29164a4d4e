"""FastAPI application for the Bookings Service."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from libs.common.error_handler import add_exception_handlers
from libs.common.logging import get_logger
from libs.common.middleware import add_observability_middleware
from services.bookings_service.errors import BookingError
from services.bookings_service.events import get_dispatcher
from services.bookings_service.notifications import register_notification_forwarder
from services.bookings_service.routers import bookings_router, trainers_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    dispatcher = get_dispatcher()
    if dispatcher.pending:
        logger.info("Waiting for %d event deliveries", dispatcher.pending)
    await dispatcher.drain()


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    """Render typed booking failures as ``{code, message, retryable}``."""
    if exc.http_status < 500:
        logger.warning(
            "%s %s rejected: %s", request.method, request.url.path, exc.code
        )
    else:
        logger.error(
            "%s %s failed: %s",
            request.method,
            request.url.path,
            exc.code,
            exc_info=exc.__cause__,
        )
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


def create_app() -> FastAPI:
    """Create and configure the Bookings Service FastAPI app."""
    app = FastAPI(
        title="AirTrainr Bookings Service",
        version="0.1.0",
        description="Booking lifecycle, settlement and reviews for AirTrainr.",
        lifespan=lifespan,
    )

    add_observability_middleware(app)
    add_exception_handlers(app)
    app.add_exception_handler(BookingError, booking_error_handler)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "bookings"}

    # Gateway: /api/v1/bookings/{path} → /bookings/{path}
    app.include_router(bookings_router)
    # Gateway: /api/v1/trainers/{path} → /trainers/{path}
    app.include_router(trainers_router)

    register_notification_forwarder(get_dispatcher())

    return app


app = create_app()
