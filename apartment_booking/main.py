import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from apartment_booking.core.config import settings
from apartment_booking.core.logging import setup_logging
from apartment_booking.core.rate_limiter import limiter
from apartment_booking.domain.errors import (
    ConflictError,
    InvalidRangeError,
    NotFoundError,
    PermissionDeniedError,
)
from apartment_booking.middleware.request_logger import RequestLoggerMiddleware
from apartment_booking.services.occupancy import OccupancyKind

from apartment_booking.api.health import router as health_router
from apartment_booking.api.apartments import router as apartments_router
from apartment_booking.api.availability import router as availability_router
from apartment_booking.api.blocked_dates import router as blocked_dates_router
from apartment_booking.api.bookings import router as bookings_router


# -------------------------------------------------
# Logging
# -------------------------------------------------

setup_logging()
logger = logging.getLogger(__name__)


# -------------------------------------------------
# FastAPI
# -------------------------------------------------

app = FastAPI(
    title=settings.project_name,
    description="Apartment rentals: bookings, availability blocks and blocked dates",
    version="0.1.0",
)

# -------------------------------------------------
# Rate Limiting (slowapi)
# -------------------------------------------------
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(RequestLoggerMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -------------------------------------------------
# Error responses: {"error": ...}
# -------------------------------------------------

CONFLICT_FIELDS = {
    OccupancyKind.BOOKING: ("This apartment is already booked for the selected dates", "conflictingBooking"),
    OccupancyKind.AVAILABILITY_BLOCK: ("Dates overlap with an existing availability period", "conflictingPeriod"),
    OccupancyKind.BLOCKED_DATE: ("Dates overlap with blocked dates", "conflictingBlockedDate"),
}


@app.exception_handler(InvalidRangeError)
async def invalid_range_handler(request: Request, exc: InvalidRangeError):
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError):
    message, field = CONFLICT_FIELDS[exc.conflict.kind]
    return JSONResponse(
        status_code=400,
        content={
            "error": message,
            "conflictType": exc.conflict.kind.value,
            field: exc.conflict.record_id,
        },
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"error": str(exc)})


@app.exception_handler(PermissionDeniedError)
async def permission_denied_handler(request: Request, exc: PermissionDeniedError):
    return JSONResponse(status_code=403, content={"error": str(exc)})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0]["msg"] if errors else "Invalid request"
    return JSONResponse(status_code=422, content={"error": message})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


app.include_router(health_router)
app.include_router(apartments_router)
app.include_router(availability_router)
app.include_router(blocked_dates_router)
app.include_router(bookings_router)


# -------------------------------------------------
# Lifecycle
# -------------------------------------------------


@app.on_event("startup")
async def on_startup():
    logger.info("FastAPI startup")

    if settings.jwt_secret == "change-me":
        logger.warning("JWT_SECRET is not set, using the development default")

    from apartment_booking.database import init_db

    await init_db()


@app.on_event("shutdown")
async def on_shutdown():
    logger.info("FastAPI shutdown")

    from apartment_booking.database import engine

    await engine.dispose()
