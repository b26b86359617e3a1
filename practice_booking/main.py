# practice_booking/main.py
from __future__ import annotations

# Load .env early so settings and os.getenv agree
from dotenv import load_dotenv
load_dotenv()

import sqlalchemy as sa
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from practice_booking.core.config import settings
from practice_booking.core.errors import BookingError, ErrorSeverity, log_error
from practice_booking.core.logging import LoggingMiddleware, get_logger, setup_logging
from practice_booking.db.session import get_session

# Routers
from practice_booking.api.routes.admin import router as admin_router
from practice_booking.api.routes.appointments import router as appointments_router
from practice_booking.api.routes.availability import router as availability_router
from practice_booking.api.routes.public import router as public_router
from practice_booking.api.routes.temporary_blocks import router as temporary_blocks_router

setup_logging(debug=settings.is_development, max_log_length=settings.MAX_LOG_LENGTH, level=settings.LOG_LEVEL)
logger = get_logger(__name__)

app = FastAPI(title="Practice Booking", description="Availability and booking engine for a single-practitioner practice")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)
app.middleware("http")(
    LoggingMiddleware(
        log_requests=settings.LOG_REQUESTS or settings.is_development,
        log_responses=settings.LOG_RESPONSES or settings.is_development,
    )
)


# -------- Error translation --------
@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    log_error(exc, {"endpoint": request.url.path, "method": request.method})
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    log_error(exc, {"endpoint": request.url.path, "method": request.method}, ErrorSeverity.HIGH)
    return JSONResponse(
        status_code=503,
        content={"detail": "Temporary storage problem, please try again."},
        headers={"Retry-After": "5"},
    )


# -------- Health / readiness (public) --------
@app.get("/healthz", include_in_schema=False)
async def healthz():
    return {"ok": True}


@app.get("/readyz", include_in_schema=False)
async def readyz(db: AsyncSession = Depends(get_session)):
    await db.execute(sa.text("SELECT 1"))
    return {"db": "ok"}


app.include_router(availability_router)
app.include_router(temporary_blocks_router)
app.include_router(appointments_router)
app.include_router(public_router)
app.include_router(admin_router)

logger.info("app_initialized", env=settings.APP_ENV)
