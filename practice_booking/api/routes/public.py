# practice_booking/api/routes/public.py

from __future__ import annotations
from datetime import date
from typing import Literal
from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from practice_booking.api.deps import get_clock
from practice_booking.core.clock import Clock
from practice_booking.core.config import settings
from practice_booking.db.session import get_session
from practice_booking.schemas.availability import PublicAvailabilityOut
from practice_booking.services.public_availability import build_public_availability

router = APIRouter(prefix="/public", tags=["public"])

CACHE_CONTROL = {
    "short": "public, max-age=60, s-maxage=300",
    "long": "public, s-maxage=86400",
}


@router.get("/availability", response_model=PublicAvailabilityOut)
async def public_availability(
    response: Response,
    day: date = Query(..., alias="date"),
    range_: Literal["day", "long"] = Query("day", alias="range"),
    cache: Literal["short", "long"] = Query("short"),
    db: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
):
    days = settings.PUBLIC_AVAILABILITY_WINDOW_DAYS if range_ == "long" else 1
    snapshot = await build_public_availability(db, day, days, clock=clock)
    response.headers["Cache-Control"] = CACHE_CONTROL[cache]
    return snapshot
