# practice_booking/api/routes/temporary_blocks.py

from __future__ import annotations
from fastapi import APIRouter, Depends, Response

from practice_booking.api.deps import get_block_manager
from practice_booking.core.logging import bind_booking_session
from practice_booking.schemas.temporary_block import TemporaryBlockCreate, TemporaryBlockOut
from practice_booking.services.temporary_blocks import TemporaryBlockManager

router = APIRouter(prefix="/temporary-blocks", tags=["temporary-blocks"])


@router.post("", response_model=TemporaryBlockOut, status_code=201)
async def hold_slot(payload: TemporaryBlockCreate, manager: TemporaryBlockManager = Depends(get_block_manager)):
    bind_booking_session(payload.session_id)
    return await manager.create_temporary_block(payload.date, payload.time, payload.session_id)


@router.post("/{session_id}/extend", response_model=TemporaryBlockOut)
async def extend_hold(session_id: str, manager: TemporaryBlockManager = Depends(get_block_manager)):
    bind_booking_session(session_id)
    return await manager.extend_temporary_block(session_id)


@router.delete("/{session_id}", status_code=204)
async def release_hold(session_id: str, manager: TemporaryBlockManager = Depends(get_block_manager)):
    bind_booking_session(session_id)
    await manager.remove_temporary_block(session_id)
    return Response(status_code=204)
