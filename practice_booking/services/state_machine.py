# practice_booking/services/state_machine.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from practice_booking.core.errors import InvalidTransitionError
from practice_booking.db.models.appointment import CANCELLED, COMPLETED, CONFIRMED, PENDING, Appointment

# Archiving is orthogonal: allowed from any status, and final
TRANSITIONS: dict[str, frozenset[str]] = {
    PENDING: frozenset({CONFIRMED, CANCELLED}),
    CONFIRMED: frozenset({PENDING, COMPLETED, CANCELLED}),
    COMPLETED: frozenset(),
    CANCELLED: frozenset(),
}


def can_transition(current: str, target: str) -> bool:
    return target in TRANSITIONS.get(current, frozenset())


def apply_transition(
    appt: Appointment,
    target: str,
    now: datetime,
    *,
    actor: str = "admin",
    reason: Optional[str] = None,
) -> None:
    if appt.is_archived:
        raise InvalidTransitionError("Archived appointments can't change status.", appointment_id=appt.id)
    if not can_transition(appt.status, target):
        raise InvalidTransitionError(
            f"Can't move an appointment from {appt.status} to {target}.",
            appointment_id=appt.id,
            current=appt.status,
            target=target,
        )

    if target == CONFIRMED:
        appt.confirmed_date = appt.confirmed_date or appt.preferred_date
        appt.confirmed_time = appt.confirmed_time or appt.preferred_time
    elif target == PENDING:
        # Keep the occupied slot where it is
        appt.preferred_date, appt.preferred_time = appt.effective_date, appt.effective_time
        appt.confirmed_date = None
        appt.confirmed_time = None
    elif target == CANCELLED:
        appt.cancelled_at = now
        appt.cancelled_by = actor
        appt.cancellation_reason = reason
    elif target == COMPLETED:
        appt.completed_at = now

    appt.status = target
    appt.updated_at = now


def archive(appt: Appointment, now: datetime) -> None:
    if appt.is_archived:
        raise InvalidTransitionError("Appointment is already archived.", appointment_id=appt.id)
    appt.is_archived = True
    appt.archived_at = now
    appt.updated_at = now
