"""
Booking error taxonomy and severity-aware error logging.
"""
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import HTTPException

from practice_booking.core.logging import get_logger

logger = get_logger(__name__)


class ErrorSeverity(Enum):
    """Error severity levels."""
    LOW = "low"           # expected failures: taken slots, missing holds
    MEDIUM = "medium"     # transient store problems, timeouts
    HIGH = "high"         # auth failures, data inconsistencies
    CRITICAL = "critical" # service down


class BookingError(Exception):
    """Base class for all booking domain errors."""

    status_code = 400
    severity = ErrorSeverity.LOW
    public_message = "The request could not be completed."

    def __init__(self, message: Optional[str] = None, **context: Any):
        super().__init__(message or self.public_message)
        self.message = message or self.public_message
        self.context = context


class SlotUnavailableError(BookingError):
    status_code = 409
    public_message = "This time slot is no longer available. Please choose another one."


class TemporaryBlockNotFoundError(BookingError):
    status_code = 404
    public_message = "No active hold exists for this session."


class AppointmentNotFoundError(BookingError):
    status_code = 404
    public_message = "Appointment not found."


class ServiceNotFoundError(BookingError):
    status_code = 404
    public_message = "Service not found."


class TemplateNotFoundError(BookingError):
    status_code = 404
    public_message = "Schedule template not found."


class InvalidTransitionError(BookingError):
    status_code = 409
    public_message = "This status change is not allowed."


class RescheduleLimitError(BookingError):
    status_code = 403
    public_message = "The reschedule limit for this appointment has been reached."


class BookingValidationError(BookingError):
    status_code = 422


def determine_severity(error: Exception) -> ErrorSeverity:
    if isinstance(error, BookingError):
        return error.severity
    if isinstance(error, HTTPException):
        if error.status_code < 500:
            return ErrorSeverity.LOW
        return ErrorSeverity.MEDIUM if error.status_code < 503 else ErrorSeverity.HIGH
    if "timeout" in str(error).lower():
        return ErrorSeverity.MEDIUM
    return ErrorSeverity.MEDIUM


def log_error(
    error: Exception,
    context: Optional[Dict[str, Any]] = None,
    severity: Optional[ErrorSeverity] = None,
) -> ErrorSeverity:
    """Log an error with its severity; high and critical errors keep the traceback."""
    context = dict(context or {})
    if isinstance(error, BookingError):
        context = {**error.context, **context}
    severity = severity or determine_severity(error)

    log_data = {
        "error_type": type(error).__name__,
        "error": str(error),
        "severity": severity.value,
        **context,
    }

    if severity in (ErrorSeverity.HIGH, ErrorSeverity.CRITICAL):
        logger.error("error_occurred", exc_info=error, **log_data)
    elif severity == ErrorSeverity.MEDIUM:
        logger.warning("error_occurred", **log_data)
    else:
        logger.info("error_occurred", **log_data)
    return severity
