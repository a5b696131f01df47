"""
Booking error taxonomy.

Raised by the services in app/services and rendered by the handler
registered in app/main.py as {"detail": ...} with the mapped status code.
"""

from fastapi import status


class BookingError(Exception):
    """Base exception for all booking errors."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Booking error"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(BookingError):
    """Malformed input, caught before business logic."""
    default_detail = "Invalid request"


class InvalidDateOrTime(ValidationError):
    default_detail = "Invalid date or time"


class ServiceOwnershipMismatch(ValidationError):
    default_detail = "Service does not belong to this master"


class NotFound(BookingError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class AppointmentNotFound(NotFound):
    default_detail = "Appointment not found"


class ServiceNotFound(NotFound):
    default_detail = "Service not found"


class MasterNotFound(NotFound):
    default_detail = "Master not found"


class MasterNotConfigured(NotFound):
    """Master is missing, is not a master, or has no profile."""
    default_detail = "Master not found or profile not configured"


class AccessDenied(BookingError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Access denied"


class InvalidStateTransition(BookingError):
    default_detail = "Action is not allowed in the current status"


class SlotTaken(BookingError):
    """Another pending/confirmed appointment already overlaps the requested interval."""
    default_detail = "Slot already taken"


class ReviewNotAllowed(BookingError):
    default_detail = "Review cannot be left for this appointment"
