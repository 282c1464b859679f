"""Rejection reasons surfaced to callers of the booking core"""

from enum import Enum
from typing import Optional


class RejectReason(str, Enum):
    SHOP_CLOSED = "shop-closed"
    OUTSIDE_HOURS = "outside-hours"
    STAFF_BLOCKED = "staff-blocked"
    DOUBLE_BOOKED = "double-booked"
    INVALID_RANGE = "invalid-range"
    INVALID_DURATION = "invalid-duration"
    INVALID_TRANSITION = "invalid-transition"


# Conflicts are expected under concurrency; everything else is a validation error
CONFLICT_REASONS = frozenset({RejectReason.DOUBLE_BOOKED})

REASON_MESSAGES = {
    RejectReason.SHOP_CLOSED: "The shop is closed on that day",
    RejectReason.OUTSIDE_HOURS: "Requested time is outside business hours",
    RejectReason.STAFF_BLOCKED: "Staff member is unavailable at that time",
    RejectReason.DOUBLE_BOOKED: "Time slot is already booked",
    RejectReason.INVALID_RANGE: "Start must be before end",
    RejectReason.INVALID_DURATION: "Duration must be a positive number of minutes",
    RejectReason.INVALID_TRANSITION: "Status change is not allowed",
}


class BookingRejected(Exception):
    """Raised when a booking or state change is refused for a known reason"""

    def __init__(self, reason: RejectReason, message: Optional[str] = None):
        self.reason = reason
        self.message = message or REASON_MESSAGES.get(reason, reason.value)
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return 409 if self.reason in CONFLICT_REASONS else 422
