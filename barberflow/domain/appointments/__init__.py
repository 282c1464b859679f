"""
Appointments Domain

Booking ledger, slot validation against hours, blackouts and existing
bookings, and the status clock.
"""

from .router import router, status_router

__all__ = ["router", "status_router"]
