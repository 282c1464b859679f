"""
Calendar Domain

Weekly business hours per shop (the calendar policy read by slot validation)
and per-staff working hours used by the availability grid.
"""

from .router import router, schedule_router

__all__ = ["router", "schedule_router"]
