"""
Settlement Domain

Sales and commission records produced from completed appointments, commission
rules and payout tracking.
"""

from .router import router

__all__ = ["router"]
