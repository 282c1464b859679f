"""
Blackouts Domain

Shop-wide or staff-specific unavailability windows. Removal is a soft delete.
"""

from .router import router

__all__ = ["router"]
