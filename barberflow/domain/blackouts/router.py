"""Blackout router - FastAPI endpoints for time blocks"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from .schemas import BlackoutCreate, BlackoutResponse, BlackoutUpdate
from .service import BlackoutService, to_response

router = APIRouter(prefix="/shops/{shop_id}/blackouts", tags=["Blackouts"])


def get_blackout_service(db: Session = Depends(get_db)) -> BlackoutService:
    """Dependency injection for BlackoutService"""
    return BlackoutService(db)


@router.get("", response_model=list[BlackoutResponse])
async def list_blackouts(
    shop_id: int,
    staff_id: Optional[int] = Query(None),
    service: BlackoutService = Depends(get_blackout_service),
):
    """List active blackouts of a shop"""
    return [to_response(b) for b in service.list_blackouts(shop_id, staff_id)]


@router.post("", response_model=BlackoutResponse, status_code=201)
async def create_blackout(
    shop_id: int,
    data: BlackoutCreate,
    service: BlackoutService = Depends(get_blackout_service),
):
    """Block a time range for the whole shop or one staff member"""
    return to_response(service.create_blackout(shop_id, data))


@router.put("/{blackout_id}", response_model=BlackoutResponse)
async def update_blackout(
    shop_id: int,
    blackout_id: int,
    data: BlackoutUpdate,
    service: BlackoutService = Depends(get_blackout_service),
):
    return to_response(service.update_blackout(shop_id, blackout_id, data))


@router.delete("/{blackout_id}")
async def delete_blackout(
    shop_id: int,
    blackout_id: int,
    service: BlackoutService = Depends(get_blackout_service),
):
    """Deactivate a blackout (kept for history)"""
    service.delete_blackout(shop_id, blackout_id)
    return {"success": True}
