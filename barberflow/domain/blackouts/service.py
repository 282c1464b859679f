"""Blackout service - Business logic for the blackout registry"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Shop, Staff, TimeBlock
from ...shared.errors import BookingRejected, RejectReason
from .repository import BlackoutRepository
from .schemas import BlackoutCreate, BlackoutResponse, BlackoutUpdate

logger = logging.getLogger(__name__)

# Request field -> column
_FIELD_MAP = {
    "staffId": "staff_id",
    "title": "title",
    "description": "description",
    "startDate": "start_at",
    "endDate": "end_at",
    "allDay": "all_day",
    "blockType": "block_type",
}


def to_response(block: TimeBlock) -> BlackoutResponse:
    return BlackoutResponse(
        id=block.id,
        shopId=block.shop_id,
        staffId=block.staff_id,
        title=block.title,
        description=block.description,
        startDate=block.start_at,
        endDate=block.end_at,
        allDay=block.all_day,
        blockType=block.block_type,
        isActive=block.is_active,
    )


class BlackoutService:
    """Service layer for blackout intervals"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BlackoutRepository()

    def _check_scope(self, shop_id: int, staff_id: Optional[int]) -> None:
        if not self.db.query(Shop.id).filter(Shop.id == shop_id).first():
            raise HTTPException(status_code=404, detail="Shop not found")
        if staff_id is not None:
            staff = (
                self.db.query(Staff.id)
                .filter(Staff.id == staff_id, Staff.shop_id == shop_id)
                .first()
            )
            if not staff:
                raise HTTPException(status_code=404, detail="Staff member not found")

    def list_blackouts(self, shop_id: int, staff_id: Optional[int] = None) -> list[TimeBlock]:
        return self.repo.list_blackouts(self.db, shop_id, staff_id)

    def get_blackout(self, shop_id: int, blackout_id: int) -> TimeBlock:
        block = self.repo.get_blackout(self.db, blackout_id, shop_id)
        if not block:
            raise HTTPException(status_code=404, detail="Blackout not found")
        return block

    def create_blackout(self, shop_id: int, data: BlackoutCreate) -> TimeBlock:
        if data.startDate >= data.endDate:
            raise BookingRejected(RejectReason.INVALID_RANGE)
        self._check_scope(shop_id, data.staffId)

        block = self.repo.create_blackout(
            self.db,
            shop_id,
            staff_id=data.staffId,
            title=data.title,
            description=data.description,
            start_at=data.startDate,
            end_at=data.endDate,
            all_day=data.allDay,
            block_type=data.blockType,
        )
        scope = f"staff {block.staff_id}" if block.staff_id else "whole shop"
        logger.info(
            f"⛔ Blackout {block.id} created for shop {shop_id} ({scope}): "
            f"{block.start_at} → {block.end_at} [{block.block_type}]"
        )
        return block

    def update_blackout(self, shop_id: int, blackout_id: int, data: BlackoutUpdate) -> TimeBlock:
        block = self.get_blackout(shop_id, blackout_id)

        updates = {}
        for field in data.model_fields_set:
            value = getattr(data, field)
            # Only staffId may be cleared explicitly (widens the block to the whole shop)
            if value is None and field != "staffId":
                continue
            updates[_FIELD_MAP[field]] = value

        start = updates.get("start_at", block.start_at)
        end = updates.get("end_at", block.end_at)
        if start >= end:
            raise BookingRejected(RejectReason.INVALID_RANGE)
        if "staff_id" in updates:
            self._check_scope(shop_id, updates["staff_id"])

        return self.repo.update_blackout(self.db, block, **updates)

    def delete_blackout(self, shop_id: int, blackout_id: int) -> TimeBlock:
        block = self.get_blackout(shop_id, blackout_id)
        block = self.repo.deactivate_blackout(self.db, block)
        logger.info(f"Blackout {blackout_id} deactivated for shop {shop_id}")
        return block
