"""Blackout repository - Database operations for time blocks"""

from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...models import TimeBlock


class BlackoutRepository:
    """Repository for blackout interval database operations"""

    @staticmethod
    def list_active_blackouts(
        db: Session,
        shop_id: int,
        staff_id: Optional[int] = None,
    ) -> list[TimeBlock]:
        """Active blocks for the whole shop plus, when given, the staff member's own"""
        query = db.query(TimeBlock).filter(
            TimeBlock.shop_id == shop_id,
            TimeBlock.is_active.is_(True),
        )

        if staff_id is not None:
            query = query.filter(or_(TimeBlock.staff_id.is_(None), TimeBlock.staff_id == staff_id))
        else:
            query = query.filter(TimeBlock.staff_id.is_(None))

        return query.order_by(TimeBlock.start_at.asc()).all()

    @staticmethod
    def list_blackouts(db: Session, shop_id: int, staff_id: Optional[int] = None) -> list[TimeBlock]:
        """All active blocks of a shop, optionally narrowed to one staff member"""
        query = db.query(TimeBlock).filter(
            TimeBlock.shop_id == shop_id,
            TimeBlock.is_active.is_(True),
        )
        if staff_id is not None:
            query = query.filter(TimeBlock.staff_id == staff_id)
        return query.order_by(TimeBlock.start_at.asc()).all()

    @staticmethod
    def get_blackout(db: Session, blackout_id: int, shop_id: int) -> Optional[TimeBlock]:
        return (
            db.query(TimeBlock)
            .filter(TimeBlock.id == blackout_id, TimeBlock.shop_id == shop_id)
            .first()
        )

    @staticmethod
    def create_blackout(db: Session, shop_id: int, **block_data) -> TimeBlock:
        block = TimeBlock(shop_id=shop_id, **block_data)
        db.add(block)
        db.commit()
        db.refresh(block)
        return block

    @staticmethod
    def update_blackout(db: Session, block: TimeBlock, **updates) -> TimeBlock:
        for key, value in updates.items():
            setattr(block, key, value)
        db.commit()
        db.refresh(block)
        return block

    @staticmethod
    def deactivate_blackout(db: Session, block: TimeBlock) -> TimeBlock:
        """Soft delete; rows are kept for audit history"""
        block.is_active = False
        db.commit()
        db.refresh(block)
        return block
