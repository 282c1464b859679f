"""
Commission rate resolution.

Rates are resolved through an ordered chain of sources; the first source that
returns a rate wins and the chain's fallback applies when none do:

    rule for (staff, service) → shop default → DEFAULT_COMMISSION_RATE
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Optional, Sequence

from sqlalchemy.orm import Session

from ...config import DEFAULT_COMMISSION_RATE
from ...models import Shop
from .repository import CommissionRuleRepository

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

# (db, shop_id, staff_id, service_id) -> rate or None
RateSource = Callable[[Session, int, int, int], Optional[Decimal]]


@dataclass(frozen=True)
class ResolvedRate:
    rate: Decimal
    source: str


def rule_rate(db: Session, shop_id: int, staff_id: int, service_id: int) -> Optional[Decimal]:
    return CommissionRuleRepository.get_rate(db, staff_id, service_id)


def shop_default_rate(db: Session, shop_id: int, staff_id: int, service_id: int) -> Optional[Decimal]:
    return db.query(Shop.default_commission_rate).filter(Shop.id == shop_id).scalar()


class RateChain:
    """Ordered list of named rate sources with a constant fallback"""

    def __init__(self, sources: Sequence[tuple[str, RateSource]], fallback: Decimal):
        self.sources = list(sources)
        self.fallback = Decimal(fallback)

    def resolve(self, db: Session, shop_id: int, staff_id: int, service_id: int) -> ResolvedRate:
        for name, source in self.sources:
            rate = source(db, shop_id, staff_id, service_id)
            if rate is not None:
                return ResolvedRate(rate=Decimal(rate), source=name)
        return ResolvedRate(rate=self.fallback, source="default")


def default_rate_chain() -> RateChain:
    return RateChain(
        [("rule", rule_rate), ("shop", shop_default_rate)],
        fallback=Decimal(DEFAULT_COMMISSION_RATE),
    )


def commission_amount(total: Decimal, rate: Decimal) -> Decimal:
    """total × rate / 100, rounded half-up to cents"""
    return (Decimal(total) * Decimal(rate) / Decimal(100)).quantize(CENT, rounding=ROUND_HALF_UP)
