from decimal import Decimal

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from barberflow.domain.settlement.commission_service import CommissionService
from barberflow.domain.settlement.schemas import CommissionRuleUpsert, ShopDefaultRateUpdate
from barberflow.domain.settlement.service import SettlementService
from barberflow.models import COMPLETED, CommissionRule
from tests.factories import MONDAY, at


@pytest.fixture
def commission_service(db, clock):
    return CommissionService(db, clock=clock)


@pytest.fixture
def settled_commission(db, make_appointment):
    appointment = make_appointment(at(MONDAY, 10), status=COMPLETED)
    settlement = SettlementService(db).settle(appointment)
    db.commit()
    return settlement.commission


class TestCommissionRules:

    def test_matrix_reports_rate_source(self, db, commission_service, shop, staff, other_staff, haircut):
        commission_service.upsert_rule(
            shop.id, CommissionRuleUpsert(staffId=staff.id, serviceId=haircut.id, commissionRate="40")
        )

        matrix = commission_service.get_commission_matrix(shop.id)

        rates = {row.staffId: row.services[0] for row in matrix.commissions}
        assert rates[staff.id].commissionRate == Decimal("40")
        assert rates[staff.id].source == "rule"
        assert rates[other_staff.id].commissionRate == Decimal("50")
        assert rates[other_staff.id].source == "default"

    def test_upsert_updates_existing_rule(self, db, commission_service, shop, staff, haircut):
        commission_service.upsert_rule(
            shop.id, CommissionRuleUpsert(staffId=staff.id, serviceId=haircut.id, commissionRate="40")
        )
        commission_service.upsert_rule(
            shop.id, CommissionRuleUpsert(staffId=staff.id, serviceId=haircut.id, commissionRate="45.5")
        )

        rules = db.query(CommissionRule).all()
        assert len(rules) == 1
        assert rules[0].rate == Decimal("45.50")

    def test_upsert_unknown_service(self, commission_service, shop, staff):
        with pytest.raises(HTTPException) as exc_info:
            commission_service.upsert_rule(
                shop.id, CommissionRuleUpsert(staffId=staff.id, serviceId=999, commissionRate="40")
            )

        assert exc_info.value.status_code == 404

    @pytest.mark.parametrize("rate", ["-1", "100.01", "12.345", "abc"])
    def test_rate_validation(self, rate):
        with pytest.raises(ValidationError):
            CommissionRuleUpsert(staffId=1, serviceId=1, commissionRate=rate)

    def test_shop_default_rate(self, commission_service, shop, staff, haircut):
        commission_service.set_shop_default_rate(shop.id, ShopDefaultRateUpdate(commissionRate="30"))

        matrix = commission_service.get_commission_matrix(shop.id)

        assert matrix.shopDefaultRate == Decimal("30")
        assert matrix.commissions[0].services[0].source == "shop"

    def test_clearing_shop_default(self, commission_service, shop, staff, haircut):
        commission_service.set_shop_default_rate(shop.id, ShopDefaultRateUpdate(commissionRate="30"))
        commission_service.set_shop_default_rate(shop.id, ShopDefaultRateUpdate(commissionRate=None))

        matrix = commission_service.get_commission_matrix(shop.id)

        assert matrix.shopDefaultRate is None
        assert matrix.commissions[0].services[0].source == "default"


class TestPayCommission:

    def test_marks_paid_with_clock_time(self, commission_service, shop, clock, settled_commission):
        paid = commission_service.pay_commission(shop.id, settled_commission.id)

        assert paid.is_paid is True
        assert paid.paid_at == clock.now

    def test_paying_twice_keeps_first_timestamp(self, commission_service, shop, clock, settled_commission):
        first_time = clock.now
        commission_service.pay_commission(shop.id, settled_commission.id)
        clock.now = at(MONDAY, 17)

        paid = commission_service.pay_commission(shop.id, settled_commission.id)

        assert paid.paid_at == first_time

    def test_unknown_commission(self, commission_service, shop):
        with pytest.raises(HTTPException) as exc_info:
            commission_service.pay_commission(shop.id, 4242)

        assert exc_info.value.status_code == 404

    def test_list_filters_by_paid_flag(self, commission_service, shop, settled_commission):
        assert len(commission_service.list_commissions(shop.id, is_paid=False)) == 1
        assert commission_service.list_commissions(shop.id, is_paid=True) == []
