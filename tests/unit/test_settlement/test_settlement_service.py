from decimal import Decimal
from unittest.mock import Mock, patch

import pytest
from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from barberflow.domain.settlement.service import SettlementService
from barberflow.models import COMPLETED, CONFIRMED, Appointment, Commission, CommissionRule, Sale
from tests.factories import MONDAY, at


@pytest.fixture
def settlement(db):
    return SettlementService(db)


class TestSettle:

    def test_rule_rate_applied(self, db, settlement, shop, staff, haircut, make_appointment):
        """Rule of 40% on a 100.00 appointment"""
        db.add(CommissionRule(shop_id=shop.id, staff_id=staff.id, service_id=haircut.id, rate=Decimal("40.00")))
        db.commit()
        appointment = make_appointment(at(MONDAY, 10), status=COMPLETED, price=Decimal("100.00"))

        result = settlement.settle(appointment, "card")
        db.commit()

        assert result.sale.total_amount == Decimal("100.00")
        assert result.sale.payment_method == "card"
        assert result.sale.appointment_id == appointment.id
        assert result.commission.amount == Decimal("40.00")
        assert result.commission.rate == Decimal("40.00")
        assert result.commission.staff_id == staff.id

    def test_default_payment_method(self, db, settlement, make_appointment):
        appointment = make_appointment(at(MONDAY, 10), status=COMPLETED)

        result = settlement.settle(appointment)

        assert result.sale.payment_method == "cash"

    def test_line_item_describes_the_service(self, db, settlement, haircut, make_appointment):
        appointment = make_appointment(at(MONDAY, 10), status=COMPLETED, price=Decimal("100.00"))

        result = settlement.settle(appointment)

        assert result.sale.items == [
            {
                "type": "service",
                "serviceId": haircut.id,
                "name": "Classic Cut",
                "quantity": 1,
                "unitPrice": "100.00",
                "total": "100.00",
            }
        ]

    def test_second_settlement_is_a_no_op(self, db, settlement, make_appointment):
        appointment = make_appointment(at(MONDAY, 10), status=COMPLETED)

        first = settlement.settle(appointment)
        db.commit()
        second = settlement.settle(appointment)

        assert first is not None
        assert second is None
        assert db.query(Sale).count() == 1
        assert db.query(Commission).count() == 1

    def test_missing_price_settles_at_zero(self, db, settlement, make_appointment):
        appointment = make_appointment(at(MONDAY, 10), status=COMPLETED, price=None)

        result = settlement.settle(appointment)

        assert result.sale.total_amount == Decimal("0")
        assert result.commission.amount == Decimal("0.00")

    def test_no_commission_without_service(self, db, settlement, make_appointment):
        appointment = make_appointment(at(MONDAY, 10), status=COMPLETED, service_id=None)

        result = settlement.settle(appointment)
        db.commit()

        assert result.sale is not None
        assert result.commission is None
        assert db.query(Commission).count() == 0


class TestSettleIfCompleted:

    def test_settles_completed_appointment(self, db, settlement, shop, make_appointment):
        appointment = make_appointment(at(MONDAY, 10), status=COMPLETED)

        result = settlement.settle_if_completed(appointment.id, shop_id=shop.id)

        assert result is not None
        assert db.query(Sale).filter(Sale.appointment_id == appointment.id).count() == 1

    def test_ignores_other_statuses(self, db, settlement, make_appointment):
        appointment = make_appointment(at(MONDAY, 10), status=CONFIRMED)

        assert settlement.settle_if_completed(appointment.id) is None
        assert db.query(Sale).count() == 0

    def test_unknown_appointment(self, settlement, shop):
        with pytest.raises(HTTPException) as exc_info:
            settlement.settle_if_completed(9999, shop_id=shop.id)

        assert exc_info.value.status_code == 404

    def test_other_shop_cannot_settle(self, settlement, shop, make_appointment):
        appointment = make_appointment(at(MONDAY, 10), status=COMPLETED)

        with pytest.raises(HTTPException):
            settlement.settle_if_completed(appointment.id, shop_id=shop.id + 1)

    def test_commission_failure_leaves_no_sale(self, db, settlement, make_appointment):
        appointment = make_appointment(at(MONDAY, 10), status=COMPLETED)

        with patch.object(settlement.repo, "insert_commission", side_effect=SQLAlchemyError("boom")):
            with pytest.raises(SQLAlchemyError):
                settlement.settle_if_completed(appointment.id)

        assert db.query(Sale).count() == 0
        assert db.query(Commission).count() == 0

    def test_concurrent_duplicate_is_a_no_op(self, db, settlement, make_appointment):
        """Another settlement committed the sale between the lookup and the insert"""
        appointment = make_appointment(at(MONDAY, 10), status=COMPLETED)
        duplicate = IntegrityError("INSERT INTO sales", {}, Exception("sales_appointment_id_key"))

        with patch.object(settlement.repo, "insert_sale", side_effect=duplicate), patch.object(
            settlement.repo, "find_sale_by_appointment", side_effect=[None, Mock(id=77)]
        ):
            result = settlement.settle_if_completed(appointment.id)

        assert result is None
        assert db.query(Sale).count() == 0
        assert db.get(Appointment, appointment.id).status == COMPLETED

    def test_other_integrity_errors_propagate(self, db, settlement, make_appointment):
        appointment = make_appointment(at(MONDAY, 10), status=COMPLETED)
        broken = IntegrityError("INSERT INTO sales", {}, Exception("not null violation"))

        with patch.object(settlement.repo, "insert_sale", side_effect=broken), patch.object(
            settlement.repo, "find_sale_by_appointment", return_value=None
        ):
            with pytest.raises(IntegrityError):
                settlement.settle_if_completed(appointment.id)

        assert db.query(Sale).count() == 0
