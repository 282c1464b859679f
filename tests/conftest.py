import os
from datetime import timedelta
from decimal import Decimal

import pytest

# Keep the module-level engine off the local database file
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("STATUS_SWEEP_ENABLED", "true")

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from barberflow.database import Base, get_db
from barberflow.main import app
from barberflow.models import CONFIRMED, Appointment, Client, Service, Shop, Staff
from barberflow.shared.clock import get_clock
from tests.factories import MONDAY, WEEKLY_HOURS, FakeClock, at


@pytest.fixture
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def clock():
    return FakeClock(at(MONDAY, 8))


@pytest.fixture
def shop(db):
    shop = Shop(name="Fade Factory", business_hours=WEEKLY_HOURS)
    db.add(shop)
    db.commit()
    db.refresh(shop)
    return shop


@pytest.fixture
def staff(db, shop):
    member = Staff(shop_id=shop.id, display_name="Marco")
    db.add(member)
    db.commit()
    db.refresh(member)
    return member


@pytest.fixture
def other_staff(db, shop):
    member = Staff(shop_id=shop.id, display_name="Lena")
    db.add(member)
    db.commit()
    db.refresh(member)
    return member


@pytest.fixture
def haircut(db, shop):
    service = Service(shop_id=shop.id, name="Classic Cut", price=Decimal("100.00"), duration_minutes=30)
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


@pytest.fixture
def customer(db, shop):
    client = Client(shop_id=shop.id, name="Jamie Doe", phone="555-0100")
    db.add(client)
    db.commit()
    db.refresh(client)
    return client


@pytest.fixture
def make_appointment(db, shop, staff, haircut, customer):
    """Insert an appointment directly, bypassing slot validation"""

    def _make(start, duration=30, status=CONFIRMED, price=Decimal("100.00"), staff_id=None, service_id=-1):
        appointment = Appointment(
            shop_id=shop.id,
            staff_id=staff_id or staff.id,
            service_id=haircut.id if service_id == -1 else service_id,
            client_id=customer.id,
            scheduled_at=start,
            duration_minutes=duration,
            ends_at=start + timedelta(minutes=duration),
            status=status,
            price=price,
        )
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    return _make


@pytest.fixture
def api(session_factory, clock):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
