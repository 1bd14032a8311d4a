from datetime import datetime

import pytest
from flask_jwt_extended import create_access_token

from ridepay import create_app
from ridepay.config import TestingConfig
from ridepay.extension import db as _db
from ridepay.models import User, Booking
from ridepay.service.gateways import ChargeResult, TransferResult
from ridepay.utils.roles import ROLE_PARENT, ROLE_DRIVER, ROLE_ADMIN

# booking ends on the 20th, so the balance is due on the 18th at noon
BOOKING_END = datetime(2026, 3, 20, 12, 0)


class FakeGateway:
    def __init__(self, success=True):
        self.success = success
        self.charges = []

    def charge(self, amount, customer_info):
        self.charges.append((amount, customer_info))
        if not self.success:
            return ChargeResult(False, None, "Card declined")
        return ChargeResult(True, f"TXN_TEST_{len(self.charges)}", "Payment processed successfully")


class FakeRail:
    """Payout rail double. ``failing`` drivers are rejected, ``on_transfer`` runs mid-transfer."""

    def __init__(self, failing=(), on_transfer=None):
        self.failing = set(failing)
        self.on_transfer = on_transfer
        self.transfers = []

    def transfer(self, driver_id, amount):
        self.transfers.append((driver_id, amount))
        if self.on_transfer:
            self.on_transfer(driver_id, amount)
        if driver_id in self.failing:
            return TransferResult(False, error_message="Account closed")
        return TransferResult(True, reference=f"PO_TEST_{driver_id}_{len(self.transfers)}")


class FailingNotifier:
    def notify(self, recipient_id, kind, payload):
        raise RuntimeError("notification service unavailable")


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    app.extensions["ridepay.payment_gateway"] = FakeGateway()
    app.extensions["ridepay.payout_rail"] = FakeRail()
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def users(db):
    parent = User(name="Nimal Perera", email="parent@example.com", phone="+94770000002", role=ROLE_PARENT)
    other_parent = User(name="Other Parent", email="other@example.com", role=ROLE_PARENT)
    driver = User(name="Kamal Silva", email="driver@example.com", phone="+94770000003", role=ROLE_DRIVER)
    second_driver = User(name="Sunil Fernando", email="driver2@example.com", role=ROLE_DRIVER)
    admin = User(name="Admin User", email="admin@example.com", role=ROLE_ADMIN)
    db.session.add_all([parent, other_parent, driver, second_driver, admin])
    db.session.commit()
    return {
        "parent": parent,
        "other_parent": other_parent,
        "driver": driver,
        "second_driver": second_driver,
        "admin": admin,
    }


@pytest.fixture
def make_booking(db, users):
    def _make(end_date=BOOKING_END, parent=None, driver=None):
        booking = Booking(
            parent_id=(parent or users["parent"]).id,
            driver_id=(driver or users["driver"]).id,
            end_date=end_date,
        )
        db.session.add(booking)
        db.session.commit()
        return booking
    return _make


@pytest.fixture
def booking(make_booking):
    return make_booking()


@pytest.fixture
def auth_headers(app, users):
    def _headers(name):
        user = users[name]
        token = create_access_token(identity=str(user.id), additional_claims={"role": user.role})
        return {"Authorization": f"Bearer {token}"}
    return _headers
