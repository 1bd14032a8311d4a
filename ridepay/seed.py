# seed.py
import logging
from datetime import datetime, timedelta
from ridepay.models import db, User, Booking, BudgetLimit
from ridepay.service.payment_ledger import create_transaction, apply_upfront_payment
from ridepay.service.budget_tracking import create_budget_limit
from ridepay.utils.roles import ROLE_PARENT, ROLE_DRIVER, ROLE_ADMIN

logger = logging.getLogger(__name__)


def _get_or_create_user(name, email, phone, role):
    user = User.query.filter_by(email=email).first()
    if not user:
        user = User(name=name, email=email, phone=phone, role=role, created_at=datetime.utcnow())
        db.session.add(user)
    return user


def seed():
    logger.info("Seeding RidePay database...")

    # ========== USERS ==========
    admin = _get_or_create_user("Admin User", "admin@example.com", "+94770000001", ROLE_ADMIN)
    parent = _get_or_create_user("Parent User", "parent@example.com", "+94770000002", ROLE_PARENT)
    driver = _get_or_create_user("Driver User", "driver@example.com", "+94770000003", ROLE_DRIVER)
    db.session.commit()
    logger.info("Users seeded")

    # ========== BOOKINGS ==========
    if Booking.query.count() == 0:
        now = datetime.utcnow()
        for days_until_end in (5, 12, 30):
            db.session.add(Booking(
                parent_id=parent.id,
                driver_id=driver.id,
                end_date=now + timedelta(days=days_until_end),
            ))
        db.session.commit()
    logger.info("Bookings seeded")

    # ========== PAYMENT TRANSACTIONS ==========
    for index, booking in enumerate(Booking.query.order_by(Booking.id).all()):
        transaction = create_transaction(booking.id, booking.parent_id, booking.driver_id, 12000 + index * 4000)
        if transaction.upfront_paid == 0 and index < 2:
            apply_upfront_payment(transaction.id, transaction.required_upfront, gateway_ref=f"SEED_{booking.id}")
    logger.info("Payment transactions seeded")

    # ========== BUDGETS ==========
    if not BudgetLimit.query.filter_by(parent_id=parent.id).first():
        create_budget_limit(child_id=1, parent_id=parent.id, monthly_limit=50000)
    logger.info("Budgets seeded")

    logger.info(f"Seeding complete (admin={admin.id}, parent={parent.id}, driver={driver.id})")
