from ridepay.models import BudgetLimit, PayoutBatch
from ridepay.models.driver_wallet import ENTRY_UPFRONT_EARNING
from ridepay.service import driver_wallet
from ridepay.service.budget_tracking import create_budget_limit, record_expense
from ridepay.tasks import payment_jobs


def test_weekly_payout_job_uses_the_configured_rail(app, db, users):
    driver_wallet.credit(users["driver"].id, 2500, ENTRY_UPFRONT_EARNING)
    db.session.commit()

    result = payment_jobs.process_weekly_payouts(app)

    assert result["status"] == "completed"
    assert result["total_amount"] == 2500
    assert app.extensions["ridepay.payout_rail"].transfers == [(users["driver"].id, 2500)]
    db.session.expire_all()
    assert PayoutBatch.query.count() == 1


def test_weekly_payout_job_with_nothing_to_pay(app, users):
    assert payment_jobs.process_weekly_payouts(app) is None


def test_reminder_job_reports_counts(app, users):
    result = payment_jobs.process_payment_reminders(app)

    assert result == {"examined": 0, "three_day_sent": 0, "one_day_sent": 0, "suspended": 0, "failed": 0}


def test_budget_reset_job(app, db, users):
    budget = create_budget_limit(3, users["parent"].id, monthly_limit=1000)
    record_expense(3, 900, "ride-1")

    assert payment_jobs.reset_monthly_budgets(app) == 1

    db.session.expire_all()
    assert db.session.get(BudgetLimit, budget.id).current_spent == 0
