from datetime import datetime

import pytest

from ridepay.errors import InvalidBudget, BudgetNotFound, BudgetAccessDenied
from ridepay.models import BudgetLimit, MonthlyExpense, Notification
from ridepay.service import budget_tracking
from ridepay.service.budget_tracking import create_budget_limit, record_expense, reset_monthly_budgets

CHILD_ID = 7


@pytest.fixture
def budget(users):
    return create_budget_limit(CHILD_ID, users["parent"].id, monthly_limit=5000, warning_threshold=80)


def _count(kind):
    return Notification.query.filter_by(kind=kind).count()


def test_warning_fires_once_per_month(db, budget, users):
    record_expense(CHILD_ID, 4200, "ride-1", driver_name="Kamal", route="Home -> School")
    assert _count("budget_warning") == 1

    record_expense(CHILD_ID, 300, "ride-2")
    assert _count("budget_warning") == 1

    db.session.expire_all()
    refreshed = db.session.get(BudgetLimit, budget.id)
    assert refreshed.current_spent == 4500
    warning = Notification.query.filter_by(kind="budget_warning").one()
    assert warning.recipient_id == users["parent"].id
    assert warning.data["percentage_used"] == 84


def test_limit_reached_fires_once(db, budget):
    record_expense(CHILD_ID, 5000, "ride-1")
    record_expense(CHILD_ID, 100, "ride-2")

    assert _count("budget_warning") == 1
    assert _count("budget_limit_reached") == 1


def test_below_threshold_is_quiet(budget):
    record_expense(CHILD_ID, 3999, "ride-1")

    assert Notification.query.count() == 0


def test_disabled_warnings_are_not_sent(budget):
    budget_tracking.update_budget_limit(budget.id, warning_enabled=False)

    record_expense(CHILD_ID, 4200, "ride-1")

    assert _count("budget_warning") == 0


def test_expense_history_accumulates(budget):
    record_expense(CHILD_ID, 1000, "ride-1")
    expense = record_expense(CHILD_ID, 2000, "ride-2", driver_name="Kamal")

    assert expense.total_amount == 3000
    assert expense.ride_count == 2
    assert expense.average_cost_per_ride == 1500
    assert [e.ride_id for e in expense.expenses] == ["ride-1", "ride-2"]
    assert expense.expenses[0].driver_name == "Unknown"


def test_expense_without_budget_is_still_recorded(users):
    expense = record_expense(99, 1500, "ride-1", parent_id=users["parent"].id)

    assert expense.total_amount == 1500
    assert Notification.query.count() == 0


def test_monthly_reset_rearms_notifications(db, budget):
    record_expense(CHILD_ID, 4200, "ride-1")

    assert reset_monthly_budgets() == 1

    db.session.expire_all()
    refreshed = db.session.get(BudgetLimit, budget.id)
    assert refreshed.current_spent == 0
    assert refreshed.warning_notified_month is None
    assert refreshed.limit_notified_month is None


def test_new_limit_replaces_the_active_one(budget, users):
    replacement = create_budget_limit(CHILD_ID, users["parent"].id, monthly_limit=8000)

    assert budget_tracking.get_budget_limit_for_child(CHILD_ID).id == replacement.id
    assert [b.id for b in budget_tracking.get_budget_limits(users["parent"].id)] == [replacement.id]


@pytest.mark.parametrize("limit, threshold", [(0, 80), (-10, 80), (5000, 0), (5000, 101)])
def test_invalid_limits_are_rejected(users, limit, threshold):
    with pytest.raises(InvalidBudget):
        create_budget_limit(CHILD_ID, users["parent"].id, monthly_limit=limit, warning_threshold=threshold)


def test_non_positive_expense_is_rejected(budget):
    with pytest.raises(InvalidBudget):
        record_expense(CHILD_ID, 0, "ride-1")


def test_summary_reports_status_per_child(budget, users):
    record_expense(CHILD_ID, 4200, "ride-1")

    summary = budget_tracking.get_budget_summary(users["parent"].id)

    assert summary["total_monthly_limit"] == 5000
    assert summary["total_current_spent"] == 4200
    assert summary["children_budgets"] == [{
        "child_id": CHILD_ID,
        "monthly_limit": 5000,
        "current_spent": 4200,
        "percentage_used": 84,
        "status": "warning",
    }]


def test_delete_budget(budget):
    budget_tracking.delete_budget_limit(budget.id)

    with pytest.raises(BudgetNotFound):
        budget_tracking.get_budget_limit(budget.id)


def test_another_parent_cannot_touch_a_tracked_child(db, budget, users):
    other = users["other_parent"]

    with pytest.raises(BudgetAccessDenied):
        record_expense(CHILD_ID, 4200, "ride-1", parent_id=other.id)
    with pytest.raises(BudgetAccessDenied):
        create_budget_limit(CHILD_ID, other.id, monthly_limit=100)

    db.session.expire_all()
    owned = db.session.get(BudgetLimit, budget.id)
    assert owned.is_active
    assert owned.current_spent == 0
    assert MonthlyExpense.query.count() == 0
    assert Notification.query.count() == 0


def test_expense_history_claims_the_child_for_its_parent(users):
    record_expense(99, 1500, "ride-1", parent_id=users["parent"].id)

    with pytest.raises(BudgetAccessDenied):
        create_budget_limit(99, users["other_parent"].id, monthly_limit=5000)


def test_first_ride_of_the_month_recorded_concurrently(budget, monkeypatch):
    march = datetime(2026, 3, 5, 8, 0)
    record_expense(CHILD_ID, 1000, "ride-1", now=march)

    real_lock = budget_tracking._lock_monthly_expense
    lookups = []

    def missed_first_lookup(child_id, month):
        lookups.append(month)
        if len(lookups) == 1:
            return None
        return real_lock(child_id, month)

    monkeypatch.setattr(budget_tracking, "_lock_monthly_expense", missed_first_lookup)

    expense = record_expense(CHILD_ID, 500, "ride-2", now=march)

    assert lookups == ["2026-03", "2026-03"]
    assert MonthlyExpense.query.count() == 1
    assert expense.total_amount == 1500
    assert expense.ride_count == 2


def test_all_monthly_expenses_for_a_parent(users):
    parent = users["parent"]
    record_expense(CHILD_ID, 1000, "ride-1", parent_id=parent.id, now=datetime(2026, 2, 10))
    record_expense(CHILD_ID, 2000, "ride-2", parent_id=parent.id, now=datetime(2026, 3, 10))
    record_expense(8, 700, "ride-3", parent_id=parent.id, now=datetime(2026, 3, 11))
    record_expense(9, 300, "ride-4", parent_id=users["other_parent"].id, now=datetime(2026, 3, 11))

    every_month = budget_tracking.get_all_monthly_expenses(parent.id)
    march = budget_tracking.get_all_monthly_expenses(parent.id, month="2026-03")

    assert [(e.month, e.child_id) for e in every_month] == [("2026-03", CHILD_ID), ("2026-03", 8), ("2026-02", CHILD_ID)]
    assert [(e.child_id, e.total_amount) for e in march] == [(CHILD_ID, 2000), (8, 700)]
