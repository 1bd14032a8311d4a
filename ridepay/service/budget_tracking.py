import logging
from datetime import datetime
from sqlalchemy.exc import IntegrityError
from ridepay.extension import db
from ridepay.models import BudgetLimit, MonthlyExpense, ExpenseEntry
from ridepay.errors import BudgetNotFound, InvalidBudget, BudgetAccessDenied
from ridepay.service.notifier import Notifier
from ridepay.utils.change_logger import log_change

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = (
    "monthly_limit",
    "warning_threshold",
    "is_active",
    "warning_enabled",
    "limit_reached_enabled",
    "weekly_report_enabled",
)


def month_key(moment):
    return moment.strftime("%Y-%m")


def _validate(monthly_limit, warning_threshold):
    if monthly_limit is None or int(monthly_limit) <= 0:
        raise InvalidBudget("monthly_limit must be greater than zero")
    if warning_threshold is None or not 0 < int(warning_threshold) <= 100:
        raise InvalidBudget("warning_threshold must be between 1 and 100")


def create_budget_limit(child_id, parent_id, monthly_limit, warning_threshold=80,
                        warning_enabled=True, limit_reached_enabled=True, weekly_report_enabled=False):
    if not child_id:
        raise InvalidBudget("child_id is required for budget limit creation")
    if not parent_id:
        raise InvalidBudget("parent_id is required for budget limit creation")
    _validate(monthly_limit, warning_threshold)
    ensure_child_owner(child_id, parent_id)

    # one active limit per child
    existing = get_budget_limit_for_child(child_id, parent_id)
    if existing:
        existing.is_active = False

    budget = BudgetLimit(
        child_id=child_id,
        parent_id=parent_id,
        monthly_limit=int(monthly_limit),
        warning_threshold=int(warning_threshold),
        warning_enabled=warning_enabled,
        limit_reached_enabled=limit_reached_enabled,
        weekly_report_enabled=weekly_report_enabled,
    )
    expense = MonthlyExpense.query.filter_by(child_id=child_id, month=month_key(datetime.utcnow())).first()
    budget.current_spent = expense.total_amount if expense else 0

    db.session.add(budget)
    try:
        db.session.flush()
        log_change("BudgetLimit", budget.id, "create", {"child_id": child_id, "monthly_limit": budget.monthly_limit})
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return budget


def get_budget_limit(budget_id):
    budget = db.session.get(BudgetLimit, budget_id)
    if not budget:
        raise BudgetNotFound(budget_id=budget_id)
    return budget


def get_budget_limits(parent_id):
    return (
        BudgetLimit.query
        .filter_by(parent_id=parent_id, is_active=True)
        .order_by(BudgetLimit.created_at.desc())
        .all()
    )


def get_budget_limit_for_child(child_id, parent_id=None):
    query = BudgetLimit.query.filter_by(child_id=child_id, is_active=True)
    if parent_id is not None:
        query = query.filter_by(parent_id=parent_id)
    return query.first()


def ensure_child_owner(child_id, parent_id):
    """Raise BudgetAccessDenied when another parent already tracks ``child_id``."""
    foreign_budget = (
        BudgetLimit.query
        .filter(BudgetLimit.child_id == child_id, BudgetLimit.is_active.is_(True))
        .filter(BudgetLimit.parent_id != parent_id)
        .first()
    )
    foreign_expense = (
        MonthlyExpense.query
        .filter(MonthlyExpense.child_id == child_id, MonthlyExpense.parent_id.isnot(None))
        .filter(MonthlyExpense.parent_id != parent_id)
        .first()
    )
    if foreign_budget or foreign_expense:
        logger.warning(f"Parent {parent_id} refused access to budget of child {child_id}")
        raise BudgetAccessDenied(child_id=child_id)


def update_budget_limit(budget_id, **updates):
    budget = get_budget_limit(budget_id)
    changes = {}
    for field in UPDATABLE_FIELDS:
        if field in updates and updates[field] is not None:
            old_value = getattr(budget, field)
            new_value = updates[field]
            if field in ("monthly_limit", "warning_threshold"):
                new_value = int(new_value)
            else:
                new_value = bool(new_value)
            if old_value != new_value:
                setattr(budget, field, new_value)
                changes[field] = {"old": old_value, "new": new_value}

    _validate(budget.monthly_limit, budget.warning_threshold)
    if changes:
        budget.updated_at = datetime.utcnow()
        log_change("BudgetLimit", budget.id, "update", {"changes": changes})
        db.session.commit()
    return budget


def delete_budget_limit(budget_id):
    budget = get_budget_limit(budget_id)
    log_change("BudgetLimit", budget.id, "delete", {"child_id": budget.child_id})
    db.session.delete(budget)
    db.session.commit()


def _lock_monthly_expense(child_id, month):
    return (
        MonthlyExpense.query
        .filter_by(child_id=child_id, month=month)
        .with_for_update()
        .populate_existing()
        .first()
    )


def _get_or_create_monthly_expense(child_id, parent_id, month):
    expense = _lock_monthly_expense(child_id, month)
    if expense:
        if expense.parent_id is None:
            expense.parent_id = parent_id
        return expense

    expense = MonthlyExpense(
        child_id=child_id,
        parent_id=parent_id,
        month=month,
        total_amount=0,
        ride_count=0,
        average_cost_per_ride=0,
    )
    try:
        with db.session.begin_nested():
            db.session.add(expense)
    except IntegrityError:
        # first ride of the month recorded concurrently
        logger.info(f"Monthly expense for child {child_id} in {month} created concurrently, re-reading")
        expense = _lock_monthly_expense(child_id, month)
    return expense


def check_budget_thresholds(budget, month, notifier):
    """Notify on threshold crossings, at most once per kind per month."""
    if not budget.monthly_limit:
        return []

    percentage_used = budget.percentage_used
    sent = []

    if (
        percentage_used >= budget.warning_threshold
        and budget.warning_enabled
        and budget.warning_notified_month != month
    ):
        notifier.notify(budget.parent_id, "budget_warning", {
            "child_id": budget.child_id,
            "percentage_used": round(percentage_used),
            "current_spent": budget.current_spent,
            "monthly_limit": budget.monthly_limit,
            "remaining": budget.monthly_limit - budget.current_spent,
        })
        budget.warning_notified_month = month
        sent.append("budget_warning")

    if (
        percentage_used >= 100
        and budget.limit_reached_enabled
        and budget.limit_notified_month != month
    ):
        notifier.notify(budget.parent_id, "budget_limit_reached", {
            "child_id": budget.child_id,
            "current_spent": budget.current_spent,
            "monthly_limit": budget.monthly_limit,
            "overspent": budget.current_spent - budget.monthly_limit,
        })
        budget.limit_notified_month = month
        sent.append("budget_limit_reached")

    return sent


def record_expense(child_id, amount, ride_id, driver_name=None, route=None,
                   parent_id=None, now=None, notifier=None):
    if amount is None or amount <= 0:
        raise InvalidBudget("Expense amount must be greater than zero")

    now = now or datetime.utcnow()
    notifier = notifier or Notifier()
    month = month_key(now)

    try:
        if parent_id is not None:
            ensure_child_owner(child_id, parent_id)
        budget = get_budget_limit_for_child(child_id, parent_id)
        if parent_id is None and budget:
            parent_id = budget.parent_id

        expense = _get_or_create_monthly_expense(child_id, parent_id, month)
        expense.expenses.append(ExpenseEntry(
            ride_id=str(ride_id),
            amount=amount,
            date=now,
            driver_name=driver_name or "Unknown",
            route=route or "Unknown",
        ))
        expense.total_amount += amount
        expense.ride_count += 1
        expense.average_cost_per_ride = expense.total_amount / expense.ride_count
        expense.updated_at = now

        if budget:
            budget.current_spent = expense.total_amount
            budget.updated_at = now
            sent = check_budget_thresholds(budget, month, notifier)
            if sent:
                logger.info(f"Budget notifications for child {child_id}: {', '.join(sent)}")

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return expense


def reset_monthly_budgets(now=None):
    """Start a new month: zero spend on every active limit. History is kept."""
    now = now or datetime.utcnow()
    budgets = BudgetLimit.query.filter_by(is_active=True).all()
    for budget in budgets:
        budget.current_spent = 0
        budget.warning_notified_month = None
        budget.limit_notified_month = None
        budget.updated_at = now
    db.session.commit()
    logger.info(f"Monthly budget reset: {len(budgets)} active limits reset")
    return len(budgets)


def get_monthly_expenses(child_id, months=6):
    return (
        MonthlyExpense.query
        .filter_by(child_id=child_id)
        .order_by(MonthlyExpense.month.desc())
        .limit(months)
        .all()
    )


def get_all_monthly_expenses(parent_id, month=None):
    """Every child's monthly totals for ``parent_id``, optionally one "YYYY-MM" month only."""
    query = MonthlyExpense.query.filter_by(parent_id=parent_id)
    if month:
        query = query.filter_by(month=month)
    return query.order_by(MonthlyExpense.month.desc(), MonthlyExpense.child_id).all()


def get_budget_summary(parent_id):
    total_limit, total_spent = 0, 0
    children = []
    for budget in get_budget_limits(parent_id):
        total_limit += budget.monthly_limit
        total_spent += budget.current_spent
        percentage_used = budget.percentage_used

        status = "safe"
        if percentage_used >= 100:
            status = "exceeded"
        elif percentage_used >= budget.warning_threshold:
            status = "warning"

        children.append({
            "child_id": budget.child_id,
            "monthly_limit": budget.monthly_limit,
            "current_spent": budget.current_spent,
            "percentage_used": round(percentage_used),
            "status": status,
        })

    return {
        "total_monthly_limit": total_limit,
        "total_current_spent": total_spent,
        "children_budgets": children,
    }
