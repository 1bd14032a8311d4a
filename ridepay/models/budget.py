from datetime import datetime
from ridepay.extension import db


class BudgetLimit(db.Model):
    __tablename__ = "budget_limits"

    id = db.Column(db.Integer, primary_key=True)
    child_id = db.Column(db.Integer, nullable=False, index=True)
    parent_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    monthly_limit = db.Column(db.Integer, nullable=False)
    current_spent = db.Column(db.Integer, nullable=False, default=0)
    warning_threshold = db.Column(db.Integer, nullable=False, default=80)  # percent
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    warning_enabled = db.Column(db.Boolean, nullable=False, default=True)
    limit_reached_enabled = db.Column(db.Boolean, nullable=False, default=True)
    weekly_report_enabled = db.Column(db.Boolean, nullable=False, default=False)

    # "YYYY-MM" of the month the notification already fired in
    warning_notified_month = db.Column(db.String(7))
    limit_notified_month = db.Column(db.String(7))

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def percentage_used(self):
        if not self.monthly_limit:
            return 0
        return self.current_spent / self.monthly_limit * 100


class MonthlyExpense(db.Model):
    __tablename__ = "monthly_expenses"

    id = db.Column(db.Integer, primary_key=True)
    child_id = db.Column(db.Integer, nullable=False, index=True)
    parent_id = db.Column(db.Integer, nullable=True, index=True)
    month = db.Column(db.String(7), nullable=False)
    total_amount = db.Column(db.Integer, nullable=False, default=0)
    ride_count = db.Column(db.Integer, nullable=False, default=0)
    average_cost_per_ride = db.Column(db.Float, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint("child_id", "month", name="uq_monthly_expense_child_month"),
    )

    expenses = db.relationship(
        "ExpenseEntry",
        back_populates="monthly_expense",
        cascade="all, delete-orphan",
        order_by="ExpenseEntry.id",
    )


class ExpenseEntry(db.Model):
    __tablename__ = "expense_entries"

    id = db.Column(db.Integer, primary_key=True)
    monthly_expense_id = db.Column(db.Integer, db.ForeignKey("monthly_expenses.id"), nullable=False, index=True)
    ride_id = db.Column(db.String(100), nullable=False)
    amount = db.Column(db.Integer, nullable=False)
    date = db.Column(db.DateTime, default=datetime.utcnow)
    driver_name = db.Column(db.String(120), default="Unknown")
    route = db.Column(db.String(255), default="Unknown")

    monthly_expense = db.relationship("MonthlyExpense", back_populates="expenses")
