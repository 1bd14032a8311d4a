from ridepay.extension import ma
from ridepay.models import BudgetLimit, MonthlyExpense, ExpenseEntry
from marshmallow import Schema, fields, validate


class BudgetLimitSchema(ma.SQLAlchemyAutoSchema):
    class Meta:
        model = BudgetLimit
        include_fk = True

    created_at = ma.DateTime(format="%Y-%m-%dT%H:%M:%S")
    updated_at = ma.DateTime(format="%Y-%m-%dT%H:%M:%S")
    percentage_used = fields.Float(dump_only=True)


class ExpenseEntrySchema(ma.SQLAlchemyAutoSchema):
    class Meta:
        model = ExpenseEntry

    date = ma.DateTime(format="%Y-%m-%dT%H:%M:%S")


class MonthlyExpenseSchema(ma.SQLAlchemyAutoSchema):
    class Meta:
        model = MonthlyExpense

    created_at = ma.DateTime(format="%Y-%m-%dT%H:%M:%S")
    updated_at = ma.DateTime(format="%Y-%m-%dT%H:%M:%S")
    expenses = fields.Nested(ExpenseEntrySchema, many=True)


class BudgetLimitInputSchema(Schema):
    child_id = fields.Integer(required=True)
    monthly_limit = fields.Integer(required=True, validate=validate.Range(min=1))
    warning_threshold = fields.Integer(load_default=80, validate=validate.Range(min=1, max=100))
    warning_enabled = fields.Boolean(load_default=True)
    limit_reached_enabled = fields.Boolean(load_default=True)
    weekly_report_enabled = fields.Boolean(load_default=False)


class ExpenseInputSchema(Schema):
    child_id = fields.Integer(required=True)
    amount = fields.Integer(required=True, validate=validate.Range(min=1))
    ride_id = fields.String(required=True)
    driver_name = fields.String(load_default=None)
    route = fields.String(load_default=None)
