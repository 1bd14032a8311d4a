from datetime import datetime
from flask_restful import Resource, Api
from flask import request, g
from marshmallow import ValidationError
from ridepay.errors import PaymentError
from ridepay.schemas.budget_schema import (
    BudgetLimitSchema,
    MonthlyExpenseSchema,
    BudgetLimitInputSchema,
    ExpenseInputSchema,
)
from ridepay.service import budget_tracking
from ridepay.utils.decorators import role_required
from ridepay.utils.roles import ROLE_PARENT, ROLE_ADMIN
from . import budget_bp

api = Api(budget_bp)

budget_schema = BudgetLimitSchema()
budgets_schema = BudgetLimitSchema(many=True)
monthly_expenses_schema = MonthlyExpenseSchema(many=True)
budget_input_schema = BudgetLimitInputSchema()
budget_update_schema = BudgetLimitInputSchema(partial=True, exclude=("child_id",))
expense_input_schema = ExpenseInputSchema()


class BudgetListResource(Resource):
    @role_required(ROLE_PARENT)
    def get(self):
        budgets = budget_tracking.get_budget_limits(g.current_user.id)
        return budgets_schema.dump(budgets), 200

    @role_required(ROLE_PARENT)
    def post(self):
        try:
            data = budget_input_schema.load(request.get_json() or {})
        except ValidationError as err:
            return {"message": "Invalid input", "errors": err.messages}, 400

        try:
            budget = budget_tracking.create_budget_limit(parent_id=g.current_user.id, **data)
        except PaymentError as e:
            return e.to_dict(), e.http_status
        return budget_schema.dump(budget), 201


class BudgetResource(Resource):
    @role_required(ROLE_PARENT)
    def put(self, budget_id):
        try:
            data = budget_update_schema.load(request.get_json() or {})
        except ValidationError as err:
            return {"message": "Invalid input", "errors": err.messages}, 400

        try:
            budget = budget_tracking.get_budget_limit(budget_id)
            if budget.parent_id != g.current_user.id:
                return {"message": "Access denied"}, 403
            budget = budget_tracking.update_budget_limit(budget_id, **data)
        except PaymentError as e:
            return e.to_dict(), e.http_status
        return budget_schema.dump(budget), 200

    @role_required(ROLE_PARENT)
    def delete(self, budget_id):
        try:
            budget = budget_tracking.get_budget_limit(budget_id)
            if budget.parent_id != g.current_user.id:
                return {"message": "Access denied"}, 403
            budget_tracking.delete_budget_limit(budget_id)
        except PaymentError as e:
            return e.to_dict(), e.http_status
        return {"message": "Budget limit deleted"}, 200


class ExpenseResource(Resource):
    @role_required(ROLE_PARENT)
    def get(self):
        month = request.args.get("month")
        if month:
            try:
                datetime.strptime(month, "%Y-%m")
            except ValueError:
                return {"message": "month must be formatted as YYYY-MM"}, 400
        expenses = budget_tracking.get_all_monthly_expenses(g.current_user.id, month=month)
        return monthly_expenses_schema.dump(expenses), 200

    @role_required(ROLE_PARENT, ROLE_ADMIN)
    def post(self):
        current_user = g.current_user
        try:
            data = expense_input_schema.load(request.get_json() or {})
        except ValidationError as err:
            return {"message": "Invalid input", "errors": err.messages}, 400

        parent_id = current_user.id if current_user.role == ROLE_PARENT else None
        try:
            expense = budget_tracking.record_expense(parent_id=parent_id, **data)
        except PaymentError as e:
            return e.to_dict(), e.http_status

        return {
            "message": "Expense recorded",
            "month": expense.month,
            "total_amount": expense.total_amount,
            "ride_count": expense.ride_count,
        }, 201


class BudgetSummaryResource(Resource):
    @role_required(ROLE_PARENT)
    def get(self):
        return budget_tracking.get_budget_summary(g.current_user.id), 200


class ChildExpenseHistoryResource(Resource):
    @role_required(ROLE_PARENT)
    def get(self, child_id):
        months = request.args.get("months", 6, type=int)
        expenses = budget_tracking.get_monthly_expenses(child_id, months=months)
        if any(expense.parent_id not in (None, g.current_user.id) for expense in expenses):
            return {"message": "Access denied"}, 403
        return monthly_expenses_schema.dump(expenses), 200


api.add_resource(BudgetListResource, "/budgets")
api.add_resource(BudgetResource, "/budgets/<int:budget_id>")
api.add_resource(ExpenseResource, "/budgets/expenses")
api.add_resource(BudgetSummaryResource, "/budgets/summary")
api.add_resource(ChildExpenseHistoryResource, "/budgets/children/<int:child_id>/expenses")
