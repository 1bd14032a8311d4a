from flask_restful import Resource, Api
from flask import request
from ridepay.utils.decorators import role_required
from ridepay.utils.dashboard_service import DashboardService
from ridepay.utils.roles import ROLE_ADMIN
from . import dashboard_bp

api = Api(dashboard_bp)


class PaymentDashboard(Resource):
    @role_required(ROLE_ADMIN)
    def get(self):
        try:
            return DashboardService.get_payment_dashboard(request.args), 200
        except ValueError:
            return {"message": "Dates must use the YYYY-MM-DD format"}, 400


api.add_resource(PaymentDashboard, "/dashboard/payments")
