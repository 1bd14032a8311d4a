from flask_restful import Resource, Api
from flask import request, g, current_app
from ridepay.schemas.payout_schema import PayoutBatchSchema, PayoutTransactionSchema
from ridepay.service import payouts
from ridepay.utils.decorators import role_required
from ridepay.utils.roles import ROLE_DRIVER, ROLE_ADMIN
from . import payout_bp

api = Api(payout_bp)

batch_schema = PayoutBatchSchema()
batches_schema = PayoutBatchSchema(many=True)
payouts_schema = PayoutTransactionSchema(many=True)


class RunPayoutResource(Resource):
    @role_required(ROLE_ADMIN)
    def post(self):
        data = request.get_json(silent=True) or {}
        driver_id = data.get("driver_id")

        batch = payouts.trigger_manual_payout(
            driver_id=int(driver_id) if driver_id is not None else None,
            rail=current_app.extensions["ridepay.payout_rail"],
        )
        if batch is None:
            return {"message": "No pending payouts to process"}, 200

        return {
            "message": f"Payout batch {batch.id} {batch.status}",
            "batch": batch_schema.dump(batch),
        }, 200


class PayoutBatchListResource(Resource):
    @role_required(ROLE_ADMIN)
    def get(self):
        limit = request.args.get("limit", 20, type=int)
        return batches_schema.dump(payouts.list_batches(limit=limit)), 200


class PayoutBatchResource(Resource):
    @role_required(ROLE_ADMIN)
    def get(self, batch_id):
        batch = payouts.get_batch(batch_id)
        if not batch:
            return {"message": "Payout batch not found"}, 404
        return batch_schema.dump(batch), 200


class DriverPayoutHistoryResource(Resource):
    @role_required(ROLE_DRIVER, ROLE_ADMIN)
    def get(self, driver_id):
        current_user = g.current_user
        if current_user.role == ROLE_DRIVER and current_user.id != driver_id:
            return {"message": "Access denied"}, 403
        return payouts_schema.dump(payouts.driver_payout_history(driver_id)), 200


class PayoutStatsResource(Resource):
    @role_required(ROLE_ADMIN)
    def get(self):
        return payouts.payout_statistics(), 200


api.add_resource(RunPayoutResource, "/payouts/run")
api.add_resource(PayoutBatchListResource, "/payouts/batches")
api.add_resource(PayoutBatchResource, "/payouts/batches/<int:batch_id>")
api.add_resource(DriverPayoutHistoryResource, "/payouts/drivers/<int:driver_id>")
api.add_resource(PayoutStatsResource, "/payouts/stats")
