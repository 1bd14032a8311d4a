from flask_restful import Resource, Api
from flask import g
from ridepay.schemas.wallet_schema import WalletSummarySchema
from ridepay.service.driver_wallet import wallet_summary
from ridepay.utils.decorators import role_required
from ridepay.utils.roles import ROLE_DRIVER, ROLE_ADMIN
from . import wallet_bp

api = Api(wallet_bp)

summary_schema = WalletSummarySchema()


class MyWalletResource(Resource):
    @role_required(ROLE_DRIVER)
    def get(self):
        return summary_schema.dump(wallet_summary(g.current_user.id)), 200


class DriverWalletResource(Resource):
    @role_required(ROLE_ADMIN)
    def get(self, driver_id):
        return summary_schema.dump(wallet_summary(driver_id)), 200


api.add_resource(MyWalletResource, "/wallets/me")
api.add_resource(DriverWalletResource, "/wallets/<int:driver_id>")
