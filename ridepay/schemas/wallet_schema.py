from ridepay.extension import ma
from ridepay.models import DriverWallet, WalletTransaction
from marshmallow import fields


class WalletTransactionSchema(ma.SQLAlchemyAutoSchema):
    class Meta:
        model = WalletTransaction
        include_fk = True

    date = ma.DateTime(format="%Y-%m-%dT%H:%M:%S")


class DriverWalletSchema(ma.SQLAlchemyAutoSchema):
    class Meta:
        model = DriverWallet
        include_fk = True
        exclude = ("version",)

    last_payout_date = ma.DateTime(format="%Y-%m-%dT%H:%M:%S")
    created_at = ma.DateTime(format="%Y-%m-%dT%H:%M:%S")
    updated_at = ma.DateTime(format="%Y-%m-%dT%H:%M:%S")


class WalletSummarySchema(ma.Schema):
    driver_id = fields.Integer()
    total_earnings = fields.Integer()
    pending_payouts = fields.Integer()
    last_payout_date = fields.DateTime(format="%Y-%m-%dT%H:%M:%S", allow_none=True)
    transactions = fields.Nested(WalletTransactionSchema, many=True)
