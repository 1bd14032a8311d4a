from ridepay.extension import ma
from ridepay.models import PayoutBatch, PayoutTransaction
from marshmallow import fields


class PayoutTransactionSchema(ma.SQLAlchemyAutoSchema):
    class Meta:
        model = PayoutTransaction
        include_fk = True

    created_at = ma.DateTime(format="%Y-%m-%dT%H:%M:%S")


class PayoutBatchSchema(ma.SQLAlchemyAutoSchema):
    class Meta:
        model = PayoutBatch

    created_at = ma.DateTime(format="%Y-%m-%dT%H:%M:%S")
    processed_at = ma.DateTime(format="%Y-%m-%dT%H:%M:%S")
    transactions = fields.Nested(PayoutTransactionSchema, many=True, exclude=("batch_id",))
    failed_count = fields.Integer(dump_only=True)
