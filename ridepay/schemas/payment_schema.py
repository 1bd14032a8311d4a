from ridepay.extension import ma
from ridepay.models import PaymentTransaction
from marshmallow import Schema, fields, validate


class PaymentTransactionSchema(ma.SQLAlchemyAutoSchema):
    class Meta:
        model = PaymentTransaction
        load_instance = True
        include_fk = True
        exclude = ("reminder_three_days_sent", "reminder_one_day_sent", "version")

    balance_due_date = ma.DateTime(format="%Y-%m-%dT%H:%M:%S")
    upfront_payment_date = ma.DateTime(format="%Y-%m-%dT%H:%M:%S")
    balance_payment_date = ma.DateTime(format="%Y-%m-%dT%H:%M:%S")
    created_at = ma.DateTime(format="%Y-%m-%dT%H:%M:%S")
    updated_at = ma.DateTime(format="%Y-%m-%dT%H:%M:%S")

    amount_paid = fields.Integer(dump_only=True)
    remaining_amount = fields.Integer(dump_only=True)
    reminders_sent = fields.Dict(dump_only=True)
    is_overdue = fields.Method("get_is_overdue", dump_only=True)

    def get_is_overdue(self, obj):
        return obj.is_overdue()


class PaymentSplitSchema(Schema):
    total_amount = fields.Integer()
    upfront_amount = fields.Integer()
    balance_amount = fields.Integer()
    gateway_fee = fields.Integer()
    system_commission = fields.Integer()
    driver_earning = fields.Integer()
    balance_due_date = fields.DateTime(format="%Y-%m-%dT%H:%M:%S")
    reminder_dates = fields.Dict(keys=fields.String(), values=fields.DateTime(format="%Y-%m-%dT%H:%M:%S"))


class CreateTransactionSchema(Schema):
    booking_id = fields.Integer(required=True)
    parent_id = fields.Integer(load_default=None)
    driver_id = fields.Integer(required=True)
    total_amount = fields.Integer(required=True, validate=validate.Range(min=1))


class CustomerInfoSchema(Schema):
    name = fields.String(load_default=None)
    email = fields.Email(load_default=None)
    phone = fields.String(load_default=None)


class PaymentRequestSchema(Schema):
    payment_type = fields.String(required=True, validate=validate.OneOf(["upfront", "balance"]))
    amount = fields.Integer(required=True)
    customer_info = fields.Nested(CustomerInfoSchema, load_default=dict)
