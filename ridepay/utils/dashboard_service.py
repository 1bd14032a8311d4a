from datetime import datetime
from sqlalchemy import func
from ridepay.models import db, PaymentTransaction
from ridepay.models.payment_transaction import (
    STATUS_PENDING_UPFRONT,
    STATUS_UPFRONT_PAID,
    STATUS_FULLY_PAID,
    STATUS_SUSPENDED,
)
from ridepay.service.payouts import payout_statistics


class DashboardService:
    @staticmethod
    def get_date_filters(args):
        date_filter = []
        if args.get("start_date"):
            start_date = datetime.strptime(args["start_date"], "%Y-%m-%d")
            date_filter.append(PaymentTransaction.created_at >= start_date)
        if args.get("end_date"):
            end_date = datetime.strptime(args["end_date"], "%Y-%m-%d")
            date_filter.append(PaymentTransaction.created_at <= end_date)
        return date_filter

    @staticmethod
    def get_revenue_stats(date_filter):
        totals = db.session.query(
            func.coalesce(func.sum(PaymentTransaction.upfront_paid + PaymentTransaction.balance_paid), 0),
            func.coalesce(func.sum(PaymentTransaction.system_commission), 0),
            func.coalesce(func.sum(PaymentTransaction.driver_earning), 0),
            func.coalesce(func.sum(PaymentTransaction.gateway_fee), 0),
            func.coalesce(func.sum(PaymentTransaction.total_amount), 0),
        ).filter(*date_filter).one()

        total_revenue, commission, earnings, fees, booked = (int(value) for value in totals)
        return {
            "total_revenue": total_revenue,
            "system_commission": commission,
            "driver_earnings": earnings,
            "gateway_fees": fees,
            "outstanding_balance": booked - total_revenue,
            "collection_rate": (total_revenue / booked * 100) if booked > 0 else 0,
        }

    @staticmethod
    def get_status_counts(date_filter):
        counts = dict(
            db.session.query(PaymentTransaction.status, func.count(PaymentTransaction.id))
            .filter(*date_filter)
            .group_by(PaymentTransaction.status)
            .all()
        )
        return {
            "completed_payments": counts.get(STATUS_FULLY_PAID, 0),
            "pending_payments": counts.get(STATUS_PENDING_UPFRONT, 0) + counts.get(STATUS_UPFRONT_PAID, 0),
            "suspended_bookings": counts.get(STATUS_SUSPENDED, 0),
            "status_breakdown": counts,
        }

    @staticmethod
    def get_payment_dashboard(args, now=None):
        date_filter = DashboardService.get_date_filters(args)
        return {
            "revenue": DashboardService.get_revenue_stats(date_filter),
            "bookings": DashboardService.get_status_counts(date_filter),
            "payouts": payout_statistics(now),
        }
