import logging
from ridepay.extension import db
from ridepay.service import budget_tracking
from ridepay.service.payment_reminders import run_reminder_sweep
from ridepay.service.payouts import run_payout_sweep

logger = logging.getLogger(__name__)


def _job_app(app=None):
    if app is None:
        from ridepay import create_app
        app = create_app()
    return app


def process_payment_reminders(app=None):
    """Daily: 3-day and 1-day balance reminders, then suspend what is past due."""
    app = _job_app(app)
    with app.app_context():
        try:
            result = run_reminder_sweep()
            logger.info(f"Reminder sweep finished: {result.to_dict()}")
            return result.to_dict()
        except Exception as e:
            logger.error(f"Error processing payment reminders: {e}", exc_info=True)
            db.session.rollback()


def process_weekly_payouts(app=None):
    app = _job_app(app)
    with app.app_context():
        try:
            batch = run_payout_sweep(rail=app.extensions["ridepay.payout_rail"])
            if batch is None:
                return None
            return {"batch_id": batch.id, "status": batch.status, "total_amount": batch.total_amount}
        except Exception as e:
            logger.error(f"Error processing weekly payouts: {e}", exc_info=True)
            db.session.rollback()


def reset_monthly_budgets(app=None):
    app = _job_app(app)
    with app.app_context():
        try:
            return budget_tracking.reset_monthly_budgets()
        except Exception as e:
            logger.error(f"Error resetting monthly budgets: {e}", exc_info=True)
            db.session.rollback()
