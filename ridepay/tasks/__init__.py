# ridepay/tasks/__init__.py
from celery import Celery
from celery.schedules import crontab


def make_celery(app):
    celery = Celery(
        app.import_name,
        broker=app.config['CELERY_BROKER_URL'],
        backend=app.config['CELERY_RESULT_BACKEND']
    )
    celery.conf.update(
        broker_url=app.config['CELERY_BROKER_URL'],
        result_backend=app.config['CELERY_RESULT_BACKEND'],
        timezone="UTC",
    )

    @celery.on_after_configure.connect
    def setup_periodic_tasks(sender, **kwargs):
        sender.add_periodic_task(
            crontab(hour=app.config["REMINDER_SWEEP_HOUR"], minute=0),
            celery.signature("ridepay.process_payment_reminders"),
        )
        sender.add_periodic_task(
            crontab(day_of_week=app.config["PAYOUT_SWEEP_WEEKDAY"], hour=app.config["PAYOUT_SWEEP_HOUR"], minute=0),
            celery.signature("ridepay.process_weekly_payouts"),
        )
        sender.add_periodic_task(
            crontab(day_of_month=1, hour=0, minute=5),
            celery.signature("ridepay.reset_monthly_budgets"),
        )

    @celery.task(name="ridepay.process_payment_reminders")
    def process_payment_reminders():
        from ridepay.tasks.payment_jobs import process_payment_reminders
        return process_payment_reminders(app)

    @celery.task(name="ridepay.process_weekly_payouts")
    def process_weekly_payouts():
        from ridepay.tasks.payment_jobs import process_weekly_payouts
        return process_weekly_payouts(app)

    @celery.task(name="ridepay.reset_monthly_budgets")
    def reset_monthly_budgets():
        from ridepay.tasks.payment_jobs import reset_monthly_budgets
        return reset_monthly_budgets(app)

    return celery
