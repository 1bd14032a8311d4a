# ridepay/scheduler.py
from apscheduler.schedulers.background import BackgroundScheduler
from ridepay.tasks.payment_jobs import (
    process_payment_reminders,
    process_weekly_payouts,
    reset_monthly_budgets,
)

def init_scheduler(app):
    sched = BackgroundScheduler(timezone="UTC")
    sched.add_job(process_payment_reminders, "cron", args=[app],
                  hour=app.config["REMINDER_SWEEP_HOUR"], minute=0, id="payment_reminders")
    sched.add_job(process_weekly_payouts, "cron", args=[app],
                  day_of_week=app.config["PAYOUT_SWEEP_WEEKDAY"], hour=app.config["PAYOUT_SWEEP_HOUR"],
                  minute=0, id="weekly_payouts")
    sched.add_job(reset_monthly_budgets, "cron", args=[app], day=1, hour=0, minute=5, id="budget_reset")
    sched.start()
    app.extensions["ridepay.scheduler"] = sched
    return sched
