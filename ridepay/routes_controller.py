from ridepay.controllers.payment import payment_bp
from ridepay.controllers.wallet import wallet_bp
from ridepay.controllers.payout import payout_bp
from ridepay.controllers.reminder import reminder_bp
from ridepay.controllers.budget import budget_bp
from ridepay.controllers.dashboard import dashboard_bp

def register_routes(app):
    app.register_blueprint(payment_bp)
    app.register_blueprint(wallet_bp)
    app.register_blueprint(payout_bp)
    app.register_blueprint(reminder_bp)
    app.register_blueprint(budget_bp)
    app.register_blueprint(dashboard_bp)
