import os
import logging
from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException
from ridepay.config import DevelopmentConfig, ProductionConfig, TestingConfig
from ridepay.errors import PaymentError
from ridepay.extension import db, migrate, jwt, ma
from ridepay.routes_controller import register_routes
from ridepay.service.gateways import SimulatedPaymentGateway, SimulatedPayoutRail

CONFIGS = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}


def create_app(config_object=None):
    app = Flask(__name__)

    if config_object is None:
        config_object = CONFIGS.get(os.getenv("APP_ENV", "development"), DevelopmentConfig)
    app.config.from_object(config_object)
    app.config.from_prefixed_env()

    logging.basicConfig(
        level=logging.DEBUG if app.config.get("DEBUG") else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    CORS(app,
         supports_credentials=True,
         origins=app.config["CORS_ORIGINS"],
         methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
         allow_headers=["Content-Type", "Authorization"],
         expose_headers=["Authorization"],
         max_age=3600
    )

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    ma.init_app(app)

    # external money movers, swapped for the real integrations in deployment
    app.extensions.setdefault("ridepay.payment_gateway", SimulatedPaymentGateway())
    app.extensions.setdefault("ridepay.payout_rail", SimulatedPayoutRail())

    with app.app_context():
        if app.config["RUN_MIGRATIONS_ON_START"]:
            from flask_migrate import upgrade
            upgrade()
        if app.config["SEED_ON_START"]:
            from ridepay.seed import seed
            seed()

    # Register routes
    register_routes(app)

    if app.config["SCHEDULER_ENABLED"]:
        from ridepay.scheduler import init_scheduler
        init_scheduler(app)

    @app.errorhandler(PaymentError)
    def handle_payment_error(e):
        return jsonify(e.to_dict()), e.http_status

    @app.errorhandler(Exception)
    def handle_error(e):
        if isinstance(e, HTTPException):
            return jsonify({"message": e.description}), e.code
        app.logger.error(f"Unhandled error: {e}", exc_info=True)
        return jsonify({"error": str(e)}), 500

    @app.route('/')
    def home():
        return {"message": "Welcome to RidePay API"}

    # JWT error handlers
    @jwt.invalid_token_loader
    def invalid_token_callback(error):
        return {
            "message": "Invalid token",
            "error": str(error)
        }, 401

    @jwt.unauthorized_loader
    def missing_token_callback(error):
        return {
            "message": "Missing authorization token",
            "error": str(error)
        }, 401

    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return {"message": "Token has expired"}, 401

    return app
