import os
from datetime import timedelta
from dotenv import load_dotenv

load_dotenv()


def _flag(name, default="false"):
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key-change-me")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./ridepay.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}
    # let JWT errors reach their loaders instead of flask-restful's 500
    PROPAGATE_EXCEPTIONS = True

    # JWT (tokens are issued by the auth service, we only verify them)
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "fallback-secret-key")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=24)
    JWT_TOKEN_LOCATION = ["headers"]
    JWT_HEADER_NAME = "Authorization"
    JWT_HEADER_TYPE = "Bearer"

    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")

    # Notifications
    RESEND_API_KEY = os.getenv("RESEND_API_KEY")
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", "RidePay <no-reply@ridepay.app>")
    NOTIFY_EMAIL_ENABLED = _flag("NOTIFY_EMAIL_ENABLED")

    # Background jobs
    SCHEDULER_ENABLED = _flag("SCHEDULER_ENABLED")
    REMINDER_SWEEP_HOUR = int(os.getenv("REMINDER_SWEEP_HOUR", 9))
    PAYOUT_SWEEP_WEEKDAY = os.getenv("PAYOUT_SWEEP_WEEKDAY", "mon")
    PAYOUT_SWEEP_HOUR = int(os.getenv("PAYOUT_SWEEP_HOUR", 10))
    CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
    CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/0")

    RUN_MIGRATIONS_ON_START = _flag("RUN_MIGRATIONS_ON_START")
    SEED_ON_START = _flag("SEED_ON_START")


class DevelopmentConfig(Config):
    DEBUG = True
    SEED_ON_START = _flag("SEED_ON_START", "true")


class ProductionConfig(Config):
    DEBUG = False
    RUN_MIGRATIONS_ON_START = _flag("RUN_MIGRATIONS_ON_START", "true")


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    JWT_SECRET_KEY = "test-secret-key-with-enough-length-for-hs256"
    SCHEDULER_ENABLED = False
    NOTIFY_EMAIL_ENABLED = False
    RUN_MIGRATIONS_ON_START = False
    SEED_ON_START = False
