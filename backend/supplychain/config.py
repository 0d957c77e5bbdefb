# backend/supplychain/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/supplychain.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///supplychain.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Owner fixed by `flask ledger init` when --owner is omitted
    OWNER_IDENTITY = os.environ.get("OWNER_IDENTITY")

    # Header carrying the already-resolved caller identity
    CALLER_IDENTITY_HEADER = os.environ.get("CALLER_IDENTITY_HEADER", "X-Caller-Identity")

    # Re-runs of a command after a concurrency conflict (StaleDataError / OperationalError)
    COMMAND_RETRY_ATTEMPTS = int(os.environ.get("COMMAND_RETRY_ATTEMPTS", "3"))

    ACTIVITY_FEED_MAX_LIMIT = int(os.environ.get("ACTIVITY_FEED_MAX_LIMIT", "500"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    APP_VERSION = os.environ.get("APP_VERSION", "0.1.0")
