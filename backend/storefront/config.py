# backend/storefront/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/storefront.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///storefront.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Token signing. No default for the key: create_app() refuses to start without it.
    JWT_SIGNING_KEY = os.environ.get("JWT_SIGNING_KEY")
    JWT_ISSUER = os.environ.get("JWT_ISSUER", "storefront-api")
    JWT_AUDIENCE = os.environ.get("JWT_AUDIENCE", "storefront-clients")

    # bcrypt cost; keep it low in development (4), 12+ in production.
    # Left unset, the hasher falls back to its own safe minimum.
    BCRYPT_WORK_FACTOR = os.environ.get("BCRYPT_WORK_FACTOR")

    # Default freshness for cache entries stored without an explicit TTL
    CACHE_TIMEOUT_SECONDS = int(os.environ.get("CACHE_TIMEOUT_SECONDS", "300"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
