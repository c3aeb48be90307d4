"""
Centralized configuration for all environments.

Select a config by setting:
  APP_CONFIG=growtracker.config.DevConfig      # local dev
  APP_CONFIG=growtracker.config.ProdConfig     # production (default if unset)
  APP_CONFIG=growtracker.config.TestConfig     # pytest

Notes:
- SECRET_KEY is read from FLASK_SECRET_KEY
- Rate limiting uses Flask-Limiter v3 keys (RATELIMIT_*).
"""

from __future__ import annotations
import os
import secrets
from datetime import timedelta

class BaseConfig:
    # Random key when the env var is missing; production enforces a real key at startup
    SECRET_KEY = os.getenv("FLASK_SECRET_KEY") or secrets.token_hex(32)
    DEBUG = False
    TESTING = False

    APP_NAME = os.getenv("APP_NAME", "Grow Tracker")

    # Session configuration
    PERMANENT_SESSION_LIFETIME = timedelta(days=30)
    SESSION_COOKIE_SECURE = True  # overridden in dev
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"

    # Supabase (Database + Storage)
    SUPABASE_URL = os.getenv("SUPABASE_URL", "")
    SUPABASE_KEY = os.getenv("SUPABASE_KEY", "")
    SUPABASE_IMAGE_BUCKET = os.getenv("SUPABASE_IMAGE_BUCKET", "plant-images")

    # Flask-Limiter v3
    RATELIMIT_ENABLED = os.getenv("RATELIMIT_ENABLED", "true").lower() == "true"
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_DEFAULT = os.getenv("RATELIMIT_DEFAULT", "120 per minute; 5000 per day")

    # File uploads
    MAX_CONTENT_LENGTH = 10 * 1024 * 1024  # 10MB max request size
    UPLOAD_RATE_LIMIT = "30 per hour"
    WATER_RATE_LIMIT = "30 per minute"

    # Plant list cache
    PLANT_CACHE_TTL_SECONDS = int(os.getenv("PLANT_CACHE_TTL_SECONDS", "60"))

    # Flowering durations offered by the plant form
    FLOWERING_WEEK_CHOICES = [6, 7, 8, 9, 10, 11, 12]

    # Misc
    PREFERRED_URL_SCHEME = os.getenv("PREFERRED_URL_SCHEME", "https")
    SEND_FILE_MAX_AGE_DEFAULT = int(os.getenv("SEND_FILE_MAX_AGE_DEFAULT", "3600"))

class ProdConfig(BaseConfig):
    """Production settings (selected by default if APP_CONFIG is unset)."""
    pass

class DevConfig(BaseConfig):
    """Developer-friendly settings."""
    DEBUG = True
    TEMPLATES_AUTO_RELOAD = True
    SEND_FILE_MAX_AGE_DEFAULT = 0
    PREFERRED_URL_SCHEME = "http"
    # Allow cookies over HTTP in dev
    SESSION_COOKIE_SECURE = False

class TestConfig(BaseConfig):
    """CI/pytest settings."""
    TESTING = True
    DEBUG = True
    RATELIMIT_ENABLED = False
    # Forms are posted directly by the test client
    WTF_CSRF_ENABLED = False
    SESSION_COOKIE_SECURE = False
    PREFERRED_URL_SCHEME = "http"
    # Tests install their own fake client
    SUPABASE_URL = ""
    SUPABASE_KEY = ""
    TEMPLATES_AUTO_RELOAD = True
    SEND_FILE_MAX_AGE_DEFAULT = 0
