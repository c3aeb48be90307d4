"""
Application factory and global configuration.

Creates the Flask app, applies security headers (CSP), configures rate limiting
and CSRF protection, initializes Supabase, registers blueprints, Jinja filters
and CLI commands. Startup/config concerns live here; domain logic lives in
services/.
"""

from __future__ import annotations
import os
from flask import Flask, Response
from dotenv import load_dotenv
from .extensions import limiter, csrf
from .routes.api import api_bp
from .routes.web import web_bp
from .routes.plants import plants_bp
from .services import supabase_client


def _validate_production_security(app: Flask, cfg_path: str) -> None:
    """
    Validate critical security settings in production environments.

    Raises RuntimeError if production security requirements are not met so the
    app never starts with an insecure configuration.

    Checks:
    - SESSION_COOKIE_SECURE must be True
    - SECRET_KEY must be set explicitly and be >= 32 characters
    - DEBUG must be False
    """
    is_production = "ProdConfig" in cfg_path
    is_test = app.config.get("TESTING", False)

    if not is_production or is_test:
        return

    errors = []

    if not app.config.get("SESSION_COOKIE_SECURE", False):
        errors.append("SESSION_COOKIE_SECURE must be True in production.")

    secret_key = os.getenv("FLASK_SECRET_KEY", "")
    if not secret_key:
        errors.append(
            "FLASK_SECRET_KEY is not set. "
            "Generate with: python -c 'import secrets; print(secrets.token_hex(32))'"
        )
    elif len(secret_key) < 32:
        errors.append(f"FLASK_SECRET_KEY is too weak ({len(secret_key)} chars). Use at least 32 characters.")

    if app.config.get("DEBUG", False):
        errors.append("DEBUG must be False in production.")

    if errors:
        error_msg = "\n\n[ERROR] PRODUCTION SECURITY VALIDATION FAILED:\n\n" + "\n\n".join(f"  * {err}" for err in errors)
        raise RuntimeError(error_msg)

    app.logger.info("[OK] Production security validation passed")


def create_app(config_object: str | None = None) -> Flask:
    # override=False so production env vars are not overwritten by a stale .env file
    load_dotenv(override=False)

    app = Flask(
        __name__,
        static_folder="static",
        template_folder="templates",
    )

    # Explicit argument wins, then APP_CONFIG, then production
    cfg_path = config_object or os.getenv("APP_CONFIG", "growtracker.config.ProdConfig")
    try:
        app.config.from_object(cfg_path)
    except (ImportError, AttributeError) as e:
        app.logger.warning(f"Could not load config object {cfg_path}: {e}")

    _validate_production_security(app, cfg_path)

    limiter.init_app(app)
    if not app.config.get("RATELIMIT_ENABLED", True):
        limiter.enabled = False

    csrf.init_app(app)
    # API requests are guarded by the X-Requested-With check instead
    csrf.exempt(api_bp)

    supabase_client.init_supabase(app)

    # ---- Content Security Policy ----
    # Gallery images are served from Supabase Storage
    supabase_domain = app.config.get("SUPABASE_URL", "").replace("https://", "").replace("http://", "").rstrip("/")
    img_src = "img-src 'self' data:" + (f" https://{supabase_domain}" if supabase_domain else "")

    csp = (
        "default-src 'self'; "
        "script-src 'self'; "
        "style-src 'self'; "
        f"{img_src}; "
        "connect-src 'self'; "
        "worker-src 'self'; "
        "manifest-src 'self'; "
        "object-src 'none'; "
        "base-uri 'self'; "
        "frame-ancestors 'none'; "
        "form-action 'self'"
    )
    if app.config.get("PREFERRED_URL_SCHEME") == "https":
        csp += "; upgrade-insecure-requests"

    @app.after_request
    def apply_security_headers(resp: Response) -> Response:
        resp.headers["Content-Security-Policy"] = csp
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        resp.headers["X-Frame-Options"] = "DENY"

        if app.config.get("SESSION_COOKIE_SECURE", False):
            resp.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        # Camera stays allowed so phones can take gallery photos directly
        resp.headers["Permissions-Policy"] = "geolocation=(), microphone=(), payment=(), usb=()"

        return resp

    # Blueprints
    app.register_blueprint(web_bp)
    app.register_blueprint(plants_bp)
    app.register_blueprint(api_bp, url_prefix="/api")

    # Jinja filters (defined in utils/filters.py for testability)
    from .utils.filters import relative_time, format_date, progress_width
    app.jinja_env.filters["relative_time"] = relative_time
    app.jinja_env.filters["format_date"] = format_date
    app.jinja_env.filters["progress_width"] = progress_width
    app.jinja_env.globals["APP_NAME"] = app.config.get("APP_NAME", "Grow Tracker")

    from .cli import growth_report_command
    app.cli.add_command(growth_report_command)

    return app
