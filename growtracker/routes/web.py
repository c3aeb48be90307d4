"""
App shell routes for the installable PWA.

Serves the health check, the web app manifest and the service worker. The
service worker must be served from the site root so its scope covers every
page.
"""

from flask import Blueprint, current_app, jsonify, send_from_directory, url_for
from ..extensions import limiter

web_bp = Blueprint("web", __name__)


@limiter.exempt
@web_bp.route("/healthz")
def healthz():
    """Simple health endpoint to verify the server responds."""
    return "OK", 200


@web_bp.route("/manifest.json")
def manifest():
    """Web app manifest so the dashboard can be installed to the home screen."""
    name = current_app.config.get("APP_NAME", "Grow Tracker")
    resp = jsonify({
        "name": name,
        "short_name": name,
        "description": "Track plants, watering and growth phases.",
        "start_url": "/",
        "scope": "/",
        "display": "standalone",
        "background_color": "#f9fafb",
        "theme_color": "#16a34a",
        "icons": [
            {
                "src": url_for("static", filename="icons/icon.svg"),
                "sizes": "any",
                "type": "image/svg+xml",
                "purpose": "any maskable",
            },
        ],
    })
    resp.mimetype = "application/manifest+json"
    return resp


@web_bp.route("/sw.js")
def service_worker():
    """Service worker script, served from the root with revalidation on every load."""
    resp = send_from_directory(current_app.static_folder, "sw.js", mimetype="application/javascript")
    resp.headers["Cache-Control"] = "no-cache"
    resp.headers["Service-Worker-Allowed"] = "/"
    return resp
