"""
Production WSGI entry point.

Gunicorn imports this file and looks for a top-level variable named `app`.

Usage:
    gunicorn -w 2 -b 0.0.0.0:$PORT wsgi:app
"""

from growtracker import create_app

app = create_app()
