"""
Local development entry point.

Creates the Flask app via create_app() and runs the dev server. Keeps startup
simple and avoids embedding app logic here.
"""

import os
from growtracker import create_app

os.environ.setdefault("APP_CONFIG", "growtracker.config.DevConfig")

app = create_app()

if __name__ == "__main__":
    # host='0.0.0.0' so the PWA can be opened from a phone on the LAN
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", 5000)), debug=os.getenv("FLASK_DEBUG", "1") == "1")
