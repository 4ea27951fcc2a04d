#!/usr/bin/env python3
"""
motopulse_dash.py: Motorola review dashboard
- Flask web UI (Tailwind via CDN)
- Reddit API ingestion (client-credentials OAuth)
- SQLite review cache
- rule-based category, sentiment and question classification
"""

from __future__ import annotations

import logging
import os

from motopulse import db
from motopulse.web import create_app

# -----------------------------
# Configuration (edit here)
# -----------------------------

APP_TITLE = os.environ.get("MOTOPULSE_TITLE", "Motorola Reviews Dashboard")
HOST = os.environ.get("MOTOPULSE_HOST", "127.0.0.1")
PORT = int(os.environ.get("MOTOPULSE_PORT", "5000"))
LOG_LEVEL = os.environ.get("MOTOPULSE_LOG_LEVEL", "INFO")


def main() -> None:
    logging.basicConfig(
        level=LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    db.init_db()
    app = create_app(APP_TITLE)
    app.run(host=HOST, port=PORT, debug=False)


if __name__ == "__main__":
    main()
