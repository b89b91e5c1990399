"""`uvicorn main:app` serves the fintrack API; `python main.py` prints a dashboard for one user."""
from __future__ import annotations

import logging
import os
from dotenv import load_dotenv

load_dotenv()

logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
# Request-level store logging is noisy at INFO; FINTRACK_STORE_LOG_LEVEL overrides it.
logging.getLogger("infrastructure.stores").setLevel(
    getattr(logging, os.getenv("FINTRACK_STORE_LOG_LEVEL", "WARNING").upper(), logging.WARNING)
)

from interface.api import app  # noqa: E402
from interface.cli import main as dashboard_main  # noqa: E402

if __name__ == "__main__":
    dashboard_main()
