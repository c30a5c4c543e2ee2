"""
Hockey Stick Counterfeit Checker

FastAPI service that scrapes a SidelineSwap seller's hockey stick listings,
asks a Claude vision model how likely each one is counterfeit, and returns
the listings at or above a confidence threshold.

Run:
    python main.py
    uvicorn main:app --host 127.0.0.1 --port 8000
"""

import logging

import uvicorn

from config import HOST, PORT, LOG_LEVEL, load_settings
from services.app_state import AppState
from services.app_factory import create_app

# ============================================================
# LOGGING SETUP
# ============================================================
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format='%(asctime)s [%(levelname)s] %(message)s',
    datefmt='%H:%M:%S'
)
logger = logging.getLogger(__name__)

# ============================================================
# FASTAPI APP
# ============================================================
app_state = AppState(settings=load_settings())
app = create_app(app_state)


if __name__ == "__main__":
    logger.info(f"[STARTUP] Listening on http://{HOST}:{PORT}")
    uvicorn.run(app, host=HOST, port=PORT)
