"""
GuardianAI Safety Backend — FastAPI
Modular entry point. All logic is split across:
  config.py, models.py, store.py, data_fetchers.py, scenarios.py, scoring.py,
  gemini.py, emergency.py, reports.py, route_analysis.py, chat.py, routes.py
"""

import logging

from config import LOG_LEVEL

logging.basicConfig(level=LOG_LEVEL)

# Import the FastAPI app from routes
from routes import app  # noqa: F401, E402

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
