"""
Entrypoint: run the push & presence reference backend.

Usage:
- python main.py
- uvicorn microservices.push_service_app:app --reload
"""
import uvicorn

from config.settings import settings
from core.logging import setup_logging
from microservices.push_service_app import app

if __name__ == "__main__":
    setup_logging()
    uvicorn.run(app, host="0.0.0.0", port=8000, log_level=settings.LOG_LEVEL.lower())
