"""
Application settings and environment configuration.

Purpose:
- Centralize all config (backend URL, worker script, cache, heartbeat intervals)
- Load from environment variables / .env for 12-factor app compliance
- Provide sensible defaults for local development
"""
import os
from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Reference backend (microservices/push_service_app.py)
    API_TITLE: str = "MateLuxy Push API"
    API_VERSION: str = "0.1"
    DEBUG: bool = os.getenv("DEBUG", "True").lower() == "true"

    # Backend consumed by the page and the worker (VITE_API_URL in the web app)
    # Example: https://api.mateluxy.com
    API_BASE_URL: str = "http://localhost:8000"

    # None = wait forever, same as a plain browser fetch
    HTTP_TIMEOUT: Optional[float] = None

    # Logging: DEBUG, INFO, WARNING, ERROR, CRITICAL
    LOG_LEVEL: str = "INFO"

    # Service worker
    SERVICE_WORKER_PATH: str = "/service-worker.js"
    CACHE_NAME: str = "mateluxy-cache-v1"
    STATIC_ASSETS: List[str] = ["/", "/index.html", "/favicon.ico", "/manifest.json"]

    # Notifications
    NOTIFICATION_DEFAULT_URL: str = "/agent-pannel/property-requests"
    NOTIFICATION_ICON: str = "/favicon.ico"
    AGENT_PANEL_SEGMENT: str = "agent-pannel"
    SYNC_TAG: str = "property-requests-sync"

    # Presence heartbeat (seconds). Kept separate so the idle-check timer can be tuned
    # independently of the interaction throttle.
    ACTIVITY_UPDATE_INTERVAL: float = 5 * 60
    ACTIVITY_CHECK_INTERVAL: float = 5 * 60

    # Local persisted preferences (localStorage analogue)
    SETTINGS_STORE_PATH: str = ".mateluxy/local_storage.json"
    SETTINGS_KEY: str = "agent_settings"

    # Reference backend: URL-safe base64 VAPID public key handed to subscribers
    VAPID_PUBLIC_KEY: str = ""

    class Config:
        env_file = ".env"  # Load from .env file if present
        extra = "allow"


# Global settings instance
settings = Settings()
