"""
Centralized application configuration
"""
import json
from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration"""

    # API Settings
    API_TITLE: str = "Promo Quoter API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Cart quoting with promotions and atomic order confirmation"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    API_DEBUG: bool = False

    # Storage
    # "postgres" uses DATABASE_URL, "memory" keeps everything in-process
    STORAGE_BACKEND: str = "memory"
    DATABASE_URL: Optional[str] = None
    DB_CONNECT_MAX_RETRIES: int = 3
    DB_CONNECT_RETRY_DELAY: float = 1.0

    # Cart confirmation
    CONFIRM_TIMEOUT_SECONDS: float = 30.0
    ORDER_ID_PREFIX: str = "ORD"

    # Logging
    LOG_LEVEL: str = "INFO"

    # CORS - Can be string (comma-separated) or JSON array
    # Example: "http://localhost:3000,https://yourdomain.com" or '["http://localhost:3000"]'
    ALLOWED_ORIGINS: Optional[str] = "http://localhost:3000"

    def get_allowed_origins(self) -> List[str]:
        """Parse ALLOWED_ORIGINS string into list"""
        if not self.ALLOWED_ORIGINS:
            return ["http://localhost:3000"]

        # Try JSON parse first (for array format)
        try:
            origins = json.loads(self.ALLOWED_ORIGINS)
            if isinstance(origins, list):
                return origins
        except (json.JSONDecodeError, ValueError):
            pass

        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
