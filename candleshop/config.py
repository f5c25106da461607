# candleshop/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    DATABASE_URL: str = "sqlite:///./candleshop.db"

    FRONTEND_URL: str = "http://localhost:5173"
    # Base URL used by the storefront client when none is passed explicitly
    API_BASE_URL: str = "http://127.0.0.1:8000"
    UPLOAD_DIR: str = "static/uploads"

    # Fallbacks used when the shipping settings are missing or not numeric
    DEFAULT_SHIPPING_COST: float = 5.0
    DEFAULT_FREE_SHIPPING_THRESHOLD: float = 50.0

    # Per-item delay before a cart quantity change is sent to the server
    CART_SYNC_DEBOUNCE_SECONDS: float = 0.5

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra = "ignore"

settings = Settings()
