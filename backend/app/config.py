from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./dev.db"
    APP_HOST: str = "127.0.0.1"
    APP_PORT: int = 8000
    FRONTEND_ORIGINS: List[str] = ["http://localhost:8081", "http://localhost:19006"]
    LOG_LEVEL: str = "INFO"
    RESET_DB: bool = False
    SEED_CATALOGUE: bool = True
    FEATURED_PRODUCTS_LIMIT: int = 6
    ORDER_HISTORY_LIMIT: int = 10
    LOCK_DIR: str = ""
    CART_LOCK_TIMEOUT_SECONDS: float = 10.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

settings = Settings()
