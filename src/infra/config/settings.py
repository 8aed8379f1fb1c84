from typing import List, Optional
from pydantic_settings import BaseSettings
from functools import lru_cache

class Settings(BaseSettings):
    # App Settings
    APP_NAME: str = "YowxMods"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    # CORS
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:5173",  # Frontend development
        "http://localhost:3000",
        "https://yowxmods.com",  # Production frontend
    ]

    # Supabase Settings
    SUPABASE_URL: Optional[str] = None
    SUPABASE_ANON_KEY: Optional[str] = None

    # Diagnostics webhook (Discord compatible)
    DISCORD_WEBHOOK_URL: Optional[str] = None

    # Presence Settings
    PRESENCE_INTERVAL_SECONDS: float = 60.0
    PRESENCE_CHANNEL: str = "presence-updates"
    PRESENCE_EVENT: str = "presence-update"

    # Leaderboard Settings
    LEADERBOARD_REFRESH_SECONDS: float = 60.0
    LEADERBOARD_LIMIT: int = 10

    # Language Settings
    DEFAULT_LANGUAGE: str = "en"

    # HTTP Settings
    HTTP_DEFAULT_TIMEOUT: float = 15.0
    HTTP_SUPABASE_TIMEOUT: float = 10.0
    HTTP_WEBHOOK_TIMEOUT: float = 5.0
    HTTP_MAX_CONNECTIONS: int = 20
    HTTP_MAX_KEEPALIVE_CONNECTIONS: int = 5

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

@lru_cache()
def get_settings() -> Settings:
    return Settings()

settings = get_settings()
