from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEV_SESSION_SECRET = "dev-secret-change-me"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    app_name: str = "bingus-server"
    app_env: str = "development"
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    session_secret: str = DEV_SESSION_SECRET
    session_ttl_seconds: Optional[int] = Field(default=60 * 60 * 24 * 365, ge=1)
    session_cookie_name: str = "bingus_session"
    session_cookie_secure: bool = False


@lru_cache
def get_settings() -> Settings:
    return Settings()
