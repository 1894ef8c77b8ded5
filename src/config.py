from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

DEV_ACCESS_SECRET = "dev-access-token-secret"
DEV_REFRESH_SECRET = "dev-refresh-token-secret"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Environment
    environment: str = "development"  # "development" or "production"

    # Database
    database_url: str = "sqlite+aiosqlite:///./data/merapi.db"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 5000
    debug: bool = False

    # CORS (comma-separated origins, empty means localhost only)
    cors_origins: str = ""
    client_url: str = ""

    # Auth
    access_token_secret: str = DEV_ACCESS_SECRET
    refresh_token_secret: str = DEV_REFRESH_SECRET
    access_token_expire_minutes: int = 20
    refresh_token_expire_days: int = 1
    password_min_length: int = 6
    cookie_domain: Optional[str] = None

    # Cloudinary
    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = ""
    cloudinary_folder: str = "tanah-merapi"
    upload_max_bytes: int = 5 * 1024 * 1024

    # Scheduler
    promotion_check_interval_seconds: int = 60

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def uses_dev_secrets(self) -> bool:
        return (
            self.access_token_secret == DEV_ACCESS_SECRET
            or self.refresh_token_secret == DEV_REFRESH_SECRET
        )

    def allowed_origins(self) -> List[str]:
        if self.cors_origins:
            origins = [origin.strip() for origin in self.cors_origins.split(",")]
        else:
            origins = ["http://localhost:3000", "http://127.0.0.1:3000"]
        if self.client_url and self.client_url not in origins:
            origins.append(self.client_url)
        return origins


@lru_cache
def get_settings() -> Settings:
    return Settings()
