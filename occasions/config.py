from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Environment
    environment: str = "development"  # "development" or "production"

    # Database
    database_url: str = "sqlite+aiosqlite:///./data/occasions.db"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    debug: bool = False

    # Cron endpoints (Authorization: Bearer <cron_secret>)
    cron_secret: str = ""

    # Scheduler
    scheduler_enabled: bool = True
    template_cron_hour: int = 8
    template_cron_minute: int = 0
    reminder_interval_hours: int = 6

    # Notifications
    notification_enabled: bool = True
    reminder_window_hours: int = 48

    # Auto-coupons
    default_coupon_duration_days: int = 30
    default_currency: str = "EUR"

    # CORS (comma-separated origins, empty means localhost only)
    cors_origins: str = ""

    # Admin
    admin_api_key: str = ""

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def cors_origin_list(self) -> List[str]:
        if not self.cors_origins:
            return ["http://localhost:3000", "http://127.0.0.1:3000"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def sync_database_url(self) -> str:
        return self.database_url.replace("+aiosqlite", "")


@lru_cache
def get_settings() -> Settings:
    return Settings()
