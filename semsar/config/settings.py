from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""

    # Tables
    favorites_table: str = "favorites"
    properties_table: str = "properties"

    # Query cache (seconds a cached view is trusted before a read re-fetches)
    query_stale_seconds: float = 0.0
    favorites_ids_stale_seconds: float = 20.0
    favorites_is_stale_seconds: float = 20.0
    favorites_mine_stale_seconds: float = 15.0

    # App
    app_name: str = "semsar-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:8081,http://localhost:19006,http://127.0.0.1:8081"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
