from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Storage
    storage_backend: str = "sqlite"  # sqlite | supabase
    sqlite_path: str = "data/navstation.db"
    seed_demo_data: bool = False

    # Supabase (storage_backend=supabase)
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Preferred for server-side writes when set

    # Auth gate
    auth_enabled: bool = False
    auth_username: str = ""
    auth_password: str = ""
    auth_secret: str = "change-me-in-production"
    auth_token_ttl_hours: int = 24

    # App
    app_name: str = "navstation"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"
    rate_limit_enabled: bool = True
    login_rate_limit: str = "10/minute"  # slowapi format

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
