import logging
from pydantic_settings import BaseSettings
from pydantic import model_validator, ConfigDict
from functools import lru_cache

logger = logging.getLogger(__name__)

MODE_LIVE = "live"
MODE_SIMULATION = "simulation"


class ConfigurationError(Exception):
    """Required configuration is missing for the requested operation."""
    pass


class Settings(BaseSettings):
    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Environment: "development" or "production"
    environment: str = "development"

    database_url: str = "postgresql+asyncpg://localhost/ad_monitor"

    @model_validator(mode="before")
    @classmethod
    def _fix_database_url_for_asyncpg(cls, values: dict) -> dict:
        """Hosted Postgres gives postgresql://, asyncpg needs postgresql+asyncpg://."""
        if not isinstance(values, dict):
            return values
        url = values.get("database_url") or ""
        if url.startswith("postgresql://") and "+asyncpg" not in url:
            values["database_url"] = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return values

    secret_key: str = "change-me-in-production"
    access_token_expire_days: int = 7
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    # "live" talks to the Graph API, "simulation" generates random data
    app_mode: str = MODE_SIMULATION

    # Facebook Marketing API (live mode only)
    fb_access_token: str = ""
    fb_business_id: str = ""
    fb_api_version: str = "v18.0"
    fb_request_timeout: float = 30.0

    # Comma-separated "username:bcrypt_hash" pairs
    admin_users: str = ""

    # Shared secret for scheduler-triggered sync
    cron_secret: str = ""

    @model_validator(mode="after")
    def _validate_production_settings(self) -> "Settings":
        """Enforce that critical secrets are set when running in production."""
        if self.app_mode.lower() not in (MODE_LIVE, MODE_SIMULATION):
            raise ValueError(f"APP_MODE must be '{MODE_LIVE}' or '{MODE_SIMULATION}', got {self.app_mode!r}")
        if self.is_production:
            if self.secret_key == "change-me-in-production":
                raise ValueError(
                    "SECRET_KEY must be set to a secure value in production. "
                    "Generate one with: python -c \"import secrets; print(secrets.token_hex(32))\""
                )
            if not self.database_url or "localhost" in self.database_url:
                logger.warning("DATABASE_URL appears to point at localhost in production.")
        return self

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def is_simulation(self) -> bool:
        return self.app_mode.lower() == MODE_SIMULATION

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def require_business_id(self) -> str:
        if not self.fb_business_id:
            raise ConfigurationError("FB_BUSINESS_ID is required in live mode")
        return self.fb_business_id

    def require_access_token(self) -> str:
        if not self.fb_access_token:
            raise ConfigurationError("FB_ACCESS_TOKEN is required in live mode")
        return self.fb_access_token


@lru_cache
def get_settings() -> Settings:
    return Settings()
