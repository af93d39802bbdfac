from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Core
    ENVIRONMENT: str = Field(default="production")
    DATABASE_URL: str = Field(default="sqlite:///./fleawatch.db")
    LOG_LEVEL: str = Field(default="INFO")

    # Operator/admin auth (Google OIDC ID token) for scheduler-triggered runs
    OPERATOR_AUTH_AUDIENCE: str = Field(default="")
    OPERATOR_INVOKER_SUBS: str = Field(default="")  # comma-separated
    OPERATOR_INVOKER_EMAILS: str = Field(default="")  # comma-separated

    # Chat users allowed to run a catalog sync
    ADMIN_USER_IDS: str = Field(default="")  # comma-separated

    # Watch limits and cooldown
    WATCH_COOLDOWN_MINUTES: int = Field(default=10)
    MAX_WATCHES_PER_USER: int = Field(default=25)
    MAX_WATCHES_PER_SCOPE: int = Field(default=500)
    LIST_WATCHES_LIMIT: int = Field(default=25)
    SUGGEST_LIMIT: int = Field(default=25)

    # Catalog refresh
    CATALOG_REFRESH_ENABLED: bool = Field(default=True)
    CATALOG_STALE_DAYS: int = Field(default=7)
    CATALOG_SYNC_BATCH_SIZE: int = Field(default=400)

    # Market data
    MARKET_GRAPHQL_URL: str = Field(default="https://api.tarkov.dev/graphql")
    MARKET_TIMEOUT_S: float = Field(default=20.0)
    DEBUG_PRICES: bool = Field(default=False)
    CURRENCY_SYMBOL: str = Field(default="₽")

    # Messaging
    DISCORD_BOT_TOKEN: str = Field(default="")
    DISCORD_API_BASE: str = Field(default="https://discord.com/api/v10")
    DISCORD_TIMEOUT_S: float = Field(default=20.0)


settings = Settings()
