"""Application configuration using pydantic settings with structured sections."""

from decimal import Decimal
from functools import lru_cache
from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False


class DatabaseSettings(BaseModel):
    url: str = Field(default="sqlite+aiosqlite:///./exchange.db", alias="url")
    echo: bool = False
    pool_size: Optional[int] = None
    max_overflow: Optional[int] = None
    # seconds a writer waits on a locked sqlite database before giving up
    busy_timeout: float = 5.0


class SecuritySettings(BaseModel):
    secret_key: str = Field(default="change-me", min_length=8)
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24


class WebSocketSettings(BaseModel):
    queue_size: int = 256
    heartbeat_interval: int = 30


class ExchangeSettings(BaseModel):
    order_id_prefix: str = "DGL"
    default_min_amount: Decimal = Decimal("5")
    default_max_amount: Decimal = Decimal("10000")
    max_retries: int = 3
    retry_backoff_seconds: float = 0.05
    # 0 disables automatic completion of processing orders
    auto_complete_minutes: float = 0


class RestrictionSettings(BaseModel):
    cancellation_threshold: int = 3
    window_hours: int = 24
    cooldown_hours: int = 24


class Settings(BaseSettings):
    """Top-level application settings with nested sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "staging", "production", "test"] = "development"
    debug: bool = False
    project_name: str = "Currency Exchange Server"
    api_prefix: str = "/api"

    server: ServerSettings = ServerSettings()
    database: DatabaseSettings = DatabaseSettings()
    security: SecuritySettings = SecuritySettings()
    websocket: WebSocketSettings = WebSocketSettings()
    exchange: ExchangeSettings = ExchangeSettings()
    restrictions: RestrictionSettings = RestrictionSettings()

    @property
    def database_url(self) -> str:
        return self.database.url

    @property
    def host(self) -> str:
        return self.server.host

    @property
    def port(self) -> int:
        return self.server.port

    @property
    def secret_key(self) -> str:
        return self.security.secret_key

    @property
    def algorithm(self) -> str:
        return self.security.algorithm

    @property
    def access_token_expire_minutes(self) -> int:
        return self.security.access_token_expire_minutes


@lru_cache()
def get_settings() -> Settings:
    return Settings()
