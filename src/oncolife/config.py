"""
Oncolife Configuration Module

Centralized configuration management using Pydantic Settings.
Supports environment variables and .env files.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class OncolifeSettings(BaseSettings):
    """Main application settings."""
    
    model_config = SettingsConfigDict(
        env_prefix="ONCOLIFE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
    
    # Application
    env: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: str = "INFO"
    json_logs: bool = True
    
    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_reload: bool = True
    
    # Assistant persona shown in the greeting
    assistant_name: str = "Ruby"


class EngineSettings(BaseSettings):
    """Conversation engine settings."""
    
    model_config = SettingsConfigDict(
        env_prefix="ENGINE_",
        env_file=".env",
        extra="ignore",
    )
    
    session_backend: Literal["memory", "redis"] = "memory"
    persistence_backend: Literal["memory", "postgres"] = "memory"
    session_ttl_seconds: int = 24 * 60 * 60
    session_terminal_ttl_seconds: int = 15 * 60
    session_lock_timeout: float = 30.0
    
    # Gateway writes: attempts = retries + 1
    persistence_retries: int = 2
    persistence_retry_delay: float = 0.2


class PostgresSettings(BaseSettings):
    """PostgreSQL settings."""
    
    model_config = SettingsConfigDict(
        env_prefix="POSTGRES_",
        env_file=".env",
        extra="ignore",
    )
    
    host: str = "localhost"
    port: int = 5432
    user: str = "oncolife"
    password: SecretStr = Field(default=SecretStr("oncolife_dev_password"))
    database: str = "oncolife"
    min_pool_size: int = 2
    max_pool_size: int = 10
    
    @property
    def connection_url(self) -> str:
        """Get the PostgreSQL connection URL."""
        pwd = self.password.get_secret_value()
        return f"postgresql://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"


class RedisSettings(BaseSettings):
    """Redis session store settings."""
    
    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        env_file=".env",
        extra="ignore",
    )
    
    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: SecretStr | None = None
    key_prefix: str = "oncolife:session:"
    
    @property
    def connection_url(self) -> str:
        """Get the Redis connection URL."""
        if self.password:
            pwd = self.password.get_secret_value()
            return f"redis://:{pwd}@{self.host}:{self.port}/{self.db}"
        return f"redis://{self.host}:{self.port}/{self.db}"


class Settings:
    """
    Aggregated settings container.
    
    Usage:
        from oncolife.config import get_settings
        settings = get_settings()
        print(settings.app.api_port)
        print(settings.engine.session_backend)
    """
    
    def __init__(self):
        self.app = OncolifeSettings()
        self.engine = EngineSettings()
        self.postgres = PostgresSettings()
        self.redis = RedisSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    
    Returns:
        Settings: The application settings
    """
    return Settings()
