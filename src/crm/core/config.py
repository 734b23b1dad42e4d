from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    app_name: str = "Tenant CRM"
    app_env: str = "development"  # development, testing, production
    debug: bool = False

    # Security
    log_user_emails: bool = False  # Set to False in production for GDPR compliance

    # Application database (tenant registry, users, memberships)
    database_url: str
    database_pool_size: int = 5
    database_max_overflow: int = 10
    database_ssl_mode: str = "prefer"  # disable, prefer, require, verify-ca, verify-full

    # Shared data source used by tenants without a dedicated one
    data_database_url: str | None = None

    # Data source routing
    encryption_key: str | None = None  # 64 hex chars, AES-256 key for stored credentials
    data_source_config_ttl_seconds: int = 300
    data_source_client_ttl_seconds: int = 3600
    data_source_cleanup_interval_seconds: int = 600
    data_source_pool_size: int = 5
    data_source_max_overflow: int = 5

    # Auth
    jwt_secret_key: str
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    argon2_time_cost: int = 3
    argon2_memory_cost: int = 65536
    argon2_parallelism: int = 1
    login_rate_limit: str = "5/minute"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Metrics
    metrics_api_key: str | None = None  # If set, /metrics requires this key

    # Redis (optional - app works without it)
    redis_url: str | None = None  # e.g., "redis://localhost:6379/0"
    redis_pool_size: int = 10

    @field_validator("jwt_secret_key")
    @classmethod
    def validate_jwt_secret(cls, v: str) -> str:
        if v == "change-this-to-a-secure-random-string":
            raise ValueError(
                "JWT_SECRET_KEY must be changed from default value. "
                "Generate a secure secret with: openssl rand -hex 32"
            )
        if len(v) < 32:
            raise ValueError("JWT_SECRET_KEY must be at least 32 characters")
        return v

    @field_validator("cors_origins")
    @classmethod
    def validate_cors_origins(cls, v: list[str]) -> list[str]:
        """Validate CORS origins - reject wildcards when credentials are used."""
        for origin in v:
            if origin == "*":
                raise ValueError(
                    "CORS wildcard '*' is not allowed when allow_credentials=True. "
                    "Specify explicit origins instead."
                )
        return v

    @property
    def shared_data_database_url(self) -> str:
        """URL of the data source used when a tenant has none of its own."""
        return self.data_database_url or self.database_url


@lru_cache
def get_settings() -> Settings:
    return Settings()
