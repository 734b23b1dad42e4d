"""Value types describing how a tenant's data source is reached."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy.engine import URL


@dataclass(frozen=True)
class DatabaseCredentials:
    username: str
    password: str

    @classmethod
    def parse(cls, value: str) -> "DatabaseCredentials":
        """Parse ``username:password``. The password may itself contain colons."""
        username, sep, password = value.partition(":")
        if not sep or not username:
            raise ValueError("Credentials must have the form username:password")
        return cls(username=username, password=password)

    def serialize(self) -> str:
        return f"{self.username}:{self.password}"


@dataclass(frozen=True)
class PoolConfig:
    pool_size: int
    max_overflow: int
    pool_timeout: float = 30.0
    ssl_mode: str = "prefer"

    @classmethod
    def from_mapping(cls, raw: dict[str, Any] | None, defaults: "PoolConfig") -> "PoolConfig":
        """Overlay a tenant's ``connection_pool_config`` document on defaults.

        Unknown keys are ignored.
        """
        raw = raw or {}
        return cls(
            pool_size=int(raw.get("pool_size", defaults.pool_size)),
            max_overflow=int(raw.get("max_overflow", defaults.max_overflow)),
            pool_timeout=float(raw.get("pool_timeout", defaults.pool_timeout)),
            ssl_mode=str(raw.get("ssl_mode", defaults.ssl_mode)),
        )

    def as_dict(self) -> dict[str, Any]:
        return {
            "pool_size": self.pool_size,
            "max_overflow": self.max_overflow,
            "pool_timeout": self.pool_timeout,
            "ssl_mode": self.ssl_mode,
        }


@dataclass(frozen=True)
class TenantConnectionConfig:
    """Decrypted connection settings for one tenant.

    Credentials replace whatever user and password ``url`` carries when an
    engine is built. Credentials of None mean the URL is used as configured,
    which is the case for the shared data source.
    """

    tenant_id: UUID
    url: URL
    tenant_id_in_data_source: UUID
    pool_config: PoolConfig
    service_credentials: DatabaseCredentials | None = None
    restricted_credentials: DatabaseCredentials | None = None
    region: str | None = None
    is_shared: bool = False

    def credentials_for(self, use_service_role: bool) -> DatabaseCredentials | None:
        if use_service_role:
            return self.service_credentials
        return self.restricted_credentials or self.service_credentials


@dataclass
class ConnectionDiagnostics:
    can_connect: bool = False
    can_query: bool = False
    tenant_filter_ok: bool = False


@dataclass
class ConnectionTestResult:
    success: bool
    response_time_ms: float
    error: str | None = None
    diagnostics: ConnectionDiagnostics = field(default_factory=ConnectionDiagnostics)


@dataclass(frozen=True)
class ConnectionInfo:
    tenant_id: UUID
    url: str  # password masked
    region: str | None
    pool_config: dict[str, Any]
    tenant_id_in_data_source: UUID
    is_shared: bool
    is_cached: bool
    cache_expiry: datetime | None


@dataclass(frozen=True)
class CacheStats:
    config_cache_size: int
    client_cache_size: int
    engine_count: int
