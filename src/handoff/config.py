from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from src.handoff.domain.errors import ConfigMissing


@dataclass
class Settings:
    """Centralized application settings.

    This keeps environment-variable handling in one place so other modules can
    depend on strongly-typed attributes instead of calling os.getenv
    directly.
    """

    # Application namespace used as a component of every collection path.
    app_id: str = os.getenv("HANDOFF_APP_ID", "default-app-id")

    # Record store backend selection: "memory" (default) or "sql".
    store_backend: str = os.getenv("HANDOFF_STORE_BACKEND", "memory")

    # Database configuration for the SQL-backed record store.
    database_url: Optional[str] = os.getenv("DATABASE_URL")

    # When ENABLE_API_AUTH=true, every request must carry a session token
    # issued by one of the sign-in endpoints.
    enable_api_auth: bool = os.getenv("ENABLE_API_AUTH", "false").lower() == "true"
    # Comma-separated list of custom sign-in tokens accepted by
    # POST /auth/token.
    auth_tokens: Optional[str] = os.getenv("AUTH_TOKENS")

    # CORS configuration: comma-separated origins (e.g. "https://ward.example.org").
    # Default is "*" (allow all) which is acceptable for local development but
    # should be tightened in production.
    cors_allow_origins: str = os.getenv("CORS_ALLOW_ORIGINS", "*")


settings = Settings()


@dataclass
class BackendConfig:
    """Explicit record-store configuration handed to the bootstrap code.

    Built once at startup from :data:`settings` and injected into
    ``init_repositories`` rather than read from globals deeper down.
    """

    app_id: str
    store_backend: str
    database_url: Optional[str] = None

    @classmethod
    def from_settings(cls) -> "BackendConfig":
        return cls(
            app_id=settings.app_id,
            store_backend=settings.store_backend,
            database_url=settings.database_url,
        )

    def validate(self) -> None:
        if not self.app_id:
            raise ConfigMissing("HANDOFF_APP_ID is empty")
        if self.store_backend not in {"memory", "sql"}:
            raise ConfigMissing(f"Unknown record store backend {self.store_backend!r}")
        if self.store_backend == "sql" and not self.database_url:
            raise ConfigMissing("HANDOFF_STORE_BACKEND=sql requires DATABASE_URL")
