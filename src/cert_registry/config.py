"""
Configuration — typed, validated settings loaded from environment/.env.

Uses pydantic-settings to:
  - Load from environment variables (12-factor app)
  - Fall back to .env file
  - Validate types and constraints at startup
  - Keep secrets out of source control

Architecture: PurgeSettings (storage, retention, logging) is the BaseSettings root;
AppSettings extends it with auth and server settings for the API process. Sub-settings
are plain BaseModel classes populated via env_nested_delimiter="__", so the env
var AUTH__USERINFO_URL maps to auth.userinfo_url, DATABASE__HOST maps to database.host, etc.
"""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path

from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cert_registry.domain.privileges import CertificatePrivilege

# Resolve the .env file relative to the project root (two levels above this file),
# so settings load correctly regardless of the working directory at runtime.
_ENV_FILE = Path(__file__).parent.parent.parent / ".env"


class AuthSettings(BaseModel):
    """
    Caller authentication through the identity provider.

    Tokens are validated by the provider's OpenID Connect userinfo endpoint;
    the roles found in the claims are mapped to privileges here.

      AUTH__ROLE_PRIVILEGES='{"hub-operator": ["CERTIFICATES_VIEW_CERTIFICATES"]}'
    """

    userinfo_url: str = Field(description="OpenID Connect userinfo endpoint URL")
    username_claim: str = Field(default="preferred_username", description="Claim holding the username")
    roles_claim: str = Field(default="roles", description="Claim (dotted path) holding the role list")
    role_privileges: dict[str, list[str]] = Field(
        default_factory=dict,
        description="Role name → privileges granted to holders of that role",
    )

    @field_validator("role_privileges")
    @classmethod
    def validate_privileges(cls, value: dict[str, list[str]]) -> dict[str, list[str]]:
        """Reject privilege names the registry does not know."""
        known = {p.value for p in CertificatePrivilege}
        unknown = sorted({p for privileges in value.values() for p in privileges} - known)
        if unknown:
            raise ValueError(f"Unknown privileges: {', '.join(unknown)}")
        return value


class DatabaseSettings(BaseModel):
    """
    PostgreSQL connection configuration.

    Accepts either a full connection string via DATABASE__DSN or individual
    components (DATABASE__HOST, DATABASE__PORT, DATABASE__NAME, DATABASE__USERNAME,
    DATABASE__PASSWORD). DATABASE__DSN takes priority when both are provided.
    """

    # Option 1: full connection string (takes priority)
    dsn: SecretStr | None = Field(
        default=None,
        description="Full PostgreSQL connection string (overrides individual fields)",
    )

    # Option 2: individual components
    host: str | None = Field(default=None, description="PostgreSQL host")
    port: int = Field(default=5432, ge=1, le=65535, description="PostgreSQL port")
    name: str | None = Field(default=None, description="PostgreSQL database name")
    username: str | None = Field(default=None, description="PostgreSQL username")
    password: SecretStr | None = Field(default=None, description="PostgreSQL password")

    @model_validator(mode="after")
    def resolve_dsn(self) -> DatabaseSettings:
        """
        Ensure `dsn` is always populated.

        Raises ValueError at startup if neither a full DSN nor all required
        components are provided.
        """
        if self.dsn is not None:
            return self
        missing = [f for f, v in [
            ("DATABASE__HOST", self.host),
            ("DATABASE__NAME", self.name),
            ("DATABASE__USERNAME", self.username),
            ("DATABASE__PASSWORD", self.password),
        ] if not v]
        if missing:
            raise ValueError(
                "Set DATABASE__DSN or provide all of: "
                + ", ".join(missing)
            )
        dsn_value = (
            f"postgresql://{self.username}:{self.password.get_secret_value()}"  # type: ignore[union-attr]
            f"@{self.host}:{self.port}/{self.name}"
        )
        object.__setattr__(self, "dsn", SecretStr(dsn_value))
        return self

    def get_dsn(self) -> str:
        assert self.dsn is not None  # guaranteed by resolve_dsn validator
        return self.dsn.get_secret_value()


class ServerSettings(BaseModel):
    """HTTP listener of the certificate API."""

    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=3220, ge=1, le=65535, description="Bind port")


class RetentionSettings(BaseModel):
    """How long rejected requests are kept before `cert-registry-purge` removes them."""

    rejected_days: int = Field(default=90, ge=1)

    @property
    def rejected(self) -> timedelta:
        return timedelta(days=self.rejected_days)


class PurgeSettings(BaseSettings):
    """
    Settings of the `cert-registry-purge` job: storage, retention and logging only.

    Load order (highest priority first):
      1. Environment variables (Kubernetes ConfigMap)
      2. .env file
      3. Default values
    """

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    database: DatabaseSettings
    retention: RetentionSettings = Field(default_factory=lambda: RetentionSettings())

    log_level: str = Field(default="INFO")


class AppSettings(PurgeSettings):
    """Root settings of the API server: the purge settings plus auth and the HTTP listener."""

    auth: AuthSettings
    server: ServerSettings = Field(default_factory=lambda: ServerSettings())

    http_timeout_seconds: int = Field(default=10, ge=1)
