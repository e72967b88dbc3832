from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_kubeconfig() -> str:
    return str(Path.home() / ".kube" / "config")


class Settings(BaseSettings):
    """Application configuration sourced from environment variables."""

    model_config = SettingsConfigDict(env_file=(".env",), env_file_encoding="utf-8", extra="ignore", populate_by_name=True)

    app_env: Literal["development", "production", "test"] = "development"
    app_name: str = "KubeDeploy API"
    api_prefix: str = "/api"
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"
    log_json: bool = False

    kube_config_path: str = Field(default_factory=_default_kubeconfig, validation_alias=AliasChoices("KUBECONFIG", "KUBE_CONFIG_PATH"))
    kube_context: str | None = None
    kube_request_timeout: float = Field(default=30.0, gt=0, description="Deadline for a single cluster API call, in seconds")

    # Unset disables authentication instead of failing startup
    database_url: str | None = None
    auth_mode: Literal["auto", "enforced", "disabled"] = "auto"
    seed_demo_users: bool = True

    jwt_secret: str = Field(default="kube-deploy-dev-secret-change-me", description="Secret key for signing JWTs")
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    jwt_expiration_hours: int = Field(default=24, description="Access token lifetime in hours")

    cors_origins: str = ""

    @field_validator("database_url")
    @classmethod
    def _normalize_database_url(cls, value: str | None) -> str | None:
        if not value or not value.strip():
            return None
        value = value.strip()
        if value.startswith("postgres://"):
            value = "postgresql+asyncpg://" + value[len("postgres://"):]
        elif value.startswith("postgresql://"):
            value = "postgresql+asyncpg://" + value[len("postgresql://"):]
        return value

    @computed_field
    @property
    def is_debug(self) -> bool:
        return self.app_env == "development"

    @property
    def allowed_origins(self) -> list[str]:
        origins = [f"http://localhost:{port}" for port in range(5173, 5179)]
        origins.append("http://localhost:3000")
        origins.extend(o.strip() for o in self.cors_origins.split(",") if o.strip())
        return origins


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]
