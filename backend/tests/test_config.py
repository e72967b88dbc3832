from __future__ import annotations

import pytest

from kubedeploy.config import Settings


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("postgres://u:p@db:5432/kube", "postgresql+asyncpg://u:p@db:5432/kube"),
        ("postgresql://u:p@db/kube", "postgresql+asyncpg://u:p@db/kube"),
        ("sqlite+aiosqlite:///./users.db", "sqlite+aiosqlite:///./users.db"),
        ("   ", None),
        ("", None),
    ],
)
def test_database_url_normalization(raw: str, expected: str | None) -> None:
    assert Settings(database_url=raw).database_url == expected


def test_kubeconfig_env_var(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KUBECONFIG", "/etc/kube/admin.conf")

    assert Settings().kube_config_path == "/etc/kube/admin.conf"


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("KUBECONFIG", "KUBE_CONFIG_PATH", "DATABASE_URL", "PORT", "AUTH_MODE"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings()

    assert settings.port == 8080
    assert settings.api_prefix == "/api"
    assert settings.kube_request_timeout == 30.0
    assert settings.kube_config_path.endswith(".kube/config")
    assert settings.database_url is None
    assert settings.auth_mode == "auto"


def test_allowed_origins_include_extra_origins() -> None:
    settings = Settings(cors_origins="https://deploy.example.com, https://ops.example.com")

    assert "http://localhost:5173" in settings.allowed_origins
    assert settings.allowed_origins[-2:] == ["https://deploy.example.com", "https://ops.example.com"]
