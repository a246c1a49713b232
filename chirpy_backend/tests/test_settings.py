from src.api.core.settings import get_settings


def test_defaults(monkeypatch):
    for name in ("DEBUG", "DATABASE_PATH", "JWT_SECRET", "CORS_ALLOW_ORIGINS", "STORE_ATOMIC_WRITES"):
        monkeypatch.delenv(name, raising=False)
    settings = get_settings()
    assert settings.database_path == "/tmp/database.json"
    assert settings.debug is False
    assert settings.cors_allow_origins == ("*",)
    assert settings.access_token_exp_seconds == 3600
    assert settings.refresh_token_exp_seconds == 60 * 24 * 60 * 60
    assert settings.store_atomic_writes is False


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("DATABASE_PATH", "/data/chirpy.json")
    monkeypatch.setenv("JWT_SECRET", "s3cret")
    monkeypatch.setenv("CORS_ALLOW_ORIGINS", "http://a.test, http://b.test")
    monkeypatch.setenv("ENFORCE_UNIQUE_EMAIL_ON_UPDATE", "yes")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.delenv("DEBUG", raising=False)
    settings = get_settings()
    assert settings.database_path == "/data/chirpy.json"
    assert settings.jwt_secret == "s3cret"
    assert settings.cors_allow_origins == ("http://a.test", "http://b.test")
    assert settings.enforce_unique_email_on_update is True
    assert settings.log_level == "DEBUG"


def test_debug_uses_debug_database(monkeypatch):
    monkeypatch.setenv("DEBUG", "true")
    monkeypatch.setenv("DEBUG_DATABASE_PATH", "/tmp/dbg.json")
    assert get_settings().database_path == "/tmp/dbg.json"
