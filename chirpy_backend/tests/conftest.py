from collections.abc import Generator
import os

import pytest

# Cheap bcrypt cost for tests; must be set before the auth module is imported.
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from fastapi.testclient import TestClient  # noqa: E402

from src.api.core.settings import Settings  # noqa: E402
from src.api.core.storage import JsonChirpStore  # noqa: E402
from src.api.main import create_app  # noqa: E402


@pytest.fixture()
def db_path(tmp_path) -> str:
    return str(tmp_path / "database.json")


@pytest.fixture()
def store(db_path) -> JsonChirpStore:
    return JsonChirpStore(db_path)


@pytest.fixture()
def settings(tmp_path, db_path) -> Settings:
    static_dir = tmp_path / "static"
    static_dir.mkdir()
    (static_dir / "index.html").write_text("<html><body>Chirpy</body></html>", encoding="utf-8")
    return Settings(
        jwt_secret="test-secret",
        database_path=db_path,
        static_dir=str(static_dir),
        log_level="WARNING",
    )


@pytest.fixture()
def client(settings) -> Generator[TestClient, None, None]:
    with TestClient(create_app(settings)) as test_client:
        yield test_client
