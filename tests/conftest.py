"""
Общие фикстуры: временная SQLite-база, сессия и HTTP-клиент.

Переменные окружения выставляются до импорта приложения,
т.к. движок и ключи читаются при импорте модулей.
"""
import os
import shutil
import tempfile

import pytest

_db_dir = tempfile.mkdtemp(prefix="authors-api-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_db_dir, 'authors.db')}"
os.environ["INTERNAL_API_KEY"] = "test-internal-key"

from fastapi.testclient import TestClient  # noqa: E402

from authors_api.database import Base, SessionLocal, engine  # noqa: E402
from authors_api.main import app  # noqa: E402

INTERNAL_HEADERS = {"X-Internal-API-Key": "test-internal-key"}


@pytest.fixture(scope="session", autouse=True)
def database_directory():
    yield _db_dir
    engine.dispose()
    shutil.rmtree(_db_dir, ignore_errors=True)


@pytest.fixture(autouse=True)
def database():
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def internal_headers():
    return dict(INTERNAL_HEADERS)


@pytest.fixture
def create_author(client):
    """Создание автора через API, возвращает тело ответа."""

    def _create(first_name="Ada", last_name="Lovelace", email="ada@example.com", headers=None):
        response = client.post(
            "/api/v1/authors",
            json={"first_name": first_name, "last_name": last_name, "email": email},
            headers=headers,
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _create
