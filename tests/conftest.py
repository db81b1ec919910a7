import os
import tempfile

# До импорта inbucks: логи и данные во временную папку, хранилище в памяти
_TMP_DIR = tempfile.mkdtemp(prefix="inbucks-tests-")
os.environ["DATA_DIR"] = os.path.join(_TMP_DIR, "data")
os.environ["LOGS_DIR"] = os.path.join(_TMP_DIR, "logs")
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["ENVIRONMENT"] = "test"

import pytest
from fastapi.testclient import TestClient

from inbucks.main import create_app
from inbucks.storage.memory import MemoryStorage
from inbucks.storage.sql import SqlStorage

PASSWORD = "password123"


@pytest.fixture()
def storage() -> MemoryStorage:
    """Изолированное хранилище на каждый тест"""
    return MemoryStorage()


@pytest.fixture()
def app(storage):
    return create_app(storage=storage)


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture(params=["memory", "database"])
def any_storage(request, tmp_path):
    """Один и тот же контракт для обоих бэкендов"""
    if request.param == "memory":
        yield MemoryStorage()
        return
    sql_storage = SqlStorage(f"sqlite:///{tmp_path / 'test.db'}")
    sql_storage.init_schema()
    yield sql_storage
    sql_storage.dispose()


@pytest.fixture()
def register(client):
    """Регистрирует пользователя через API и возвращает ответ"""
    def _register(username="alice", password=PASSWORD, email=None):
        payload = {"username": username, "password": password}
        if email:
            payload["email"] = email
        return client.post("/api/register", json=payload)

    return _register


@pytest.fixture()
def make_client(app):
    """Ещё один клиент со своими cookie - второй пользователь"""
    clients = []

    def _make():
        c = TestClient(app)
        clients.append(c)
        return c

    yield _make
    for c in clients:
        c.close()
