import logging

from inbucks import config
from inbucks.storage.base import Storage
from inbucks.storage.memory import MemoryStorage
from inbucks.storage.sql import SqlStorage

logger = logging.getLogger(__name__)

BACKENDS = ("database", "memory")


def build_storage(backend: str = None, database_url: str = None) -> Storage:
    """Выбирает хранилище при старте процесса"""
    backend = (backend or config.STORAGE_BACKEND).lower()
    if backend not in BACKENDS:
        raise ValueError(f"Неизвестный STORAGE_BACKEND: {backend!r}, ожидается один из {BACKENDS}")

    logger.info("Хранилище: %s", backend)
    if backend == "memory":
        return MemoryStorage()
    return SqlStorage(database_url or config.DATABASE_URL)
