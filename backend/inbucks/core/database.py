"""
Настройка подключения к базе данных.
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

# Базовый класс для моделей
Base = declarative_base()


def build_engine(database_url: str) -> Engine:
    """Создаёт движок БД по URL"""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False  # Только для SQLite
    return create_engine(database_url, connect_args=connect_args)


def build_session_factory(engine: Engine) -> sessionmaker:
    """
    Фабрика сессий БД.

    expire_on_commit=False - объекты можно читать после commit,
    хранилище конвертирует их в записи уже после закрытия сессии.
    """
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def create_tables(engine: Engine) -> None:
    # Импорт регистрирует модели в Base.metadata
    from inbucks.core import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def drop_tables(engine: Engine) -> None:
    from inbucks.core import models  # noqa: F401

    Base.metadata.drop_all(bind=engine)
