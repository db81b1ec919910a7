"""
Регистрация и проверка учётных данных.
"""
import logging
from typing import Optional

from inbucks.core.records import UserRecord
from inbucks.core.security import hash_password, verify_password
from inbucks.exceptions import DuplicateIdentifier, InvalidCredentials
from inbucks.storage.base import Storage

logger = logging.getLogger(__name__)


def register_user(storage: Storage, *, username: Optional[str], email: Optional[str], password: str) -> UserRecord:
    """Проверяет уникальность, хеширует пароль и сохраняет пользователя"""
    for value in (username, email):
        if value and storage.get_user_by_identifier(value):
            logger.warning("⚠️ Идентификатор уже занят: %s", value)
            raise DuplicateIdentifier("Username или email уже заняты")

    return storage.create_user(
        username=username,
        email=email,
        password_hash=hash_password(password),
    )


def authenticate(storage: Storage, identifier: str, password: str) -> UserRecord:
    """
    Возвращает пользователя или кидает InvalidCredentials.

    Без пароля в БД (внешний аккаунт) войти по паролю нельзя.
    """
    user = storage.get_user_by_identifier(identifier.strip())
    if user is None or not user.password_hash:
        raise InvalidCredentials()
    if not verify_password(password, user.password_hash):
        raise InvalidCredentials()
    return user
