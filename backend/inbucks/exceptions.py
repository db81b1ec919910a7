"""
Ошибки приложения.

Каждая ошибка знает свой HTTP статус - обработчик в main.py
превращает её в ответ {"detail": "..."}.
"""
from fastapi import status


class InBucksError(Exception):
    """Базовая ошибка inBucks"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Внутренняя ошибка сервера"

    def __init__(self, detail: str = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(InBucksError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Некорректные данные"


class DuplicateIdentifier(InBucksError):
    """Username или email уже заняты"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Пользователь уже существует"


class InvalidCredentials(InBucksError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Неверный логин или пароль"


class Unauthenticated(InBucksError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Требуется авторизация"


class NotFound(InBucksError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Не найдено"


class SessionError(InBucksError):
    """Не удалось создать сессию после успешной регистрации/входа"""
    default_detail = "Не удалось создать сессию"


class StorageError(InBucksError):
    """Хранилище недоступно. Детали пишем в лог, клиенту - общий текст."""
    default_detail = "Внутренняя ошибка сервера"
