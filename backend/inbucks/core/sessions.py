"""
Серверные сессии.

В cookie лежит только подписанный id сессии, сама запись
(кто, до какого времени) хранится в хранилище.
"""
import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional, Tuple

from fastapi import Response

from inbucks import config
from inbucks.core.records import SessionRecord, UserRecord, utcnow
from inbucks.core.security import read_session_token, sign_session_token
from inbucks.exceptions import InBucksError, SessionError
from inbucks.storage.base import Storage

logger = logging.getLogger(__name__)


class SessionManager:
    def __init__(
        self,
        storage: Storage,
        ttl: timedelta = timedelta(hours=config.SESSION_TTL_HOURS),
        cookie_name: str = config.SESSION_COOKIE_NAME,
        secure: Optional[bool] = None,
    ):
        self.storage = storage
        self.ttl = ttl
        self.cookie_name = cookie_name
        # В проде cookie только по HTTPS
        self.secure = config.IS_PRODUCTION if secure is None else secure

    def create(self, user_id: int) -> Tuple[str, SessionRecord]:
        """Создаёт сессию и возвращает (значение для cookie, запись)"""
        token = secrets.token_urlsafe(32)
        try:
            record = self.storage.create_session(
                token=token,
                user_id=user_id,
                expires_at=utcnow() + self.ttl,
            )
        except InBucksError as e:
            logger.error("Не удалось сохранить сессию для пользователя %s: %s", user_id, e)
            raise SessionError() from e
        logger.debug("Сессия создана для пользователя %s", user_id)
        return sign_session_token(token), record

    def resolve(self, cookie_value: Optional[str], now: Optional[datetime] = None) -> Optional[UserRecord]:
        """
        Cookie -> пользователь.

        None если cookie нет, подпись не сходится, сессия истекла
        или пользователь уже не существует.
        """
        token = read_session_token(cookie_value)
        if not token:
            return None

        record = self.storage.get_session(token)
        if record is None:
            return None

        if record.is_expired(now):
            logger.info("Сессия истекла (пользователь %s)", record.user_id)
            self.storage.delete_session(token)
            return None

        user = self.storage.get_user(record.user_id)
        if user is None:
            logger.warning("⚠️ Сессия ссылается на несуществующего пользователя %s", record.user_id)
            self.storage.delete_session(token)
            return None
        return user

    def destroy(self, cookie_value: Optional[str]) -> None:
        """Удаляет сессию. Нет сессии - тоже нормально"""
        token = read_session_token(cookie_value)
        if token:
            self.storage.delete_session(token)

    def purge_expired(self) -> int:
        removed = self.storage.purge_expired_sessions(utcnow())
        if removed:
            logger.info("Удалено истёкших сессий: %d", removed)
        return removed

    # ----- cookie -----

    def set_cookie(self, response: Response, cookie_value: str) -> None:
        response.set_cookie(
            key=self.cookie_name,
            value=cookie_value,
            max_age=int(self.ttl.total_seconds()),
            httponly=True,
            samesite="lax",
            secure=self.secure,
            path="/",
        )

    def clear_cookie(self, response: Response) -> None:
        response.delete_cookie(
            key=self.cookie_name,
            httponly=True,
            samesite="lax",
            secure=self.secure,
            path="/",
        )
