"""
Dependencies для endpoint'ов.

Хранилище и менеджер сессий живут в app.state (см. create_app),
здесь только достаём их из запроса.

Все dependencies async: обращения к хранилищу идут в event loop,
как и в самих обработчиках, без threadpool.

Использование:
    @router.get("/something")
    async def handler(user: UserRecord = Depends(require_user)):
        ...
"""
from typing import Optional

from fastapi import Depends, Request

from inbucks.core.records import UserRecord
from inbucks.core.sessions import SessionManager
from inbucks.exceptions import Unauthenticated
from inbucks.storage.base import Storage


async def get_storage(request: Request) -> Storage:
    return request.app.state.storage


async def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.sessions


async def get_session_cookie(request: Request, sessions: SessionManager = Depends(get_session_manager)) -> Optional[str]:
    return request.cookies.get(sessions.cookie_name)


async def current_user_optional(
    cookie: Optional[str] = Depends(get_session_cookie),
    sessions: SessionManager = Depends(get_session_manager),
) -> Optional[UserRecord]:
    return sessions.resolve(cookie)


async def require_user(user: Optional[UserRecord] = Depends(current_user_optional)) -> UserRecord:
    if user is None:
        raise Unauthenticated()
    return user
