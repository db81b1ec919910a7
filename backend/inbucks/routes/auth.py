"""
Auth endpoints: регистрация, вход, выход, текущий пользователь.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Response, status

from inbucks.core.records import UserRecord
from inbucks.core.sessions import SessionManager
from inbucks.dependencies import get_session_cookie, get_session_manager, get_storage, require_user
from inbucks.schemas import StatusResponse, UserLogin, UserRegister, UserResponse
from inbucks.services.auth_service import authenticate, register_user
from inbucks.storage.base import Storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Authentication"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    response: Response,
    storage: Storage = Depends(get_storage),
    sessions: SessionManager = Depends(get_session_manager),
):
    """Регистрация нового пользователя + сразу вход"""
    logger.info("🔄 Попытка регистрации: username=%s email=%s", user_data.username, user_data.email)

    user = register_user(
        storage,
        username=user_data.username,
        email=user_data.email,
        password=user_data.password,
    )

    cookie_value, _ = sessions.create(user.id)
    sessions.set_cookie(response, cookie_value)

    logger.info("Пользователь зарегистрирован: id=%s", user.id)
    return user


@router.post("/login", response_model=UserResponse)
async def login(
    credentials: UserLogin,
    response: Response,
    storage: Storage = Depends(get_storage),
    sessions: SessionManager = Depends(get_session_manager),
):
    """Вход пользователя"""
    logger.info("🔄 Попытка входа: %s", credentials.identifier)

    user = authenticate(storage, credentials.identifier, credentials.password)

    cookie_value, _ = sessions.create(user.id)
    sessions.set_cookie(response, cookie_value)

    logger.info("Пользователь вошёл: id=%s", user.id)
    return user


@router.post("/logout", response_model=StatusResponse)
async def logout(
    response: Response,
    cookie: Optional[str] = Depends(get_session_cookie),
    sessions: SessionManager = Depends(get_session_manager),
):
    """Выход. Без сессии тоже 200"""
    sessions.destroy(cookie)
    sessions.clear_cookie(response)
    logger.info("Выход выполнен")
    return StatusResponse(status="ok")


@router.get("/user", response_model=UserResponse)
async def current_user(user: UserRecord = Depends(require_user)):
    """Кто я"""
    logger.debug("Запрос текущего пользователя: id=%s", user.id)
    return user
