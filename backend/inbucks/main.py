"""
inBucks API - главный файл приложения.
"""
import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from inbucks import config
from inbucks.core.logging_config import setup_logging
from inbucks.core.records import utcnow
from inbucks.core.sessions import SessionManager
from inbucks.exceptions import InBucksError
from inbucks.routes import auth, marketplace
from inbucks.schemas import HealthResponse
from inbucks.storage.base import Storage
from inbucks.storage.factory import build_storage

# ===== НАСТРОЙКА ЛОГИРОВАНИЯ =====
setup_logging()
logger = logging.getLogger(__name__)


# ============= LIFESPAN EVENT =============

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Код ДО yield - выполняется при старте (startup).
    Код ПОСЛЕ yield - выполняется при остановке (shutdown).
    """
    # ===== STARTUP =====
    logger.info("inBucks API запускается (%s)...", config.ENVIRONMENT)

    app.state.storage.init_schema()
    app.state.sessions.purge_expired()

    logger.info(f"Документация: http://{config.API_HOST}:{config.API_PORT}/docs")
    logger.info("API готов к работе!")

    yield  # Приложение работает

    # ===== SHUTDOWN =====
    logger.info("Остановка приложения...")
    app.state.storage.dispose()
    logger.info("Приложение остановлено")


# ============= ОБРАБОТКА ОШИБОК =============

async def app_error_handler(request: Request, exc: InBucksError):
    if exc.status_code >= 500:
        logger.error("❌ %s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.detail)
    else:
        logger.warning("⚠️ %s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Ошибки схемы -> 400 с сообщением по каждому полю"""
    errors = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        errors.append({"field": ".".join(loc) or "body", "message": error.get("msg", "")})
    logger.warning("⚠️ Невалидные данные %s %s: %s", request.method, request.url.path, errors)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": errors})


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("Необработанная ошибка %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Внутренняя ошибка сервера"},
    )


# ============= СОЗДАНИЕ ПРИЛОЖЕНИЯ =============

def create_app(storage: Optional[Storage] = None, sessions: Optional[SessionManager] = None) -> FastAPI:
    """
    Собирает приложение.

    Хранилище можно передать снаружи (тесты), иначе выбирается
    по STORAGE_BACKEND.
    """
    app = FastAPI(
        title="inBucks API",
        description="Marketplace for paid email responses",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.storage = storage or build_storage()
    app.state.sessions = sessions or SessionManager(app.state.storage)

    # ============= CORS =============
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        if request.url.path.startswith("/api"):
            duration_ms = (time.perf_counter() - start) * 1000
            logger.info("%s %s %s in %.0fms", request.method, request.url.path, response.status_code, duration_ms)
        return response

    app.add_exception_handler(InBucksError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # ============= HEALTH CHECK =============

    @app.get("/api/health", response_model=HealthResponse, tags=["Health"])
    async def health():
        """Проверка что API работает"""
        logger.debug("Health check вызван")
        return HealthResponse(status="ok", timestamp=utcnow())

    app.include_router(auth.router)
    app.include_router(marketplace.router)

    return app


app = create_app()
