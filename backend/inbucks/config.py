"""
Конфигурация бэкенда inBucks.
"""

from pathlib import Path
from dotenv import load_dotenv
import os

load_dotenv()

# Корневая директория проекта и базовые настройки
BASE_DIR = Path(__file__).parent.parent  # backend/
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
IS_PRODUCTION = ENVIRONMENT == "production"


# ============= DATA =============
DATA_DIR = Path(os.getenv("DATA_DIR", str(BASE_DIR / "data")))
LOGS_DIR = Path(os.getenv("LOGS_DIR", str(BASE_DIR / "logs")))

DATA_DIR.mkdir(parents=True, exist_ok=True)
LOGS_DIR.mkdir(parents=True, exist_ok=True)

DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{str(DATA_DIR / 'inbucks.db')}")

# "database" - SQLAlchemy, "memory" - словари в памяти процесса (dev/тесты)
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "database").lower()


# ============= БЕЗОПАСНОСТЬ =============
SECRET_KEY = os.getenv("SECRET_KEY", "development_secret")
ALGORITHM = os.getenv("ALGORITHM", "HS256")

SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "inbucks.sid")
SESSION_TTL_HOURS = int(os.getenv("SESSION_TTL_HOURS", "24"))

# Параметры scrypt (совместимы с хешами, которые уже лежат в БД)
SCRYPT_N = 16384
SCRYPT_R = 8
SCRYPT_P = 1
SCRYPT_KEY_LENGTH = 64
SALT_BYTES = 16


# ============= API =============
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "5000"))
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
