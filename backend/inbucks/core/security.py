"""
Функции безопасности: хеширование паролей, подпись cookie сессии.

Формат хеша пароля: "<hex ключа scrypt>.<hex соли>".
"""
import logging
import secrets
from typing import Optional

from jose import JWTError, jwt
from passlib.crypto.scrypt import scrypt
from passlib.utils import consteq

from inbucks import config

logger = logging.getLogger(__name__)

HASH_SEPARATOR = "."


def _derive_key(password: str, salt: str) -> bytes:
    """scrypt(пароль, соль) -> 64 байта"""
    return scrypt(
        password.encode("utf-8"),
        salt.encode("utf-8"),
        n=config.SCRYPT_N,
        r=config.SCRYPT_R,
        p=config.SCRYPT_P,
        keylen=config.SCRYPT_KEY_LENGTH,
    )


def hash_password(password: str) -> str:
    """Хеширует пароль со случайной 128-битной солью (пустой тоже)"""
    salt = secrets.token_hex(config.SALT_BYTES)
    derived = _derive_key(password, salt)
    return f"{derived.hex()}{HASH_SEPARATOR}{salt}"


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """
    Проверяет пароль против сохранённого хеша.

    Битый или пустой хеш - это просто False, без исключений.
    """
    if plain_password is None or not hashed_password:
        return False

    key_hex, sep, salt = hashed_password.rpartition(HASH_SEPARATOR)
    if not sep or not key_hex or not salt:
        logger.warning("Хеш пароля в неверном формате")
        return False

    try:
        stored_key = bytes.fromhex(key_hex)
    except ValueError:
        logger.warning("Хеш пароля содержит не-hex символы")
        return False

    if len(stored_key) != config.SCRYPT_KEY_LENGTH:
        logger.warning("Длина хеша пароля %d != %d", len(stored_key), config.SCRYPT_KEY_LENGTH)
        return False

    supplied_key = _derive_key(plain_password, salt)
    return consteq(stored_key, supplied_key)


def sign_session_token(session_token: str) -> str:
    """Подписывает id сессии для cookie (сам id хранится на сервере)"""
    return jwt.encode({"sid": session_token}, config.SECRET_KEY, algorithm=config.ALGORITHM)


def read_session_token(cookie_value: Optional[str]) -> Optional[str]:
    """Достаёт id сессии из подписанной cookie. Подделка/мусор -> None"""
    if not cookie_value:
        return None
    try:
        payload = jwt.decode(cookie_value, config.SECRET_KEY, algorithms=[config.ALGORITHM])
    except JWTError:
        return None
    sid = payload.get("sid")
    if not isinstance(sid, str) or not sid:
        return None
    return sid
