"""
Pydantic модели запросов и ответов.

JSON снаружи в camelCase (responseTimeHours, buyerId, ...),
snake_case на входе тоже принимается.
"""
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from pydantic import AliasChoices, BaseModel, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

CENTS = Decimal("0.01")
# Верхняя граница столбца INTEGER в Postgres
MAX_DB_INT = 2**31 - 1


def _quantize(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True  # Позволяет создавать из записей хранилища


# ============= AUTH =============

class UserRegister(BaseModel):
    """
    Схема для регистрации пользователя.

    POST /api/register
    {
        "username": "testuser",
        "email": "user@example.com",
        "password": "password123"
    }

    Нужен хотя бы один идентификатор: username (он же "identifier") или email.
    """
    username: Optional[str] = Field(
        default=None,
        min_length=3,
        max_length=50,
        validation_alias=AliasChoices("username", "identifier"),
        description="Имя пользователя",
    )
    email: Optional[EmailStr] = Field(default=None, description="Email пользователя")
    password: str = Field(..., min_length=8, max_length=100, description="Пароль (минимум 8 символов)")

    @field_validator("username")
    @classmethod
    def strip_username(cls, value):
        if value is None:
            return value
        value = value.strip()
        if len(value) < 3:
            raise ValueError("Имя пользователя короче 3 символов")
        return value

    @field_validator("email")
    @classmethod
    def lower_email(cls, value):
        return value.lower() if value else value

    @model_validator(mode="after")
    def require_identifier(self):
        if not self.username and not self.email:
            raise ValueError("Нужен username или email")
        return self


class UserLogin(BaseModel):
    """
    Схема для входа пользователя.

    POST /api/login
    {
        "username": "testuser",   # или email, или identifier
        "password": "password123"
    }
    """
    identifier: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("identifier", "username", "email"),
        description="Username или email",
    )
    password: str = Field(..., min_length=1, description="Пароль")


class UserResponse(CamelModel):
    """
    Данные пользователя для клиента.

    ⚠️ ВАЖНО: НЕ возвращаем пароль! (даже хешированный)
    """
    id: int
    username: Optional[str] = None
    email: Optional[str] = None
    email_verified: bool = False
    stripe_customer_id: Optional[str] = None
    created_at: datetime


class StatusResponse(BaseModel):
    status: str


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime


# ============= OFFERS =============

class OfferCreate(CamelModel):
    """
    POST /api/offers
    {"title": "T", "description": "D", "price": "10.00", "responseTimeHours": "24"}
    """
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    response_time_hours: int = Field(..., ge=1, le=MAX_DB_INT)

    @field_validator("title", "description")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Поле не может быть пустым")
        return value.strip()

    @field_validator("price")
    @classmethod
    def to_cents(cls, value: Decimal) -> Decimal:
        return _quantize(value)


class OfferResponse(CamelModel):
    id: int
    user_id: int
    title: str
    description: str
    price: Decimal
    response_time_hours: int


# ============= TRANSACTIONS =============

class TransactionCreate(CamelModel):
    """POST /api/transactions {"offerId": 1}"""
    offer_id: int = Field(..., ge=1, le=MAX_DB_INT)


class TransactionResponse(CamelModel):
    id: int
    offer_id: int
    buyer_id: int
    seller_id: int
    amount: Decimal
    status: str
    created_at: datetime


# ============= MESSAGES =============

class MessageCreate(CamelModel):
    """
    Платное сообщение другому пользователю.

    POST /api/messages
    {"recipientId": 2, "content": "...", "responseTimeHours": 24, "amount": "5.00"}
    """
    recipient_id: int = Field(..., ge=1, le=MAX_DB_INT)
    content: str = Field(..., min_length=1, max_length=10000)
    response_time_hours: int = Field(..., ge=1, le=MAX_DB_INT)
    amount: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)

    @field_validator("content")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Сообщение не может быть пустым")
        return value

    @field_validator("amount")
    @classmethod
    def to_cents(cls, value: Decimal) -> Decimal:
        return _quantize(value)


class MessageResponse(CamelModel):
    id: int
    sender_id: int
    recipient_id: int
    content: str
    response_time_hours: int
    amount: Decimal
    status: str
    created_at: datetime
