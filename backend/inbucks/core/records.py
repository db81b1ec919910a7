"""
Записи, которые хранилище отдаёт наружу.

Оба бэкенда (память и БД) возвращают именно эти dataclass'ы,
чтобы сервисы не зависели от SQLAlchemy.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional


TRANSACTION_STATUSES = ("pending", "completed", "refunded")
MESSAGE_STATUSES = ("pending", "accepted", "completed", "expired")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite теряет tzinfo - считаем такие даты UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class UserRecord:
    id: int
    username: Optional[str]
    email: Optional[str]
    password_hash: Optional[str]
    email_verified: bool
    stripe_customer_id: Optional[str]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class OfferRecord:
    id: int
    user_id: int
    title: str
    description: str
    price: Decimal
    response_time_hours: int


@dataclass(frozen=True)
class TransactionRecord:
    id: int
    offer_id: int
    buyer_id: int
    seller_id: int
    amount: Decimal
    status: str
    created_at: datetime


@dataclass(frozen=True)
class MessageRecord:
    id: int
    sender_id: int
    recipient_id: int
    content: str
    response_time_hours: int
    amount: Decimal
    status: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class SessionRecord:
    token: str
    user_id: int
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or utcnow()
        return as_utc(self.expires_at) <= now
