"""
Интерфейс хранилища.

Две реализации: MemoryStorage (dev/тесты) и SqlStorage (SQLAlchemy).
Выбирается один раз при старте через build_storage().
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Protocol

from inbucks.core.records import (
    MessageRecord,
    OfferRecord,
    SessionRecord,
    TransactionRecord,
    UserRecord,
)


class Storage(Protocol):
    """Всё, что приложение умеет делать с данными"""

    name: str

    def init_schema(self) -> None: ...

    def dispose(self) -> None: ...

    # ----- пользователи -----
    def create_user(
        self,
        *,
        username: Optional[str],
        email: Optional[str],
        password_hash: Optional[str],
        email_verified: bool = False,
        stripe_customer_id: Optional[str] = None,
    ) -> UserRecord: ...

    def get_user(self, user_id: int) -> Optional[UserRecord]: ...

    def get_user_by_identifier(self, identifier: str) -> Optional[UserRecord]: ...

    def list_users(self) -> List[UserRecord]: ...

    # ----- офферы -----
    def list_offers(self) -> List[OfferRecord]: ...

    def get_offer(self, offer_id: int) -> Optional[OfferRecord]: ...

    def create_offer(
        self,
        *,
        user_id: int,
        title: str,
        description: str,
        price: Decimal,
        response_time_hours: int,
    ) -> OfferRecord: ...

    # ----- транзакции -----
    def list_user_transactions(self, user_id: int) -> List[TransactionRecord]: ...

    def create_transaction(
        self,
        *,
        offer_id: int,
        buyer_id: int,
        seller_id: int,
        amount: Decimal,
        status: str = "pending",
    ) -> TransactionRecord: ...

    # ----- сообщения -----
    def list_user_messages(self, user_id: int) -> List[MessageRecord]: ...

    def create_message(
        self,
        *,
        sender_id: int,
        recipient_id: int,
        content: str,
        response_time_hours: int,
        amount: Decimal,
        status: str = "pending",
    ) -> MessageRecord: ...

    # ----- сессии -----
    def create_session(self, *, token: str, user_id: int, expires_at: datetime) -> SessionRecord: ...

    def get_session(self, token: str) -> Optional[SessionRecord]: ...

    def delete_session(self, token: str) -> None: ...

    def purge_expired_sessions(self, now: datetime) -> int: ...
