"""
Хранилище в памяти процесса.

Все данные живут в словарях экземпляра - каждый экземпляр изолирован.
Без блокировок: рассчитано на один event loop.
"""
import itertools
import logging
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from inbucks.core.records import (
    MessageRecord,
    OfferRecord,
    SessionRecord,
    TransactionRecord,
    UserRecord,
    as_utc,
    utcnow,
)
from inbucks.exceptions import DuplicateIdentifier

logger = logging.getLogger(__name__)


class MemoryStorage:
    name = "memory"

    def __init__(self):
        self._users: Dict[int, UserRecord] = {}
        self._offers: Dict[int, OfferRecord] = {}
        self._transactions: Dict[int, TransactionRecord] = {}
        self._messages: Dict[int, MessageRecord] = {}
        self._sessions: Dict[str, SessionRecord] = {}

        self._user_ids = itertools.count(1)
        self._offer_ids = itertools.count(1)
        self._transaction_ids = itertools.count(1)
        self._message_ids = itertools.count(1)

    def init_schema(self) -> None:
        logger.info("Хранилище в памяти готово")

    def dispose(self) -> None:
        pass

    # ============= ПОЛЬЗОВАТЕЛИ =============

    def create_user(self, *, username, email, password_hash, email_verified=False, stripe_customer_id=None):
        for value in (username, email):
            if value and self.get_user_by_identifier(value):
                logger.warning("⚠️ Идентификатор уже занят: %s", value)
                raise DuplicateIdentifier("Username или email уже заняты")

        now = utcnow()
        user = UserRecord(
            id=next(self._user_ids),
            username=username,
            email=email,
            password_hash=password_hash,
            email_verified=email_verified,
            stripe_customer_id=stripe_customer_id,
            created_at=now,
            updated_at=now,
        )
        self._users[user.id] = user
        logger.debug("Пользователь %s создан в памяти", user.id)
        return user

    def get_user(self, user_id: int) -> Optional[UserRecord]:
        return self._users.get(user_id)

    def get_user_by_identifier(self, identifier: str) -> Optional[UserRecord]:
        if not identifier:
            return None
        for user in self._users.values():
            if user.username == identifier or (user.email and user.email.lower() == identifier.lower()):
                return user
        return None

    def list_users(self) -> List[UserRecord]:
        return [self._users[k] for k in sorted(self._users)]

    # ============= ОФФЕРЫ =============

    def list_offers(self) -> List[OfferRecord]:
        return [self._offers[k] for k in sorted(self._offers)]

    def get_offer(self, offer_id: int) -> Optional[OfferRecord]:
        return self._offers.get(offer_id)

    def create_offer(self, *, user_id, title, description, price, response_time_hours):
        offer = OfferRecord(
            id=next(self._offer_ids),
            user_id=user_id,
            title=title,
            description=description,
            price=Decimal(price),
            response_time_hours=response_time_hours,
        )
        self._offers[offer.id] = offer
        return offer

    # ============= ТРАНЗАКЦИИ =============

    def list_user_transactions(self, user_id: int) -> List[TransactionRecord]:
        return [
            t for _, t in sorted(self._transactions.items())
            if t.buyer_id == user_id or t.seller_id == user_id
        ]

    def create_transaction(self, *, offer_id, buyer_id, seller_id, amount, status="pending"):
        transaction = TransactionRecord(
            id=next(self._transaction_ids),
            offer_id=offer_id,
            buyer_id=buyer_id,
            seller_id=seller_id,
            amount=Decimal(amount),
            status=status,
            created_at=utcnow(),
        )
        self._transactions[transaction.id] = transaction
        return transaction

    # ============= СООБЩЕНИЯ =============

    def list_user_messages(self, user_id: int) -> List[MessageRecord]:
        return [
            m for _, m in sorted(self._messages.items())
            if m.sender_id == user_id or m.recipient_id == user_id
        ]

    def create_message(self, *, sender_id, recipient_id, content, response_time_hours, amount, status="pending"):
        now = utcnow()
        message = MessageRecord(
            id=next(self._message_ids),
            sender_id=sender_id,
            recipient_id=recipient_id,
            content=content,
            response_time_hours=response_time_hours,
            amount=Decimal(amount),
            status=status,
            created_at=now,
            updated_at=now,
        )
        self._messages[message.id] = message
        return message

    # ============= СЕССИИ =============

    def create_session(self, *, token: str, user_id: int, expires_at: datetime) -> SessionRecord:
        record = SessionRecord(token=token, user_id=user_id, created_at=utcnow(), expires_at=expires_at)
        self._sessions[token] = record
        return record

    def get_session(self, token: str) -> Optional[SessionRecord]:
        return self._sessions.get(token)

    def delete_session(self, token: str) -> None:
        self._sessions.pop(token, None)

    def purge_expired_sessions(self, now: datetime) -> int:
        expired = [t for t, s in self._sessions.items() if as_utc(s.expires_at) <= now]
        for token in expired:
            del self._sessions[token]
        return len(expired)
