"""
Хранилище на SQLAlchemy.

Одна сессия БД на операцию. Ошибки БД логируются и превращаются
в StorageError с общим текстом - детали клиенту не уходят.
"""
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from inbucks.core.database import build_engine, build_session_factory, create_tables
from inbucks.core.models import Message, Offer, Transaction, User, UserSession
from inbucks.core.records import (
    MessageRecord,
    OfferRecord,
    SessionRecord,
    TransactionRecord,
    UserRecord,
)
from inbucks.exceptions import DuplicateIdentifier, StorageError

logger = logging.getLogger(__name__)


def _matches_identifier(value: str):
    """username точно, email без учёта регистра"""
    return or_(User.username == value, func.lower(User.email) == value.lower())


def _to_user(row: User) -> UserRecord:
    return UserRecord(
        id=row.id,
        username=row.username,
        email=row.email,
        password_hash=row.password_hash,
        email_verified=bool(row.email_verified),
        stripe_customer_id=row.stripe_customer_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _to_offer(row: Offer) -> OfferRecord:
    return OfferRecord(
        id=row.id,
        user_id=row.user_id,
        title=row.title,
        description=row.description,
        price=row.price,
        response_time_hours=row.response_time_hours,
    )


def _to_transaction(row: Transaction) -> TransactionRecord:
    return TransactionRecord(
        id=row.id,
        offer_id=row.offer_id,
        buyer_id=row.buyer_id,
        seller_id=row.seller_id,
        amount=row.amount,
        status=row.status,
        created_at=row.created_at,
    )


def _to_message(row: Message) -> MessageRecord:
    return MessageRecord(
        id=row.id,
        sender_id=row.sender_id,
        recipient_id=row.recipient_id,
        content=row.content,
        response_time_hours=row.response_time_hours,
        amount=row.amount,
        status=row.status,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _to_session(row: UserSession) -> SessionRecord:
    return SessionRecord(
        token=row.token,
        user_id=row.user_id,
        created_at=row.created_at,
        expires_at=row.expires_at,
    )


class SqlStorage:
    name = "database"

    def __init__(self, database_url: str):
        self.database_url = database_url
        self.engine = build_engine(database_url)
        self._session_factory = build_session_factory(self.engine)

    @contextmanager
    def _db(self, action: str):
        """Сессия БД для одной операции"""
        db = self._session_factory()
        try:
            yield db
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Ошибка БД при '%s': %s", action, e, exc_info=True)
            raise StorageError() from e
        finally:
            db.close()

    def init_schema(self) -> None:
        try:
            create_tables(self.engine)
        except SQLAlchemyError as e:
            logger.error("Не удалось создать таблицы: %s", e, exc_info=True)
            raise StorageError() from e
        logger.info("База данных: %s", self.engine.url.render_as_string(hide_password=True))

    def dispose(self) -> None:
        self.engine.dispose()

    # ============= ПОЛЬЗОВАТЕЛИ =============

    def create_user(self, *, username, email, password_hash, email_verified=False, stripe_customer_id=None):
        with self._db("create_user") as db:
            for value in (username, email):
                if value and db.query(User).filter(_matches_identifier(value)).first():
                    logger.warning("⚠️ Идентификатор уже занят: %s", value)
                    raise DuplicateIdentifier("Username или email уже заняты")

            user = User(
                username=username,
                email=email,
                password_hash=password_hash,
                email_verified=email_verified,
                stripe_customer_id=stripe_customer_id,
            )
            db.add(user)
            try:
                db.commit()
            except IntegrityError:
                # Параллельная регистрация успела раньше
                db.rollback()
                logger.warning("⚠️ Нарушение уникальности при создании пользователя: %s / %s", username, email)
                raise DuplicateIdentifier("Username или email уже заняты")
            db.refresh(user)
            logger.info("Пользователь создан: id=%s", user.id)
            return _to_user(user)

    def get_user(self, user_id: int) -> Optional[UserRecord]:
        with self._db("get_user") as db:
            user = db.get(User, user_id)
            return _to_user(user) if user else None

    def get_user_by_identifier(self, identifier: str) -> Optional[UserRecord]:
        if not identifier:
            return None
        with self._db("get_user_by_identifier") as db:
            user = (
                db.query(User)
                .filter(_matches_identifier(identifier))
                .order_by(User.id)
                .first()
            )
            return _to_user(user) if user else None

    def list_users(self) -> List[UserRecord]:
        with self._db("list_users") as db:
            return [_to_user(u) for u in db.query(User).order_by(User.id).all()]

    # ============= ОФФЕРЫ =============

    def list_offers(self) -> List[OfferRecord]:
        with self._db("list_offers") as db:
            return [_to_offer(o) for o in db.query(Offer).order_by(Offer.id).all()]

    def get_offer(self, offer_id: int) -> Optional[OfferRecord]:
        with self._db("get_offer") as db:
            offer = db.get(Offer, offer_id)
            return _to_offer(offer) if offer else None

    def create_offer(self, *, user_id, title, description, price, response_time_hours):
        with self._db("create_offer") as db:
            offer = Offer(
                user_id=user_id,
                title=title,
                description=description,
                price=price,
                response_time_hours=response_time_hours,
            )
            db.add(offer)
            db.commit()
            db.refresh(offer)
            return _to_offer(offer)

    # ============= ТРАНЗАКЦИИ =============

    def list_user_transactions(self, user_id: int) -> List[TransactionRecord]:
        with self._db("list_user_transactions") as db:
            rows = (
                db.query(Transaction)
                .filter(or_(Transaction.buyer_id == user_id, Transaction.seller_id == user_id))
                .order_by(Transaction.id)
                .all()
            )
            return [_to_transaction(t) for t in rows]

    def create_transaction(self, *, offer_id, buyer_id, seller_id, amount, status="pending"):
        with self._db("create_transaction") as db:
            transaction = Transaction(
                offer_id=offer_id,
                buyer_id=buyer_id,
                seller_id=seller_id,
                amount=amount,
                status=status,
            )
            db.add(transaction)
            db.commit()
            db.refresh(transaction)
            return _to_transaction(transaction)

    # ============= СООБЩЕНИЯ =============

    def list_user_messages(self, user_id: int) -> List[MessageRecord]:
        with self._db("list_user_messages") as db:
            rows = (
                db.query(Message)
                .filter(or_(Message.sender_id == user_id, Message.recipient_id == user_id))
                .order_by(Message.id)
                .all()
            )
            return [_to_message(m) for m in rows]

    def create_message(self, *, sender_id, recipient_id, content, response_time_hours, amount, status="pending"):
        with self._db("create_message") as db:
            message = Message(
                sender_id=sender_id,
                recipient_id=recipient_id,
                content=content,
                response_time_hours=response_time_hours,
                amount=amount,
                status=status,
            )
            db.add(message)
            db.commit()
            db.refresh(message)
            return _to_message(message)

    # ============= СЕССИИ =============

    def create_session(self, *, token: str, user_id: int, expires_at: datetime) -> SessionRecord:
        with self._db("create_session") as db:
            row = UserSession(token=token, user_id=user_id, expires_at=expires_at)
            db.add(row)
            db.commit()
            db.refresh(row)
            return _to_session(row)

    def get_session(self, token: str) -> Optional[SessionRecord]:
        with self._db("get_session") as db:
            row = db.get(UserSession, token)
            return _to_session(row) if row else None

    def delete_session(self, token: str) -> None:
        with self._db("delete_session") as db:
            db.query(UserSession).filter(UserSession.token == token).delete()
            db.commit()

    def purge_expired_sessions(self, now: datetime) -> int:
        with self._db("purge_expired_sessions") as db:
            removed = db.query(UserSession).filter(UserSession.expires_at <= now).delete()
            db.commit()
            return removed
