"""
Офферы, транзакции и платные сообщения.
"""
import logging
from decimal import Decimal

from inbucks.core.records import MessageRecord, OfferRecord, TransactionRecord, UserRecord
from inbucks.exceptions import NotFound, ValidationError
from inbucks.storage.base import Storage

logger = logging.getLogger(__name__)


def create_offer(
    storage: Storage,
    owner: UserRecord,
    *,
    title: str,
    description: str,
    price: Decimal,
    response_time_hours: int,
) -> OfferRecord:
    offer = storage.create_offer(
        user_id=owner.id,
        title=title,
        description=description,
        price=price,
        response_time_hours=response_time_hours,
    )
    logger.info("Оффер %s создан пользователем %s (цена %s)", offer.id, owner.id, offer.price)
    return offer


def get_offer(storage: Storage, offer_id: int) -> OfferRecord:
    offer = storage.get_offer(offer_id)
    if offer is None:
        raise NotFound("Оффер не найден")
    return offer


def create_transaction(storage: Storage, buyer: UserRecord, offer_id: int) -> TransactionRecord:
    """
    Покупка оффера: сумма берётся из цены оффера, статус всегда pending.

    Чтение оффера и запись транзакции не атомарны.
    """
    offer = storage.get_offer(offer_id)
    if offer is None:
        logger.warning("⚠️ Транзакция на несуществующий оффер %s от пользователя %s", offer_id, buyer.id)
        raise NotFound("Оффер не найден")

    transaction = storage.create_transaction(
        offer_id=offer.id,
        buyer_id=buyer.id,
        seller_id=offer.user_id,
        amount=offer.price,
        status="pending",
    )
    logger.info("Транзакция %s: %s -> %s на %s", transaction.id, buyer.id, offer.user_id, transaction.amount)
    return transaction


def create_message(
    storage: Storage,
    sender: UserRecord,
    *,
    recipient_id: int,
    content: str,
    response_time_hours: int,
    amount: Decimal,
) -> MessageRecord:
    if recipient_id == sender.id:
        raise ValidationError("Нельзя отправить сообщение самому себе")
    if storage.get_user(recipient_id) is None:
        raise NotFound("Получатель не найден")

    message = storage.create_message(
        sender_id=sender.id,
        recipient_id=recipient_id,
        content=content,
        response_time_hours=response_time_hours,
        amount=amount,
        status="pending",
    )
    logger.info("Сообщение %s: %s -> %s", message.id, sender.id, recipient_id)
    return message
