"""
Маркетплейс: офферы, транзакции, платные сообщения.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, Path, status

from inbucks.core.records import UserRecord
from inbucks.dependencies import get_storage, require_user
from inbucks.schemas import (
    MAX_DB_INT,
    MessageCreate,
    MessageResponse,
    OfferCreate,
    OfferResponse,
    TransactionCreate,
    TransactionResponse,
)
from inbucks.services import marketplace_service
from inbucks.storage.base import Storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


# ============= OFFERS =============

@router.get("/offers", response_model=List[OfferResponse], tags=["Offers"])
async def list_offers(storage: Storage = Depends(get_storage)):
    """Все офферы, без авторизации"""
    return storage.list_offers()


@router.get("/offers/{offer_id}", response_model=OfferResponse, tags=["Offers"])
async def get_offer(offer_id: int = Path(..., ge=1, le=MAX_DB_INT), storage: Storage = Depends(get_storage)):
    return marketplace_service.get_offer(storage, offer_id)


@router.post("/offers", response_model=OfferResponse, status_code=status.HTTP_201_CREATED, tags=["Offers"])
async def create_offer(
    offer_data: OfferCreate,
    user: UserRecord = Depends(require_user),
    storage: Storage = Depends(get_storage),
):
    """Новый оффер от имени текущего пользователя"""
    return marketplace_service.create_offer(
        storage,
        user,
        title=offer_data.title,
        description=offer_data.description,
        price=offer_data.price,
        response_time_hours=offer_data.response_time_hours,
    )


# ============= TRANSACTIONS =============

@router.get("/transactions", response_model=List[TransactionResponse], tags=["Transactions"])
async def list_transactions(
    user: UserRecord = Depends(require_user),
    storage: Storage = Depends(get_storage),
):
    """Транзакции, где пользователь покупатель или продавец"""
    return storage.list_user_transactions(user.id)


@router.post(
    "/transactions",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Transactions"],
)
async def create_transaction(
    transaction_data: TransactionCreate,
    user: UserRecord = Depends(require_user),
    storage: Storage = Depends(get_storage),
):
    return marketplace_service.create_transaction(storage, user, transaction_data.offer_id)


# ============= MESSAGES =============

@router.get("/messages", response_model=List[MessageResponse], tags=["Messages"])
async def list_messages(
    user: UserRecord = Depends(require_user),
    storage: Storage = Depends(get_storage),
):
    """Отправленные и полученные сообщения"""
    return storage.list_user_messages(user.id)


@router.post("/messages", response_model=MessageResponse, status_code=status.HTTP_201_CREATED, tags=["Messages"])
async def create_message(
    message_data: MessageCreate,
    user: UserRecord = Depends(require_user),
    storage: Storage = Depends(get_storage),
):
    return marketplace_service.create_message(
        storage,
        user,
        recipient_id=message_data.recipient_id,
        content=message_data.content,
        response_time_hours=message_data.response_time_hours,
        amount=message_data.amount,
    )
