from datetime import timedelta
from decimal import Decimal

import pytest

from inbucks import config
from inbucks.core.records import utcnow
from inbucks.exceptions import DuplicateIdentifier
from inbucks.storage.factory import build_storage
from inbucks.storage.memory import MemoryStorage
from inbucks.storage.sql import SqlStorage


def _user(storage, username, email=None):
    return storage.create_user(username=username, email=email, password_hash="hash.salt")


def test_create_and_find_user(any_storage):
    user = _user(any_storage, "alice", "alice@example.com")

    assert user.id
    assert user.email_verified is False
    assert any_storage.get_user(user.id).username == "alice"
    assert any_storage.get_user_by_identifier("alice").id == user.id
    assert any_storage.get_user_by_identifier("alice@example.com").id == user.id
    assert any_storage.get_user_by_identifier("bob") is None
    assert any_storage.get_user(9999) is None


def test_email_lookup_ignores_case(any_storage):
    user = _user(any_storage, "bob", "Bob@Example.com")

    assert any_storage.get_user_by_identifier("bob@example.com").id == user.id
    assert any_storage.get_user_by_identifier("BOB@EXAMPLE.COM").id == user.id
    # username сравнивается точно
    assert any_storage.get_user_by_identifier("BOB") is None


def test_user_without_password_hash(any_storage):
    user = any_storage.create_user(username="oauth-user", email=None, password_hash=None)
    assert any_storage.get_user(user.id).password_hash is None


@pytest.mark.parametrize(
    "username, email",
    [
        ("alice", None),
        ("other", "alice@example.com"),
        ("alice@example.com", None),  # совпадает с чужим email
        ("other", "ALICE@Example.com"),
    ],
)
def test_duplicate_identifier_rejected(any_storage, username, email):
    first = _user(any_storage, "alice", "alice@example.com")

    with pytest.raises(DuplicateIdentifier):
        _user(any_storage, username, email)

    assert [u.id for u in any_storage.list_users()] == [first.id]
    assert any_storage.get_user(first.id).email == "alice@example.com"


def test_offers(any_storage):
    owner = _user(any_storage, "seller")
    offer = any_storage.create_offer(
        user_id=owner.id,
        title="Quick answer",
        description="Reply within a day",
        price=Decimal("10.00"),
        response_time_hours=24,
    )

    assert any_storage.get_offer(offer.id).price == Decimal("10.00")
    assert [o.id for o in any_storage.list_offers()] == [offer.id]
    assert any_storage.get_offer(offer.id + 100) is None


def test_transactions_listed_for_both_parties(any_storage):
    seller = _user(any_storage, "seller")
    buyer = _user(any_storage, "buyer")
    stranger = _user(any_storage, "stranger")
    offer = any_storage.create_offer(
        user_id=seller.id, title="T", description="D", price=Decimal("5.50"), response_time_hours=2
    )

    tx = any_storage.create_transaction(offer_id=offer.id, buyer_id=buyer.id, seller_id=seller.id, amount=offer.price)

    assert tx.status == "pending"
    assert tx.amount == Decimal("5.50")
    assert [t.id for t in any_storage.list_user_transactions(buyer.id)] == [tx.id]
    assert [t.id for t in any_storage.list_user_transactions(seller.id)] == [tx.id]
    assert any_storage.list_user_transactions(stranger.id) == []


def test_messages_listed_for_both_parties(any_storage):
    sender = _user(any_storage, "sender")
    recipient = _user(any_storage, "recipient")

    message = any_storage.create_message(
        sender_id=sender.id,
        recipient_id=recipient.id,
        content="Can you look at this?",
        response_time_hours=12,
        amount=Decimal("3.00"),
    )

    assert message.status == "pending"
    assert [m.id for m in any_storage.list_user_messages(sender.id)] == [message.id]
    assert [m.id for m in any_storage.list_user_messages(recipient.id)] == [message.id]


def test_sessions(any_storage):
    user = _user(any_storage, "alice")
    now = utcnow()
    live = any_storage.create_session(token="live", user_id=user.id, expires_at=now + timedelta(hours=1))
    any_storage.create_session(token="old", user_id=user.id, expires_at=now - timedelta(hours=1))

    assert any_storage.get_session("live").user_id == user.id
    assert not live.is_expired(now)
    assert any_storage.get_session("old").is_expired(now)

    assert any_storage.purge_expired_sessions(now) == 1
    assert any_storage.get_session("old") is None

    any_storage.delete_session("live")
    any_storage.delete_session("live")  # повторно - без ошибки
    assert any_storage.get_session("live") is None


def test_memory_instances_are_isolated():
    first, second = MemoryStorage(), MemoryStorage()
    _user(first, "alice")

    assert second.get_user_by_identifier("alice") is None
    assert _user(second, "alice").id == 1


def test_build_storage(tmp_path):
    assert isinstance(build_storage("memory"), MemoryStorage)

    sql_storage = build_storage("database", f"sqlite:///{tmp_path / 'x.db'}")
    assert isinstance(sql_storage, SqlStorage)
    sql_storage.dispose()

    with pytest.raises(ValueError):
        build_storage("redis")


def test_build_storage_uses_config(monkeypatch):
    monkeypatch.setattr(config, "STORAGE_BACKEND", "memory")
    assert isinstance(build_storage(), MemoryStorage)
