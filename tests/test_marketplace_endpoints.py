from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from inbucks.core.database import drop_tables
from inbucks.core.records import OfferRecord, UserRecord
from inbucks.exceptions import NotFound, StorageError
from inbucks.main import create_app
from inbucks.services import marketplace_service
from inbucks.storage.sql import SqlStorage

PASSWORD = "password123"
OFFER = {"title": "T", "description": "D", "price": "10.00", "responseTimeHours": "24"}


@pytest.fixture()
def seller(client, register):
    return register("seller").json()


@pytest.fixture()
def buyer(make_client):
    buyer_client = make_client()
    r = buyer_client.post("/api/register", json={"username": "buyer", "password": PASSWORD})
    assert r.status_code == 201
    return buyer_client, r.json()


# ============= OFFERS =============

def test_create_offer_requires_session(client):
    r = client.post("/api/offers", json=OFFER)
    assert r.status_code == 401


def test_create_offer(client, seller):
    r = client.post("/api/offers", json=OFFER)

    assert r.status_code == 201
    body = r.json()
    assert body["id"] == 1
    assert body["userId"] == seller["id"]
    assert body["title"] == "T"
    assert body["description"] == "D"
    assert Decimal(body["price"]) == Decimal("10.00")
    assert body["responseTimeHours"] == 24


def test_create_offer_accepts_snake_case(client, seller):
    r = client.post(
        "/api/offers",
        json={"title": "T", "description": "D", "price": 3, "response_time_hours": 1},
    )
    assert r.status_code == 201
    assert Decimal(r.json()["price"]) == Decimal("3.00")


@pytest.mark.parametrize(
    "override, field",
    [
        ({"price": "-1"}, "price"),
        ({"price": "abc"}, "price"),
        ({"responseTimeHours": 0}, "responseTimeHours"),
        ({"title": "   "}, "title"),
        ({"description": ""}, "description"),
    ],
)
def test_create_offer_validation(client, seller, override, field):
    r = client.post("/api/offers", json={**OFFER, **override})

    assert r.status_code == 400
    assert field in {e["field"] for e in r.json()["detail"]}
    assert client.get("/api/offers").json() == []


def test_list_offers_is_public(app, client, seller, make_client):
    client.post("/api/offers", json=OFFER)
    client.post("/api/offers", json={**OFFER, "title": "Second"})

    anonymous = make_client()
    r = anonymous.get("/api/offers")

    assert r.status_code == 200
    assert [o["title"] for o in r.json()] == ["T", "Second"]


def test_get_offer(client, seller):
    offer_id = client.post("/api/offers", json=OFFER).json()["id"]

    assert client.get(f"/api/offers/{offer_id}").json()["title"] == "T"
    assert client.get("/api/offers/999").status_code == 404


# ============= TRANSACTIONS =============

def test_transactions_require_session(client):
    assert client.get("/api/transactions").status_code == 401
    assert client.post("/api/transactions", json={"offerId": 1}).status_code == 401


def test_create_transaction_copies_offer_price(client, seller, buyer):
    offer = client.post("/api/offers", json={**OFFER, "price": "42.50"}).json()
    buyer_client, buyer_user = buyer

    r = buyer_client.post("/api/transactions", json={"offerId": offer["id"]})

    assert r.status_code == 201
    tx = r.json()
    assert tx["offerId"] == offer["id"]
    assert tx["buyerId"] == buyer_user["id"]
    assert tx["sellerId"] == seller["id"]
    assert Decimal(tx["amount"]) == Decimal("42.50")
    assert tx["status"] == "pending"
    assert "createdAt" in tx


def test_transaction_for_missing_offer(client, seller, storage):
    r = client.post("/api/transactions", json={"offerId": 404})

    assert r.status_code == 404
    assert storage.list_user_transactions(seller["id"]) == []


def test_transaction_list_for_buyer_and_seller(client, seller, buyer, make_client):
    offer = client.post("/api/offers", json=OFFER).json()
    buyer_client, _ = buyer
    tx_id = buyer_client.post("/api/transactions", json={"offerId": offer["id"]}).json()["id"]

    outsider = make_client()
    outsider.post("/api/register", json={"username": "outsider", "password": PASSWORD})

    assert [t["id"] for t in buyer_client.get("/api/transactions").json()] == [tx_id]
    assert [t["id"] for t in client.get("/api/transactions").json()] == [tx_id]
    assert outsider.get("/api/transactions").json() == []


def test_transaction_bad_payload(client, seller):
    r = client.post("/api/transactions", json={"offerId": "not-a-number"})
    assert r.status_code == 400


# ============= MESSAGES =============

def test_send_message(client, seller, buyer):
    buyer_client, buyer_user = buyer

    r = buyer_client.post(
        "/api/messages",
        json={"recipientId": seller["id"], "content": "Hi!", "responseTimeHours": 12, "amount": "5"},
    )

    assert r.status_code == 201
    message = r.json()
    assert message["senderId"] == buyer_user["id"]
    assert message["recipientId"] == seller["id"]
    assert message["status"] == "pending"
    assert Decimal(message["amount"]) == Decimal("5.00")

    assert [m["id"] for m in client.get("/api/messages").json()] == [message["id"]]
    assert [m["id"] for m in buyer_client.get("/api/messages").json()] == [message["id"]]


def test_send_message_to_unknown_user(client, seller):
    r = client.post(
        "/api/messages",
        json={"recipientId": 999, "content": "Hi!", "responseTimeHours": 12, "amount": "5"},
    )
    assert r.status_code == 404


def test_send_message_to_self(client, seller):
    r = client.post(
        "/api/messages",
        json={"recipientId": seller["id"], "content": "Hi!", "responseTimeHours": 12, "amount": "5"},
    )
    assert r.status_code == 400


def test_messages_require_session(client):
    assert client.get("/api/messages").status_code == 401


# ============= SERVICE =============

def test_create_transaction_service_not_found(storage):
    buyer = storage.create_user(username="b", email=None, password_hash=None)

    with pytest.raises(NotFound):
        marketplace_service.create_transaction(storage, buyer, 1)

    assert storage.list_user_transactions(buyer.id) == []


def test_create_offer_service(storage):
    owner = storage.create_user(username="o", email=None, password_hash=None)

    offer = marketplace_service.create_offer(
        storage, owner, title="T", description="D", price=Decimal("1.00"), response_time_hours=1
    )

    assert isinstance(offer, OfferRecord)
    assert isinstance(owner, UserRecord)
    assert storage.get_offer(offer.id).user_id == owner.id


# ============= LIMITS & FAILURES =============

HUGE_ID = 10**20


@pytest.fixture()
def sql_storage(tmp_path):
    sql_storage = SqlStorage(f"sqlite:///{tmp_path / 'market.db'}")
    yield sql_storage
    sql_storage.dispose()


@pytest.fixture()
def db_client(sql_storage):
    """Клиент поверх SQLite с уже зарегистрированным продавцом"""
    with TestClient(create_app(storage=sql_storage)) as c:
        assert c.post("/api/register", json={"username": "seller", "password": PASSWORD}).status_code == 201
        yield c


def test_huge_offer_id_in_path_is_rejected(db_client):
    r = db_client.get(f"/api/offers/{HUGE_ID}")

    assert r.status_code == 400
    assert r.json()["detail"][0]["field"] == "path.offer_id"


@pytest.mark.parametrize(
    "url, payload, field",
    [
        ("/api/transactions", {"offerId": HUGE_ID}, "offerId"),
        ("/api/offers", {**OFFER, "responseTimeHours": HUGE_ID}, "responseTimeHours"),
        (
            "/api/messages",
            {"recipientId": HUGE_ID, "content": "Hi!", "responseTimeHours": 1, "amount": "1"},
            "recipientId",
        ),
        (
            "/api/messages",
            {"recipientId": 1, "content": "Hi!", "responseTimeHours": HUGE_ID, "amount": "1"},
            "responseTimeHours",
        ),
    ],
)
def test_huge_integers_are_rejected_before_storage(db_client, sql_storage, url, payload, field):
    r = db_client.post(url, json=payload)

    assert r.status_code == 400
    assert field in {e["field"] for e in r.json()["detail"]}
    assert sql_storage.list_offers() == []
    assert sql_storage.list_user_transactions(1) == []
    assert sql_storage.list_user_messages(1) == []


def test_largest_database_integer_is_a_plain_miss(db_client):
    assert db_client.get(f"/api/offers/{2**31 - 1}").status_code == 404
    assert db_client.post("/api/transactions", json={"offerId": 2**31 - 1}).status_code == 404


def test_storage_failure_is_generic_500(client, storage, monkeypatch):
    def broken():
        raise StorageError()

    monkeypatch.setattr(storage, "list_offers", broken)

    r = client.get("/api/offers")

    assert r.status_code == 500
    assert r.json() == {"detail": "Внутренняя ошибка сервера"}


def test_database_failure_is_generic_500(db_client, sql_storage):
    drop_tables(sql_storage.engine)

    r = db_client.get("/api/offers")

    assert r.status_code == 500
    assert r.json() == {"detail": "Внутренняя ошибка сервера"}


def test_unexpected_error_is_generic_500(storage, monkeypatch):
    def broken():
        raise RuntimeError("connection string with password=secret")

    monkeypatch.setattr(storage, "list_offers", broken)

    with TestClient(create_app(storage=storage), raise_server_exceptions=False) as c:
        r = c.get("/api/offers")

    assert r.status_code == 500
    assert r.json() == {"detail": "Внутренняя ошибка сервера"}
    assert "secret" not in r.text
