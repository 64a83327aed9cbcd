from types import SimpleNamespace

import pytest
import stripe
from pymongo.errors import PyMongoError

from database import ORDERS, PAYMENTS
from orders import settle_payment
from payments import to_minor_units


class FailingOrders:
    def __init__(self, inner):
        self.inner = inner

    def delete_many(self, *args, **kwargs):
        raise PyMongoError("connection reset")


class FailingDb(dict):
    def __init__(self, db):
        super().__init__({PAYMENTS: db[PAYMENTS], ORDERS: FailingOrders(db[ORDERS])})


def add_orders(db, *product_ids):
    return [
        str(db[ORDERS].insert_one({"product_id": p, "email": "u@x.com", "quantity": 1}).inserted_id)
        for p in product_ids
    ]


def test_settle_records_payment_and_clears_orders(client, db, user_headers):
    o1, o2, o3 = add_orders(db, "p1", "p2", "p3")
    payload = {"email": "u@x.com", "price": 30, "orderProducts": [o1, o2], "productsId": ["shirt"]}

    res = client.post("/payment", json=payload, headers=user_headers)

    assert res.status_code == 200
    body = res.json()
    assert body["deleteResult"]["deletedCount"] == 2
    assert db[PAYMENTS].count_documents({"email": "u@x.com"}) == 1
    assert [str(o["_id"]) for o in db[ORDERS].find()] == [o3]


def test_settle_requires_token(client, db):
    res = client.post("/payment", json={"email": "u@x.com", "price": 1})
    assert res.status_code == 401
    assert db[PAYMENTS].count_documents({}) == 0


def test_settle_with_invalid_order_id_writes_nothing(client, db, user_headers):
    add_orders(db, "p1")
    payload = {"email": "u@x.com", "price": 10, "orderProducts": ["bogus"]}
    res = client.post("/payment", json=payload, headers=user_headers)
    assert res.status_code == 400
    assert db[PAYMENTS].count_documents({}) == 0
    assert db[ORDERS].count_documents({}) == 1


def test_settle_rolls_back_payment_when_clearing_fails(db):
    (o1,) = add_orders(db, "p1")
    with pytest.raises(PyMongoError):
        settle_payment(FailingDb(db), {"email": "u@x.com", "price": 10, "orderProducts": [o1]})
    assert db[PAYMENTS].count_documents({}) == 0
    assert db[ORDERS].count_documents({}) == 1


def test_store_failure_surfaces_as_server_error(client, db, user_headers, monkeypatch):
    def broken_settle(*args):
        raise PyMongoError("server selection timeout")

    monkeypatch.setattr("main.settle_payment", broken_settle)
    res = client.post("/payment", json={"email": "u@x.com", "price": 10}, headers=user_headers)
    assert res.status_code == 500
    assert res.json() == {"error": True, "message": "internal server error"}


def test_list_own_payments(client, db, user_headers):
    db[PAYMENTS].insert_many([{"email": "u@x.com", "price": 10}, {"email": "other@x.com", "price": 5}])
    res = client.get("/payment/u@x.com", headers=user_headers)
    assert res.status_code == 200
    assert [p["price"] for p in res.json()] == [10]


def test_list_other_payments_forbidden(client, user_headers):
    assert client.get("/payment/other@x.com", headers=user_headers).status_code == 403


def test_minor_units():
    assert to_minor_units(19.99) == 1999
    assert to_minor_units(10) == 1000


def test_create_payment_intent(client, user_headers, monkeypatch):
    calls = []

    def fake_create(**kwargs):
        calls.append(kwargs)
        return SimpleNamespace(id="pi_123", client_secret="pi_123_secret_abc")

    monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)
    res = client.post("/create-payment-intent", json={"price": 19.99}, headers=user_headers)

    assert res.status_code == 200
    assert res.json() == {"clientSecret": "pi_123_secret_abc"}
    assert calls[0]["amount"] == 1999
    assert calls[0]["currency"] == "usd"
    assert calls[0]["payment_method_types"] == ["card"]


def test_create_payment_intent_requires_token(client):
    assert client.post("/create-payment-intent", json={"price": 5}).status_code == 401


def test_gateway_failure_surfaces_as_bad_gateway(client, user_headers, monkeypatch):
    def fake_create(**kwargs):
        raise stripe.APIConnectionError("gateway unreachable")

    monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)
    res = client.post("/create-payment-intent", json={"price": 5}, headers=user_headers)
    assert res.status_code == 502
    assert res.json() == {"error": True, "message": "payment gateway error"}


def test_mixed_case_email_sees_own_payments(client):
    token = client.post("/jwt", json={"email": "u@X.com"}).json()["token"]
    headers = {"Authorization": f"Bearer {token}"}
    client.post("/payment", json={"email": "u@X.com", "price": 10}, headers=headers)
    res = client.get("/payment/u@X.com", headers=headers)
    assert res.status_code == 200
    assert [p["email"] for p in res.json()] == ["u@X.com"]
