import pytest
from fastapi.testclient import TestClient

from storefront.api import create_app

ADDRESS = {
    "label": "Home",
    "street_address": "123 Main Street",
    "apartment": "Apt 4B",
    "city": "New York",
    "state": "NY",
    "zip_code": "10001",
}
DWELLS = {"confirmed": 1, "preparing": 1, "picked_up": 1, "on_the_way": 1}


@pytest.fixture
def app(session_factory, catalog, notifier, clock):
    return create_app(session_factory, catalog=catalog, notifier=notifier, clock=clock, dwell_times=DWELLS)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def _add(client, item_id="m1", restaurant_id="r1", session="s1"):
    return client.post(f"/carts/{session}/items", json={"restaurant_id": restaurant_id, "item_id": item_id})


def _checkout(client, session="s1", user_id=1, **extra):
    body = {"session_id": session, "user_id": user_id, "address": ADDRESS, **extra}
    return client.post("/orders/", json=body)


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_restaurants(client):
    assert [r["id"] for r in client.get("/restaurants/").json()] == ["r1", "r2"]
    assert [r["id"] for r in client.get("/restaurants/", params={"cuisine": "japanese"}).json()] == ["r2"]
    assert client.get("/restaurants/r1").json()["name"] == "Bella Napoli"
    assert client.get("/restaurants/zz").status_code == 404


def test_cart_flow(client):
    _add(client)
    resp = _add(client)
    assert resp.status_code == 200
    cart = resp.json()
    assert cart["item_count"] == 2
    assert cart["restaurant_name"] == "Bella Napoli"
    assert float(cart["subtotal"]) == 25.0

    cart = client.patch("/carts/s1/items/m1", json={"quantity": 5}).json()
    assert cart["items"][0]["quantity"] == 5

    cart = client.delete("/carts/s1/items/m1").json()
    assert cart["items"] == []
    assert cart["restaurant_id"] is None


def test_cart_rejects_other_restaurant(client):
    _add(client)

    resp = _add(client, item_id="k1", restaurant_id="r2")

    assert resp.status_code == 409
    assert client.get("/carts/s1").json()["item_count"] == 1


def test_cart_unknown_item(client):
    assert _add(client, restaurant_id="zz").status_code == 404
    assert _add(client, item_id="zz").status_code == 404


def test_carts_are_per_session(client):
    _add(client, session="a")

    assert client.get("/carts/b").json()["item_count"] == 0
    client.delete("/carts/a")
    assert client.get("/carts/a").json()["item_count"] == 0


def test_promo_preview(client, add_promo):
    add_promo("WELCOME10", "percentage", "10")
    _add(client)
    _add(client)

    resp = client.post("/carts/s1/promo", json={"code": "welcome10"})
    assert resp.status_code == 200
    assert float(resp.json()["discount_amount"]) == 2.5

    resp = client.post("/carts/s1/promo", json={"code": "NOPE"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid promo code"


def test_checkout(client, notifier):
    _add(client)
    _add(client)

    resp = _checkout(client, payment_method="cash")

    assert resp.status_code == 201
    order = resp.json()
    assert order["status"] == "confirmed"
    assert float(order["total"]) == 27.99
    assert order["payment_method"] == "cash"
    assert client.get("/carts/s1").json()["items"] == []
    assert len(notifier.placed) == 1
    assert client.get("/addresses/", params={"user_id": 1}).json()[0]["is_default"]


def test_checkout_with_promo(client, add_promo):
    add_promo("FLAT5", "fixed", "5")
    _add(client)

    order = _checkout(client, promo_code="FLAT5").json()

    assert order["promo_code"] == "FLAT5"
    assert float(order["discount"]) == 5.0
    assert float(order["total"]) == 10.49


def test_checkout_errors(client, add_promo):
    resp = _checkout(client)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Cart is empty"

    _add(client)
    resp = client.post("/orders/", json={"session_id": "s1", "user_id": 1, "address": {"city": "Boston"}})
    assert resp.status_code == 400

    add_promo("SAVE20", "percentage", "20", min_order_amount=25)
    resp = _checkout(client, promo_code="SAVE20")
    assert resp.status_code == 400
    assert "25.00" in resp.json()["detail"]
    assert client.get("/carts/s1").json()["item_count"] == 1


def test_checkout_with_saved_address(client):
    saved = client.post("/addresses/", params={"user_id": 1}, json=ADDRESS)
    assert saved.status_code == 201
    _add(client)

    resp = _checkout(client, address=None, address_id=saved.json()["id"])
    assert resp.status_code == 201
    assert resp.json()["delivery_address"]["city"] == "New York"

    _add(client)
    assert _checkout(client, user_id=2, address=None, address_id=saved.json()["id"]).status_code == 403
    assert _checkout(client, address=None, address_id=999).status_code == 404


def test_addresses(client):
    assert client.post("/addresses/", params={"user_id": 1}, json={"street_address": "x"}).status_code == 400

    first = client.post("/addresses/", params={"user_id": 1}, json=ADDRESS).json()
    second = client.post("/addresses/", params={"user_id": 1}, json={**ADDRESS, "label": "Work"}).json()
    assert first["is_default"] and not second["is_default"]

    resp = client.post(f"/addresses/{second['id']}/default", params={"user_id": 1})
    assert resp.json()["is_default"]
    assert client.get("/addresses/", params={"user_id": 1}).json()[0]["id"] == second["id"]
    assert client.post(f"/addresses/{second['id']}/default", params={"user_id": 2}).status_code == 403


def test_order_reads(client):
    _add(client)
    order = _checkout(client).json()

    assert client.get(f"/orders/{order['id']}", params={"user_id": 1}).json()["id"] == order["id"]
    assert client.get(f"/orders/{order['id']}", params={"user_id": 2}).status_code == 403
    assert client.get("/orders/999", params={"user_id": 1}).status_code == 404
    assert [o["id"] for o in client.get("/orders/", params={"user_id": 1}).json()] == [order["id"]]

    eta = client.get(f"/orders/{order['id']}/eta", params={"user_id": 1}).json()
    assert eta == {"status": "confirmed", "arrived": False, "minutes_remaining": 35, "label": "35 min"}


def test_track_then_review(client, app, notifier):
    _add(client)
    order = _checkout(client).json()
    lifecycle = app.state.container.lifecycle

    resp = client.post(f"/orders/{order['id']}/track", params={"user_id": 1})
    assert resp.status_code == 200
    assert resp.json()["started"]
    assert lifecycle.wait(order["id"], timeout=5)

    assert client.get(f"/orders/{order['id']}", params={"user_id": 1}).json()["status"] == "delivered"
    assert [o.status.value for o in notifier.changes][-1] == "delivered"
    assert client.get(f"/orders/{order['id']}/eta", params={"user_id": 1}).json()["label"] == "Delivered!"

    again = client.post(f"/orders/{order['id']}/track", params={"user_id": 1}).json()
    assert again["started"] is False

    review = {"user_id": 1, "rating": 5, "comment": "Hot and fast"}
    resp = client.post(f"/orders/{order['id']}/review", json=review)
    assert resp.status_code == 201
    assert resp.json()["comment"] == "Hot and fast"
    assert client.post(f"/orders/{order['id']}/review", json=review).status_code == 409


def test_review_rules(client):
    _add(client)
    order = _checkout(client).json()

    assert client.post(f"/orders/{order['id']}/review", json={"user_id": 1, "rating": 5}).status_code == 400
    assert client.post("/orders/999/review", json={"user_id": 1, "rating": 5}).status_code == 404


def test_cancel(client):
    _add(client)
    order = _checkout(client).json()

    resp = client.post(f"/orders/{order['id']}/cancel")
    assert resp.status_code == 200
    assert resp.json()["status"] == "cancelled"

    assert client.post(f"/orders/{order['id']}/cancel").status_code == 409
    assert client.post("/orders/999/cancel").status_code == 404
    assert client.post(f"/orders/{order['id']}/track", params={"user_id": 1}).json()["started"] is False


def test_app_shutdown_stops_drivers(session_factory, catalog, notifier, gated_clock, store):
    app = create_app(session_factory, catalog=catalog, notifier=notifier, clock=gated_clock, dwell_times=DWELLS)
    lifecycle = app.state.container.lifecycle

    with TestClient(app) as client:
        _add(client)
        order = _checkout(client).json()
        assert client.post(f"/orders/{order['id']}/track", params={"user_id": 1}).json()["started"]
        assert gated_clock.sleeping.wait(5)
        assert lifecycle.is_progressing(order["id"])

    assert not lifecycle.is_progressing(order["id"])
    assert store.get_order(order["id"]).status.value == "confirmed"
