from bson import ObjectId
from pymongo.errors import ServerSelectionTimeoutError
from fastapi.testclient import TestClient

from koodi_api.db import Store
from koodi_api.main import create_app


def test_create_order_applies_defaults(client, new_order):
    response = client.post("/api/orders", json=new_order)
    assert response.status_code == 201

    order = response.json()
    assert order["status"] == "placed"
    assert order["orderTime"].endswith("Z")
    assert order["total"] == 13000
    assert order["items"] == new_order["items"]
    assert len(order["_id"]) == 24


def test_create_order_keeps_caller_status_and_drops_unknown_fields(client, new_order):
    response = client.post("/api/orders", json=dict(new_order, status="preparing", table=7))
    order = response.json()
    assert order["status"] == "preparing"
    assert "table" not in order


def test_create_order_does_not_check_total(client, new_order):
    response = client.post("/api/orders", json=dict(new_order, total=1))
    assert response.status_code == 201
    assert response.json()["total"] == 1


def test_create_order_coerces_numeric_strings(client):
    body = {"customerName": "Ben", "items": [{"name": "Chapati", "quantity": "3", "price": "1000"}], "total": "3000"}
    order = client.post("/api/orders", json=body).json()
    assert order["total"] == 3000
    assert order["items"][0]["quantity"] == 3


def test_create_order_with_uncastable_field_is_server_error(client, store):
    response = client.post("/api/orders", json={"customerName": "Ben", "total": "lots"})
    assert response.status_code == 500
    assert "total" in response.json()["error"]
    assert store.orders.count_documents({}) == 0


def test_list_orders_newest_first(client, new_order):
    times = ["2024-03-01T09:00:00Z", "2024-03-03T09:00:00Z", "2024-03-02T09:00:00Z"]
    for t in times:
        client.post("/api/orders", json=dict(new_order, orderTime=t))

    response = client.get("/api/orders")
    assert response.status_code == 200
    assert [o["orderTime"] for o in response.json()] == [
        "2024-03-03T09:00:00.000Z",
        "2024-03-02T09:00:00.000Z",
        "2024-03-01T09:00:00.000Z",
    ]


def test_update_status_changes_only_status(client, new_order):
    created = client.post("/api/orders", json=new_order).json()

    response = client.put(f"/api/orders/{created['_id']}/status", json={"status": "delivered"})
    assert response.status_code == 200

    updated = response.json()
    assert updated["status"] == "delivered"
    assert {k: v for k, v in updated.items() if k != "status"} == {
        k: v for k, v in created.items() if k != "status"
    }
    assert client.get("/api/orders").json()[0]["status"] == "delivered"


def test_update_status_unknown_order_is_not_found(client):
    response = client.put(f"/api/orders/{ObjectId()}/status", json={"status": "delivered"})
    assert response.status_code == 404
    assert response.json() == {"error": "Order not found"}


def test_update_status_malformed_id_is_not_found(client):
    response = client.put("/api/orders/not-an-id/status", json={"status": "delivered"})
    assert response.status_code == 404


class _FailingOrders:
    def create_index(self, *args, **kwargs):
        return "order_time"

    def find(self, *args, **kwargs):
        raise ServerSelectionTimeoutError("localhost:27017: [Errno 111] Connection refused")


class _FailingOrdersStore(Store):
    @property
    def orders(self):
        return _FailingOrders()


def test_store_errors_surface_as_server_error(settings, store):
    app = create_app(settings, store=_FailingOrdersStore(store.database))
    with TestClient(app) as client:
        response = client.get("/api/orders")

    assert response.status_code == 500
    assert "Connection refused" in response.json()["error"]


def test_numeric_status_is_stored_as_text(client, new_order):
    created = client.post("/api/orders", json=new_order).json()

    response = client.put(f"/api/orders/{created['_id']}/status", json={"status": 3})
    assert response.status_code == 200
    assert response.json()["status"] == "3"


class _CrashingOrders(_FailingOrders):
    def find(self, *args, **kwargs):
        raise RuntimeError("cursor exploded")


class _CrashingOrdersStore(Store):
    @property
    def orders(self):
        return _CrashingOrders()


def test_unexpected_errors_keep_error_shape_and_cors(settings, store):
    app = create_app(settings, store=_CrashingOrdersStore(store.database))
    with TestClient(app) as client:
        response = client.get("/api/orders", headers={"Origin": "http://admin.koodi.local"})

    assert response.status_code == 500
    assert response.json() == {"error": "cursor exploded"}
    assert response.headers["access-control-allow-origin"] == "*"
