"""HTTP boundary tests through FastAPI's TestClient."""

from services import order_actions

API = "/api/v1/orders"


def create_payload(client_id="C1", ticker="GOOGL", status=None, **order_fields):
    order = {"client_id": client_id, "client_name": f"Cliente {client_id}", "operation_type": "Compra", **order_fields}
    if status:
        order["status"] = status
    return {"order": order, "lineItems": [{"ticker": ticker, "quantity": 10, "price": 150, "is_market_order": False}]}


def create(client, **kwargs):
    response = client.post(API, json=create_payload(**kwargs))
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["success"] is True
    return body["id"]


def test_create_and_fetch_detail(client):
    order_id = create(client)
    response = client.get(f"{API}/{order_id}")
    assert response.status_code == 200
    detail = response.json()
    assert detail["status"] == "pendiente"
    assert detail["state"] == "pending"
    assert "Ejecutada" in detail["suggested_transitions"]
    assert detail["line_items"][0]["ticker"] == "GOOGL"
    assert detail["line_items"][0]["total"] == 1500
    assert detail["observations"] == []


def test_create_validation_error_is_400(client):
    payload = create_payload()
    del payload["order"]["client_id"]
    response = client.post(API, json=payload)
    assert response.status_code == 400
    assert "client_id" in response.json()["error"]


def test_create_rejects_non_positive_quantity(client):
    payload = create_payload()
    payload["lineItems"][0]["quantity"] = 0
    assert client.post(API, json=payload).status_code == 400


def test_create_unrecognized_status_is_400(client):
    response = client.post(API, json=create_payload(status="archivada"))
    assert response.status_code == 400
    assert "Unrecognized" in response.json()["error"]


def test_get_missing_order_is_404(client):
    response = client.get(f"{API}/nope")
    assert response.status_code == 404
    assert response.json() == {"error": "Order not found"}


def test_update_order_fields(client):
    order_id = create(client)
    response = client.put(f"{API}/{order_id}", json={"notes": "revisar", "market": "MAE"})
    assert response.status_code == 200
    assert response.json() == {"success": True}
    detail = client.get(f"{API}/{order_id}").json()
    assert detail["notes"] == "revisar"
    assert detail["market"] == "MAE"


def test_update_missing_order_is_400(client):
    response = client.put(f"{API}/nope", json={"notes": "x"})
    assert response.status_code == 400
    assert response.json()["error"] == "Order not found"


def test_status_update_appends_observation(client):
    order_id = create(client)
    response = client.put(f"{API}/{order_id}/status", json={"status": "cancelada", "observation": "client withdrew"})
    assert response.status_code == 200
    assert response.json() == {"success": True}
    detail = client.get(f"{API}/{order_id}").json()
    assert detail["status"] == "cancelada"
    assert detail["suggested_transitions"] == []
    assert len(detail["observations"]) == 1
    text = detail["observations"][0]["text"]
    assert "cancelada" in text and "client withdrew" in text


def test_status_update_missing_order(client):
    response = client.put(f"{API}/nope/status", json={"status": "cancelada"})
    assert response.status_code == 400
    assert response.json()["error"] == "Order not found"


def test_add_observation_with_author(client):
    order_id = create(client)
    response = client.post(f"{API}/{order_id}/observations", json={"text": "llamar", "authorId": "u7", "authorName": "Mesa"})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True and body["id"]
    obs = client.get(f"{API}/{order_id}").json()["observations"][0]
    assert (obs["author_id"], obs["author_name"]) == ("u7", "Mesa")


def test_add_observation_to_missing_order(client):
    response = client.post(f"{API}/nope/observations", json={"text": "hola"})
    assert response.status_code == 400


def test_delete_order(client):
    order_id = create(client)
    assert client.delete(f"{API}/{order_id}").json() == {"success": True}
    assert client.get(f"{API}/{order_id}").status_code == 404
    assert client.delete(f"{API}/{order_id}").status_code == 400


def test_unhandled_exception_is_500(client, monkeypatch):
    def explode(db, order_id):
        raise RuntimeError("boom")
    monkeypatch.setattr(order_actions, "remove_order", explode)
    response = client.delete(f"{API}/abc")
    assert response.status_code == 500
    assert response.json() == {"error": "boom"}


def test_list_with_search_filter_and_sort(client):
    a = create(client, client_id="C1", ticker="GOOGL")
    b = create(client, client_id="C2", ticker="AAPL")
    c = create(client, client_id="C3", ticker="GGAL", status="Ejecutada")

    all_ids = [o["id"] for o in client.get(API).json()]
    assert set(all_ids) == {a, b, c}

    by_ticker = client.get(API, params={"q": "g"}).json()
    assert {o["id"] for o in by_ticker} == {a, c}

    executed = client.get(API, params={"status_filter": "EJECUTADA"}).json()
    assert [o["id"] for o in executed] == [c]

    sorted_desc = client.get(API, params={"sort": "client_name", "direction": "desc"}).json()
    assert [o["client_name"] for o in sorted_desc] == ["Cliente C3", "Cliente C2", "Cliente C1"]

    by_client = client.get(API, params={"client_id": "C2"}).json()
    assert [o["id"] for o in by_client] == [b]

    by_status = client.get(API, params={"status": "ejecutada"}).json()
    assert [o["id"] for o in by_status] == [c]


def test_list_rejects_unknown_sort_field(client):
    assert client.get(API, params={"sort": "password"}).status_code == 400


def test_count_and_sent_listing(client):
    a = create(client)
    create(client)
    client.post(f"{API}/send-to-market", json={"orderIds": [a]})
    assert client.get(f"{API}/count", params={"status": "en proceso"}).json() == {"status": "en proceso", "count": 1}
    sent = client.get(f"{API}/sent").json()
    assert [o["id"] for o in sent] == [a]


def test_individual_market_order_endpoint(client):
    response = client.post(f"{API}/individual", json={
        "clientId": "C1", "assetId": "A2", "operationType": "buy",
        "quantity": 7, "price": 180, "isMarketOrder": True, "market": "BYMA",
    })
    assert response.status_code == 200
    detail = client.get(f"{API}/{response.json()['id']}").json()
    item = detail["line_items"][0]
    assert item["price"] == 0
    assert item["total"] is None


def test_individual_unknown_client_endpoint(client):
    response = client.post(f"{API}/individual", json={
        "clientId": "nobody", "assetId": "A1", "operationType": "sell",
        "quantity": 1, "price": 1, "market": "BYMA",
    })
    assert response.status_code == 400
    assert response.json() == {"error": "Client not found"}


def test_bulk_endpoint(client):
    response = client.post(f"{API}/bulk", json={
        "clientId": "C1",
        "orders": [
            {"assetId": "A1", "operationType": "buy", "quantity": 1, "price": 10, "market": "BYMA", "term": "CI"},
            {"assetId": "missing", "operationType": "sell", "quantity": 1, "price": 10, "market": "BYMA", "term": "CI"},
        ],
    })
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "1 orders created successfully"}


def test_swap_endpoint(client):
    response = client.post(f"{API}/swap", json={
        "clientId": "C1",
        "sellOrder": {"assetId": "A1", "quantity": 2, "price": 100, "market": "BYMA", "term": "CI"},
        "buyOrder": {"assetId": "A3", "quantity": 1, "price": 300, "market": "BYMA", "term": "CI"},
    })
    body = response.json()
    assert response.status_code == 200
    assert body["success"] is True
    assert client.get(f"{API}/{body['id']}").json()["operation_type"] == "Venta"
    assert len(client.get(API).json()) == 2


def test_send_to_market_failure_is_400(client):
    a = create(client)
    response = client.post(f"{API}/send-to-market", json={"orderIds": [a, "missing"]})
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["results"] == [{"id": a, "status": "sent"}]
    assert body["error"] == "Order not found"
