from posgate.app.gateway import GatewayError

ITEMS = [{"product_id": "p1", "quantity": 12, "cost": 0.8}]


def test_purchase_order_create(client, gateway, bearer):
    gateway.user_client.results["create_purchase_order"] = "po-1"

    res = client.post(
        "/api/purchase-order-create",
        json={"supplier_id": "s-1", "reference": "INV-77", "items": ITEMS},
        headers=bearer,
    )

    assert res.status_code == 200
    assert res.json() == {"status": "ok", "purchase_order_id": "po-1"}
    assert gateway.user_client.calls == [
        (
            "rpc",
            "create_purchase_order",
            {"p_supplier_id": "s-1", "p_reference": "INV-77", "p_items": ITEMS, "p_branch_id": None},
        )
    ]


def test_purchase_order_requires_supplier_then_items(client, gateway, bearer):
    res = client.post("/api/purchase-order-create", json={"items": ITEMS}, headers=bearer)
    assert res.status_code == 400
    assert res.json() == {"error": "Supplier is required."}

    res = client.post("/api/purchase-order-create", json={"supplier_id": "s-1", "items": []}, headers=bearer)
    assert res.status_code == 400
    assert res.json() == {"error": "At least one item is required."}

    assert gateway.network_calls() == 0


def test_purchase_order_receive(client, gateway, bearer):
    res = client.post("/api/purchase-order-receive", json={"purchase_order_id": "po-1"}, headers=bearer)

    assert res.status_code == 200
    assert res.json() == {"status": "ok"}
    assert gateway.user_client.calls == [("rpc", "receive_purchase_order", {"p_purchase_order_id": "po-1"})]


def test_purchase_order_receive_requires_id(client, gateway, bearer):
    res = client.post("/api/purchase-order-receive", json={}, headers=bearer)

    assert res.status_code == 400
    assert res.json() == {"error": "Purchase order ID is required."}
    assert gateway.network_calls() == 0


def test_already_received_order_error_passes_through(client, gateway, bearer):
    gateway.user_client.errors["receive_purchase_order"] = GatewayError("Purchase order already received")

    res = client.post("/api/purchase-order-receive", json={"purchase_order_id": "po-1"}, headers=bearer)

    assert res.status_code == 400
    assert res.json() == {"error": "Purchase order already received"}


def test_receive_not_allowed(client, gateway, bearer):
    gateway.user_client.errors["receive_purchase_order"] = GatewayError("Not allowed")

    res = client.post("/api/purchase-order-receive", json={"purchase_order_id": "po-1"}, headers=bearer)

    assert res.status_code == 403
