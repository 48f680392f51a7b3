import pytest


def _auth(token):
    return {"Authorization": f"Bearer {token}"}


def _supplier_calls(gateway):
    return [c for c in gateway.service_client.calls if c[1] == "suppliers"]


def test_cashier_cannot_delete_suppliers(client, gateway):
    token = gateway.sign_in("cashier")

    res = client.post("/api/supplier-delete", json={"id": "s-1"}, headers=_auth(token))

    assert res.status_code == 403
    assert res.json() == {"error": "Not authorized."}
    assert _supplier_calls(gateway) == []


@pytest.mark.parametrize("role", ["admin", "manager"])
def test_managers_and_admins_can_delete(client, gateway, role):
    token = gateway.sign_in(role)

    res = client.post("/api/supplier-delete", json={"id": "s-1"}, headers=_auth(token))

    assert res.status_code == 200
    assert res.json() == {"status": "ok"}
    assert _supplier_calls(gateway) == [("delete", "suppliers", {"id": "eq.s-1"})]


def test_unknown_role_is_denied(client, gateway):
    token = gateway.sign_in("owner")

    res = client.post("/api/supplier-delete", json={"id": "s-1"}, headers=_auth(token))

    assert res.status_code == 403


def test_delete_requires_supplier_id(client, gateway):
    token = gateway.sign_in("manager")

    res = client.post("/api/supplier-delete", json={}, headers=_auth(token))

    assert res.status_code == 400
    assert res.json() == {"error": "Supplier ID is required."}
    assert _supplier_calls(gateway) == []


def test_supplier_insert(client, gateway):
    token = gateway.sign_in("manager")
    gateway.service_client.results["suppliers"] = {"id": "s-new"}

    res = client.post(
        "/api/supplier-upsert",
        json={"name": " Fresh Farms ", "phone": "+1 555 0100"},
        headers=_auth(token),
    )

    assert res.status_code == 200
    assert res.json() == {"status": "ok", "supplier_id": "s-new"}
    assert _supplier_calls(gateway) == [
        ("insert", "suppliers", {"name": "Fresh Farms", "phone": "+1 555 0100", "email": None}),
    ]


def test_supplier_update(client, gateway):
    token = gateway.sign_in("admin")

    res = client.post(
        "/api/supplier-upsert",
        json={"id": "s-4", "name": "Fresh Farms", "email": "orders@fresh.test"},
        headers=_auth(token),
    )

    assert res.json() == {"status": "ok", "supplier_id": "s-4"}
    assert _supplier_calls(gateway) == [
        ("update", "suppliers", {"name": "Fresh Farms", "phone": None, "email": "orders@fresh.test"}, {"id": "eq.s-4"}),
    ]


def test_supplier_name_required(client, gateway):
    token = gateway.sign_in("admin")

    res = client.post("/api/supplier-upsert", json={"phone": "1"}, headers=_auth(token))

    assert res.status_code == 400
    assert res.json() == {"error": "Name is required."}


def test_cashier_cannot_upsert_suppliers(client, gateway):
    token = gateway.sign_in("cashier")

    res = client.post("/api/supplier-upsert", json={"name": "X"}, headers=_auth(token))

    assert res.status_code == 403
