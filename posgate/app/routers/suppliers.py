from fastapi import APIRouter, Depends

from ..deps import get_gateway, get_json_body, require_role
from ..gateway import Gateway, eq
from ..jsonlog import json_log
from ..rpc import call_table
from ..validation import require_name, require_ref

router = APIRouter(prefix="/api", tags=["suppliers"])

# Cashiers may sell but not manage suppliers.
require_supplier_manager = require_role(exclude=("cashier",))


@router.post("/supplier-upsert")
def supplier_upsert(
    auth: dict = Depends(require_supplier_manager),
    payload: dict = Depends(get_json_body),
    gateway: Gateway = Depends(get_gateway),
):
    name = require_name(payload)
    values = {
        "name": name,
        "phone": payload.get("phone"),
        "email": payload.get("email"),
    }
    service = gateway.service()
    supplier_id = payload.get("id")
    if supplier_id:
        call_table("suppliers", lambda: service.update("suppliers", values, {"id": eq(supplier_id)}))
        json_log("info", "supplier.updated", supplier_id=supplier_id, user_id=auth["user_id"])
        return {"status": "ok", "supplier_id": supplier_id}

    row = call_table("suppliers", lambda: service.insert("suppliers", values))
    new_id = (row or {}).get("id")
    json_log("info", "supplier.created", supplier_id=new_id, user_id=auth["user_id"])
    return {"status": "ok", "supplier_id": new_id}


@router.post("/supplier-delete")
def supplier_delete(
    auth: dict = Depends(require_supplier_manager),
    payload: dict = Depends(get_json_body),
    gateway: Gateway = Depends(get_gateway),
):
    supplier_id = require_ref(payload, "id", "Supplier ID is required.")
    service = gateway.service()
    call_table("suppliers", lambda: service.delete("suppliers", {"id": eq(supplier_id)}))
    json_log("info", "supplier.deleted", supplier_id=supplier_id, user_id=auth["user_id"])
    return {"status": "ok"}
