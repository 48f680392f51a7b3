from fastapi import APIRouter, Depends

from ..deps import get_gateway, get_json_body, require_token
from ..gateway import Gateway
from ..rpc import call_rpc
from ..validation import optional_str, require_items, require_ref

router = APIRouter(prefix="/api", tags=["purchases"])


@router.post("/purchase-order-create")
def purchase_order_create(
    token: str = Depends(require_token),
    payload: dict = Depends(get_json_body),
    gateway: Gateway = Depends(get_gateway),
):
    supplier_id = require_ref(payload, "supplier_id", "Supplier is required.")
    items = require_items(payload)
    data = call_rpc(
        gateway.for_user(token),
        "create_purchase_order",
        {
            "p_supplier_id": supplier_id,
            "p_reference": optional_str(payload, "reference"),
            "p_items": items,
            "p_branch_id": optional_str(payload, "branch_id"),
        },
    )
    return {"status": "ok", "purchase_order_id": data}


@router.post("/purchase-order-receive")
def purchase_order_receive(
    token: str = Depends(require_token),
    payload: dict = Depends(get_json_body),
    gateway: Gateway = Depends(get_gateway),
):
    # pending -> received happens inside the procedure, together with the stock increments.
    purchase_order_id = require_ref(payload, "purchase_order_id", "Purchase order ID is required.")
    call_rpc(
        gateway.for_user(token),
        "receive_purchase_order",
        {"p_purchase_order_id": purchase_order_id},
    )
    return {"status": "ok"}
