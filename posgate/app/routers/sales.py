from fastapi import APIRouter, Depends

from ..deps import get_gateway, get_json_body, require_token
from ..gateway import Gateway
from ..rpc import call_rpc, first_row
from ..validation import optional_str, require_items, require_text

router = APIRouter(prefix="/api", tags=["sales"])


@router.post("/checkout")
def checkout(
    token: str = Depends(require_token),
    payload: dict = Depends(get_json_body),
    gateway: Gateway = Depends(get_gateway),
):
    payment_method = require_text(payload, "payment_method", "Payment method is required.")
    items = require_items(payload)
    data = call_rpc(
        gateway.for_user(token),
        "checkout_sale",
        {
            "p_payment_method": payment_method,
            "p_items": items,
            "p_branch_id": optional_str(payload, "branch_id"),
        },
    )
    return {"sale": first_row(data)}


@router.post("/manual-sale")
def manual_sale(
    token: str = Depends(require_token),
    payload: dict = Depends(get_json_body),
    gateway: Gateway = Depends(get_gateway),
):
    items = require_items(payload)
    data = call_rpc(
        gateway.for_user(token),
        "manual_sale",
        {"p_items": items, "p_branch_id": optional_str(payload, "branch_id")},
    )
    return {"sale": first_row(data)}
