from fastapi import APIRouter, Depends

from ..deps import get_gateway, get_json_body, require_token
from ..gateway import Gateway
from ..rpc import call_rpc
from ..validation import optional_str, require_name, require_price

router = APIRouter(prefix="/api", tags=["products"])


def _product_args(payload: dict, name: str, price) -> dict:
    # Keys mirror the product_upsert(...) procedure signature.
    return {
        "p_id": payload.get("id") or None,
        "p_name": name,
        "p_sku": payload.get("sku"),
        "p_barcode": payload.get("barcode"),
        "p_category": payload.get("category"),
        "p_price": price,
        "p_cost": payload.get("cost"),
        "p_stock_on_hand": payload.get("stock_on_hand") if payload.get("stock_on_hand") is not None else 0,
        "p_low_stock_threshold": payload.get("low_stock_threshold") if payload.get("low_stock_threshold") is not None else 0,
        "p_is_active": payload.get("is_active") if payload.get("is_active") is not None else True,
        "p_branch_id": optional_str(payload, "branch_id"),
    }


@router.post("/product-upsert")
def product_upsert(
    token: str = Depends(require_token),
    payload: dict = Depends(get_json_body),
    gateway: Gateway = Depends(get_gateway),
):
    name = require_name(payload)
    price = require_price(payload)
    args = _product_args(payload, name, price)
    data = call_rpc(gateway.for_user(token), "product_upsert", args)
    # An update keeps the caller's id; an insert reports the id the procedure assigned.
    return {"status": "ok", "product_id": args["p_id"] or data}
