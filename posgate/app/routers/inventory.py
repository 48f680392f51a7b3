from fastapi import APIRouter, Depends

from ..deps import get_gateway, get_json_body, require_token
from ..gateway import Gateway
from ..rpc import call_rpc
from ..validation import optional_str, require_items

router = APIRouter(prefix="/api", tags=["inventory"])


@router.post("/stock-receive")
def stock_receive(
    token: str = Depends(require_token),
    payload: dict = Depends(get_json_body),
    gateway: Gateway = Depends(get_gateway),
):
    items = require_items(payload)
    call_rpc(
        gateway.for_user(token),
        "stock_receive",
        {
            "p_items": items,
            "p_reference": optional_str(payload, "reference"),
            "p_branch_id": optional_str(payload, "branch_id"),
        },
    )
    return {"status": "ok"}


@router.post("/stock-adjust")
def stock_adjust(
    token: str = Depends(require_token),
    payload: dict = Depends(get_json_body),
    gateway: Gateway = Depends(get_gateway),
):
    # Adjustments are signed deltas: negative for shrinkage, positive for found stock.
    items = require_items(payload, signed=True)
    call_rpc(
        gateway.for_user(token),
        "stock_adjust",
        {"p_items": items, "p_branch_id": optional_str(payload, "branch_id")},
    )
    return {"status": "ok"}
