from fastapi import APIRouter, Depends

from ..deps import get_gateway, get_json_body, require_token
from ..gateway import Gateway
from ..rpc import call_rpc
from ..validation import optional_str, parse_return_type, require_items

router = APIRouter(prefix="/api", tags=["returns"])


@router.post("/return-process")
def return_process(
    token: str = Depends(require_token),
    payload: dict = Depends(get_json_body),
    gateway: Gateway = Depends(get_gateway),
):
    return_type = parse_return_type(payload.get("return_type"))
    items = require_items(payload)
    data = call_rpc(
        gateway.for_user(token),
        "process_return",
        {
            "p_return_type": return_type,
            "p_reason": optional_str(payload, "reason"),
            "p_items": items,
            "p_branch_id": optional_str(payload, "branch_id"),
        },
    )
    return {"status": "ok", "return_id": data}
