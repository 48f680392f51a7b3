from fastapi import APIRouter, Depends

from ..deps import get_gateway, get_json_body, require_role
from ..gateway import Gateway, eq, neq
from ..jsonlog import json_log
from ..rpc import call_table
from ..validation import optional_flag, require_name

router = APIRouter(prefix="/api", tags=["branches"])


@router.post("/branch-upsert")
def branch_upsert(
    auth: dict = Depends(require_role("admin")),
    payload: dict = Depends(get_json_body),
    gateway: Gateway = Depends(get_gateway),
):
    name = require_name(payload)
    is_default = optional_flag(payload, "is_default")
    branch_id = payload.get("id")
    service = gateway.service()

    if branch_id:
        # Only one branch may be the default; clear the others before promoting this one.
        if is_default:
            call_table(
                "branches",
                lambda: service.update("branches", {"is_default": False}, {"is_default": eq(True), "id": neq(branch_id)}),
            )
        call_table(
            "branches",
            lambda: service.update("branches", {"name": name, "is_default": is_default}, {"id": eq(branch_id)}),
        )
        json_log("info", "branch.updated", branch_id=branch_id, user_id=auth["user_id"], is_default=is_default)
        return {"status": "ok", "branch_id": branch_id}

    if is_default:
        call_table("branches", lambda: service.update("branches", {"is_default": False}, {"is_default": eq(True)}))
    row = call_table("branches", lambda: service.insert("branches", {"name": name, "is_default": is_default}))
    new_id = (row or {}).get("id")
    json_log("info", "branch.created", branch_id=new_id, user_id=auth["user_id"], is_default=is_default)
    return {"status": "ok", "branch_id": new_id}
