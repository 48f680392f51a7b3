from fastapi import APIRouter, Depends
from fastapi.routing import APIRoute

from ..deps import get_gateway, require_token
from ..gateway import Gateway, GatewayError, GatewayUnavailable
from .branches import router as branches_router
from .inventory import router as inventory_router
from .products import router as products_router
from .purchases import router as purchases_router
from .returns import router as returns_router
from .sales import router as sales_router
from .suppliers import router as suppliers_router

router = APIRouter(prefix="/api", tags=["system"])

OPERATION_ROUTERS = (
    branches_router,
    suppliers_router,
    products_router,
    sales_router,
    purchases_router,
    inventory_router,
    returns_router,
)

# (label, table, status when the read fails)
READ_PROBES = (
    ("Products read", "products_public", "error"),
    ("Branches read", "branches", "error"),
    ("Stock movements read", "stock_movements", "warn"),
)


def _probe(client, table: str, failure_status: str) -> tuple[str, str]:
    try:
        client.select(table, "id", limit=1)
    except GatewayError as exc:
        return failure_status, exc.message or "Request failed."
    except GatewayUnavailable:
        return failure_status, "Network error"
    return "ok", "OK"


def operation_names() -> list[str]:
    ops = []
    for op_router in OPERATION_ROUTERS:
        for route in op_router.routes:
            if isinstance(route, APIRoute) and "POST" in route.methods and route.path.startswith("/api/"):
                ops.append(route.path[len("/api/"):])
    return sorted(ops)


@router.get("/system-check")
def system_check(
    token: str = Depends(require_token),
    gateway: Gateway = Depends(get_gateway),
):
    client = gateway.for_user(token)
    checks = []
    for label, table, failure_status in READ_PROBES:
        status, detail = _probe(client, table, failure_status)
        checks.append({"name": label, "status": status, "detail": detail})
    degraded = any(c["status"] == "error" for c in checks)
    return {
        "status": "degraded" if degraded else "ok",
        "checks": checks,
        "operations": operation_names(),
    }
