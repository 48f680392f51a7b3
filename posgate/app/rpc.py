from typing import Any, Callable, Optional

from .errors import UpstreamRejected, UpstreamUnavailable
from .gateway import GatewayClient, GatewayError, GatewayUnavailable
from .jsonlog import json_log

# Stored procedures signal auth failures only through these message fragments.
# They are part of the wire contract with the database and must match exactly.
NOT_AUTHENTICATED = "Not authenticated"
NOT_ALLOWED = "Not allowed"


def classify_rpc_error(message: Optional[str]) -> int:
    text = message or ""
    if NOT_AUTHENTICATED in text:
        return 401
    if NOT_ALLOWED in text:
        return 403
    return 400


def _rejected(fn: str, exc: GatewayError) -> UpstreamRejected:
    message = exc.message or "Request failed."
    status_code = classify_rpc_error(message)
    json_log("warning", "gateway.rejected", target=fn, status_code=status_code, upstream_status=exc.status_code, code=exc.code)
    return UpstreamRejected(message, status_code=status_code)


def call_rpc(client: GatewayClient, fn: str, args: dict) -> Any:
    try:
        return client.rpc(fn, args)
    except GatewayError as exc:
        raise _rejected(fn, exc) from exc
    except GatewayUnavailable as exc:
        json_log("error", "gateway.unavailable", target=fn, error=str(exc))
        raise UpstreamUnavailable() from exc


def call_table(target: str, op: Callable[[], Any]) -> Any:
    """Run one table read/write with the same error translation as call_rpc."""
    try:
        return op()
    except GatewayError as exc:
        raise _rejected(target, exc) from exc
    except GatewayUnavailable as exc:
        json_log("error", "gateway.unavailable", target=target, error=str(exc))
        raise UpstreamUnavailable() from exc


def first_row(data: Any) -> Any:
    if isinstance(data, list):
        return data[0] if data else None
    return data
