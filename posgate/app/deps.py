import json
from typing import Any, Mapping, Optional

from fastapi import Depends, Request

from .config import Settings
from .errors import Unauthenticated, Unauthorized, ValidationFailed
from .gateway import Gateway, GatewayError, eq
from .jsonlog import json_log
from .security import peek_token_subject
from .validation import parse_role


def extract_bearer_token(headers: Optional[Mapping[str, str]]) -> Optional[str]:
    if not headers:
        return None
    header = None
    for key, value in headers.items():
        if str(key).lower() == "authorization":
            header = value
            break
    if not header:
        return None
    token = header[len("Bearer "):] if header.startswith("Bearer ") else header
    return token.strip() or None


def decode_body(raw: Any) -> Any:
    """Raw bytes/text are parsed as JSON; an already-parsed body passes through."""
    if raw is None:
        return None
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")
    if isinstance(raw, str):
        if not raw.strip():
            return None
        return json.loads(raw)
    return raw


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_gateway(request: Request) -> Gateway:
    return request.app.state.gateway


def require_token(request: Request) -> str:
    token = extract_bearer_token(request.headers)
    if not token:
        raise Unauthenticated("Missing auth token.")
    return token


async def get_json_body(request: Request) -> dict:
    try:
        payload = decode_body(await request.body())
    except (UnicodeDecodeError, ValueError):
        raise ValidationFailed("Invalid JSON body.")
    if payload is None:
        raise ValidationFailed("Missing request body.")
    if not isinstance(payload, dict):
        raise ValidationFailed("Request body must be a JSON object.")
    return payload


def require_role(*allowed: str, exclude: tuple = ()):
    """
    Role gate for writes done with the service key.

    The session is verified by the gateway; the unverified subject claim is only
    used to reject malformed tokens before any network call.
    """
    def _dep(token: str = Depends(require_token), gateway: Gateway = Depends(get_gateway)) -> dict:
        subject = peek_token_subject(token)
        if not subject:
            raise Unauthenticated("Invalid auth token.")
        try:
            user = gateway.get_user(token)
        except GatewayError:
            raise Unauthenticated("Invalid auth token.")
        user_id = str(user.get("id") or "")
        if user_id != subject:
            raise Unauthenticated("Invalid auth token.")

        try:
            profile = gateway.service().select_single("profiles", "role", {"user_id": eq(user_id)})
        except GatewayError as exc:
            json_log("warning", "auth.role_lookup_failed", user_id=user_id, error=exc.message)
            profile = None
        role = parse_role(profile.get("role")) if isinstance(profile, dict) else None
        if not role or (allowed and role not in allowed) or role in exclude:
            json_log("info", "auth.role_denied", user_id=user_id, role=role)
            raise Unauthorized("Not authorized.")
        return {"user_id": user_id, "role": role}
    return _dep
