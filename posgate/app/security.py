"""
Bearer token helpers.

WARNING: nothing in this module verifies a token signature. `peek_token_subject`
only reads the claims segment of a JWT-shaped string so callers can reject
obviously malformed tokens early and attribute log records to a subject.
It must never be the reason a privileged action is allowed; the gateway's
session lookup (`Gateway.get_user`) is the only verification step.
"""
import base64
import binascii
import json
from typing import Any, Optional


def _b64url_to_b64(segment: str) -> str:
    out = segment.replace("-", "+").replace("_", "/")
    return out + "=" * ((4 - len(out) % 4) % 4)


def peek_token_claims(token: str) -> Optional[dict[str, Any]]:
    parts = (token or "").split(".")
    if len(parts) != 3:
        return None
    try:
        raw = base64.b64decode(_b64url_to_b64(parts[1]), validate=True)
        claims = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None
    return claims if isinstance(claims, dict) else None


def peek_token_subject(token: str) -> Optional[str]:
    """Unverified `sub` claim of a JWT-shaped token, or None."""
    claims = peek_token_claims(token)
    if not claims:
        return None
    sub = claims.get("sub")
    return sub if isinstance(sub, str) else None
