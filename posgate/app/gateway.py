"""
Client for the managed Postgres gateway.

The gateway exposes PostgREST-style table access and stored procedures under
`/rest/v1` and a session service under `/auth/v1`. Every call is a single
blocking HTTP request; nothing here retries.
"""
import json
import socket
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Optional

from .config import Settings

OBJECT_MEDIA_TYPE = "application/vnd.pgrst.object+json"


class GatewayError(Exception):
    """The gateway answered with an error (business or auth rejection)."""

    def __init__(self, message: str, status_code: int = 400, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code


class GatewayUnavailable(Exception):
    """The gateway could not be reached or returned something unreadable."""


def eq(value: Any) -> str:
    return f"eq.{_filter_value(value)}"


def neq(value: Any) -> str:
    return f"neq.{_filter_value(value)}"


def _filter_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _error_message(body: str) -> tuple[str, Optional[str]]:
    try:
        data = json.loads(body) if body else {}
    except ValueError:
        return (body.strip(), None)
    if not isinstance(data, dict):
        return (str(data), None)
    # PostgREST uses `message`; the auth service uses `msg` or `error_description`.
    for key in ("message", "msg", "error_description", "error"):
        val = data.get(key)
        if isinstance(val, str) and val.strip():
            code = data.get("code") if data.get("code") is not None else data.get("error_code")
            return (val, str(code) if code is not None else None)
    return ("", None)


class GatewayClient:
    def __init__(self, base_url: str, api_key: str, access_token: Optional[str] = None, timeout: float = 15.0):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.access_token = access_token
        self.timeout = timeout

    def _headers(self, extra: Optional[dict] = None) -> dict:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.access_token or self.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if extra:
            headers.update(extra)
        return headers

    def _url(self, path: str, params: Optional[dict] = None) -> str:
        url = f"{self.base_url}/{path.lstrip('/')}"
        if params:
            url += "?" + urllib.parse.urlencode(params)
        return url

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict] = None,
        payload: Any = None,
        headers: Optional[dict] = None,
    ) -> Any:
        data = json.dumps(payload, default=str).encode("utf-8") if payload is not None else None
        req = urllib.request.Request(
            self._url(path, params),
            data=data,
            headers=self._headers(headers),
            method=method,
        )
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                raw = resp.read() if resp else b""
        except urllib.error.HTTPError as e:
            raw = e.read().decode("utf-8", errors="replace") if e.fp else ""
            message, code = _error_message(raw)
            raise GatewayError(message or e.reason or "Request failed.", status_code=e.code, code=code) from e
        except (urllib.error.URLError, socket.timeout, ConnectionError) as e:
            raise GatewayUnavailable(str(e)) from e
        if not raw:
            return None
        try:
            return json.loads(raw.decode("utf-8"))
        except ValueError as e:
            raise GatewayUnavailable("gateway returned a non-JSON response") from e

    # Stored procedures

    def rpc(self, fn: str, args: dict) -> Any:
        return self.request("POST", f"rest/v1/rpc/{fn}", payload=args)

    # Tables

    def select(self, table: str, columns: str = "*", filters: Optional[dict] = None, limit: Optional[int] = None) -> list:
        params = {"select": columns, **(filters or {})}
        if limit is not None:
            params["limit"] = str(limit)
        rows = self.request("GET", f"rest/v1/{table}", params=params)
        return rows or []

    def select_single(self, table: str, columns: str, filters: dict) -> dict:
        # The object media type makes the gateway reject zero or multiple rows.
        return self.request(
            "GET",
            f"rest/v1/{table}",
            params={"select": columns, **filters},
            headers={"Accept": OBJECT_MEDIA_TYPE},
        )

    def insert(self, table: str, values: dict, returning: str = "id") -> dict:
        return self.request(
            "POST",
            f"rest/v1/{table}",
            params={"select": returning},
            payload=values,
            headers={"Prefer": "return=representation", "Accept": OBJECT_MEDIA_TYPE},
        )

    def update(self, table: str, values: dict, filters: dict) -> None:
        if not filters:
            raise ValueError("update requires at least one filter")
        self.request("PATCH", f"rest/v1/{table}", params=filters, payload=values, headers={"Prefer": "return=minimal"})

    def delete(self, table: str, filters: dict) -> None:
        if not filters:
            raise ValueError("delete requires at least one filter")
        self.request("DELETE", f"rest/v1/{table}", params=filters, headers={"Prefer": "return=minimal"})


class Gateway:
    """Builds gateway clients for the three credentials a request can use."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def _client(self, api_key: str, access_token: Optional[str] = None) -> GatewayClient:
        return GatewayClient(
            self.settings.gateway_url,
            api_key,
            access_token=access_token,
            timeout=self.settings.gateway_timeout,
        )

    def service(self) -> GatewayClient:
        # Bypasses row-level security. Only use after a role gate.
        return self._client(self.settings.service_key)

    def anon(self) -> GatewayClient:
        return self._client(self.settings.anon_key)

    def for_user(self, access_token: str) -> GatewayClient:
        # Row-level security and the procedures' own checks apply to this caller.
        return self._client(self.settings.anon_key, access_token=access_token)

    def get_user(self, access_token: str) -> dict:
        user = self.for_user(access_token).request("GET", "auth/v1/user")
        if not isinstance(user, dict) or not user.get("id"):
            raise GatewayError("Invalid auth token.", status_code=401)
        return user

    def health(self) -> None:
        self.anon().request("GET", "auth/v1/health")
