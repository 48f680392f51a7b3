import base64
import json
import os
import sys

import pytest
from fastapi.testclient import TestClient


# Allow running pytest from the repo root without installing the package.
# Tests import `posgate.*`, which requires the repo root on sys.path.
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from posgate.app.config import Settings  # noqa: E402
from posgate.app.gateway import GatewayError  # noqa: E402
from posgate.app.main import create_app  # noqa: E402


def _b64url(data: dict) -> str:
    raw = json.dumps(data).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def make_token(claims: dict) -> str:
    return ".".join([_b64url({"alg": "HS256", "typ": "JWT"}), _b64url(claims), "signature"])


class FakeClient:
    """Stands in for GatewayClient; records every call in order."""

    def __init__(self):
        self.calls = []
        self.results = {}
        self.errors = {}

    def _call(self, key, call):
        self.calls.append(call)
        if key in self.errors:
            raise self.errors[key]
        return self.results.get(key)

    def rpc(self, fn, args):
        return self._call(fn, ("rpc", fn, args))

    def select(self, table, columns="*", filters=None, limit=None):
        return self._call(table, ("select", table, columns, filters, limit)) or []

    def select_single(self, table, columns, filters):
        return self._call(table, ("select_single", table, columns, filters))

    def insert(self, table, values, returning="id"):
        return self._call(table, ("insert", table, values))

    def update(self, table, values, filters):
        return self._call(table, ("update", table, values, filters))

    def delete(self, table, filters):
        return self._call(table, ("delete", table, filters))


class FakeGateway:
    def __init__(self):
        self.service_client = FakeClient()
        self.user_client = FakeClient()
        self.anon_client = FakeClient()
        self.users = {}
        self.get_user_calls = []
        self.user_tokens = []
        self.outage = None

    def service(self):
        return self.service_client

    def anon(self):
        return self.anon_client

    def for_user(self, token):
        self.user_tokens.append(token)
        return self.user_client

    def get_user(self, token):
        self.get_user_calls.append(token)
        if token in self.users:
            return self.users[token]
        raise GatewayError("invalid JWT", status_code=401)

    def sign_in(self, role, user_id="user-1"):
        token = make_token({"sub": user_id, "role": "authenticated"})
        self.users[token] = {"id": user_id}
        self.service_client.results["profiles"] = {"role": role}
        return token

    def health(self):
        if self.outage:
            raise self.outage

    def network_calls(self):
        return len(self.get_user_calls) + len(self.service_client.calls) + len(self.user_client.calls)


TEST_SETTINGS = Settings(
    gateway_url="https://gateway.test/",
    anon_key="anon-key",
    service_key="service-key",
    env="test",
)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def client(gateway):
    app = create_app(settings=TEST_SETTINGS, gateway=gateway)
    return TestClient(app)


@pytest.fixture
def user_token():
    return make_token({"sub": "user-1", "role": "authenticated"})


@pytest.fixture
def bearer(user_token):
    return {"Authorization": f"Bearer {user_token}"}


@pytest.fixture
def jwt():
    return make_token


@pytest.fixture
def make_client(gateway):
    def _make(**kwargs):
        return TestClient(create_app(settings=TEST_SETTINGS, gateway=gateway), **kwargs)
    return _make
