import base64
import hashlib
import hmac
import json
import time
from collections.abc import Callable, Iterator
from typing import Any

import pytest
from fastapi.testclient import TestClient

from entitlement_gate.adapters.lookup_stub import LookupStubAdapter
from entitlement_gate.adapters.memory_store import InMemoryEntitlementStore
from entitlement_gate.api.deps import (
    Settings,
    get_entitlement_store,
    get_keyed_locks,
    get_lookup,
    get_replay_guard,
    get_rules,
    get_settings,
)
from entitlement_gate.app_shell.replay_guard import ReplayGuard
from entitlement_gate.components.reconciler import KeyedLocks
from entitlement_gate.rules.models import Rules

WEBHOOK_SECRET = "whsec_" + base64.b64encode(b"integration-test-webhook-secret!").decode()

SignFn = Callable[..., dict[str, str]]


def _sign(
    body: bytes,
    secret: str,
    msg_id: str,
    ts: int | None = None,
) -> dict[str, str]:
    timestamp = str(ts if ts is not None else int(time.time()))
    key = base64.b64decode(secret.removeprefix("whsec_"))
    digest = hmac.new(key, f"{msg_id}.{timestamp}.".encode() + body, hashlib.sha256).digest()
    return {
        "webhook-id": msg_id,
        "webhook-timestamp": timestamp,
        "webhook-signature": "v1," + base64.b64encode(digest).decode(),
        "content-type": "application/json",
    }


@pytest.fixture
def webhook_secret() -> str:
    return WEBHOOK_SECRET


@pytest.fixture
def sign_webhook(webhook_secret: str) -> SignFn:
    """Returns sign(body, msg_id=..., ts=..., secret=...) -> request headers."""
    counter = iter(range(1, 1_000_000))

    def sign(
        body: bytes,
        msg_id: str | None = None,
        ts: int | None = None,
        secret: str | None = None,
    ) -> dict[str, str]:
        return _sign(body, secret or webhook_secret, msg_id or f"msg_{next(counter)}", ts)

    return sign


@pytest.fixture
def make_payload() -> Callable[..., bytes]:
    """Returns payload(event_type, **data) -> JSON body bytes."""

    def payload(event_type: str, email: str | None = None, **data: Any) -> bytes:
        if email is not None:
            data["customer"] = {"email": email, "name": "Test Customer"}
        return json.dumps({"type": event_type, "data": data}).encode()

    return payload


@pytest.fixture
def rules() -> Rules:
    return Rules()


@pytest.fixture
def memory_store() -> InMemoryEntitlementStore:
    return InMemoryEntitlementStore()


@pytest.fixture
def lookup() -> LookupStubAdapter:
    return LookupStubAdapter()


@pytest.fixture
def replay_guard(rules: Rules) -> ReplayGuard:
    return ReplayGuard(rules.replay)


@pytest.fixture
def settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Any, webhook_secret: str) -> Settings:
    monkeypatch.setenv("DODO_PAYMENTS_WEBHOOK_KEY", webhook_secret)
    monkeypatch.setenv("DODO_PAYMENTS_ENVIRONMENT", "test_mode")
    monkeypatch.setenv("ENTITLEMENT_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("DODO_PAYMENTS_RETURN_URL", raising=False)
    monkeypatch.delenv("DODO_PAYMENTS_API_KEY", raising=False)
    return Settings()


@pytest.fixture
def client(
    settings: Settings,
    rules: Rules,
    memory_store: InMemoryEntitlementStore,
    lookup: LookupStubAdapter,
    replay_guard: ReplayGuard,
) -> Iterator[TestClient]:
    """App client wired to in-memory collaborators (no redirects followed)."""
    from entitlement_gate.api.main import app

    locks = KeyedLocks()
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_rules] = lambda: rules
    app.dependency_overrides[get_entitlement_store] = lambda: memory_store
    app.dependency_overrides[get_keyed_locks] = lambda: locks
    app.dependency_overrides[get_replay_guard] = lambda: replay_guard
    app.dependency_overrides[get_lookup] = lambda: lookup

    yield TestClient(app, follow_redirects=False)

    app.dependency_overrides.clear()
