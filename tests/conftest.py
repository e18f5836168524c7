import json
from typing import Any, Callable, Dict

import pytest

import webhook_config
from event_recorder import MemoryRecorder
from signature import sign_payload

TEST_SECRET = "whsec_test_secret"

CONFIG_ENV_KEYS = (
    "STRIPE_WEBHOOK_SECRET",
    "STRIPE_WEBHOOK_SECRET_ARN",
    "SIGNATURE_TOLERANCE_SECONDS",
    "ACK_MESSAGE_VERSION",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def isolate_env(monkeypatch):
    """
    Start every test with the signature gate off and default settings,
    and forget any Secrets Manager client or cached secret.
    """
    for key in CONFIG_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("AWS_DEFAULT_REGION", "ap-northeast-1")
    monkeypatch.setattr(webhook_config, "_secrets_client", None)
    monkeypatch.setattr(webhook_config, "_secret_cache", {})
    yield


@pytest.fixture
def recorder() -> MemoryRecorder:
    return MemoryRecorder()


@pytest.fixture
def stripe_payload() -> str:
    """A payment_intent.succeeded event serialized the way Stripe sends it."""
    return json.dumps({
        "id": "evt_1",
        "type": "payment_intent.succeeded",
        "data": {"object": {"id": "pi_1", "amount": 2000, "currency": "usd"}},
    })


@pytest.fixture
def make_signed_event() -> Callable[..., Dict[str, Any]]:
    """
    Return a helper building an API-Gateway style envelope with a valid signature.
    Usage: event = make_signed_event(payload, secret=TEST_SECRET, timestamp=None)
    """
    def _make(payload: str, secret: str = TEST_SECRET, timestamp: int = None) -> Dict[str, Any]:
        return {
            "body": payload,
            "headers": {"Stripe-Signature": sign_payload(payload, secret, timestamp)},
        }
    return _make


def response_body(response: Dict[str, Any]) -> Dict[str, Any]:
    return json.loads(response["body"])
