"""
Webhook signature verification.

Checks a provider-signed webhook against the shared secret using the
Standard Webhooks scheme (the one Dodo Payments signs with): HMAC-SHA256
over "{webhook-id}.{webhook-timestamp}.{raw body}", keyed by the base64
secret with its "whsec_" prefix removed. The HMAC and the provider's
timestamp tolerance are delegated to the standardwebhooks library.

Key behaviors:
- Fails closed: an empty secret is a ConfigurationError, never a pass
- Operates on the raw request bytes only; re-serialized bodies are refused
- Stateless and side-effect free
"""

from __future__ import annotations

import binascii
import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass

from standardwebhooks import Webhook, WebhookVerificationError

from entitlement_gate.domain.errors import (
    ConfigurationError,
    InvalidSignatureError,
    MalformedPayloadError,
)

logger = logging.getLogger(__name__)

HEADER_ID = "webhook-id"
HEADER_TIMESTAMP = "webhook-timestamp"
HEADER_SIGNATURE = "webhook-signature"


@dataclass(frozen=True)
class WebhookHeaders:
    """The signature header triplet of one delivery."""

    id: str | None
    timestamp: str | None
    signature: str | None

    @classmethod
    def from_mapping(cls, headers: Mapping[str, str]) -> WebhookHeaders:
        """Pick the triplet out of request headers, case-insensitively."""
        lowered = {k.lower(): v for k, v in headers.items()}
        return cls(
            id=lowered.get(HEADER_ID),
            timestamp=lowered.get(HEADER_TIMESTAMP),
            signature=lowered.get(HEADER_SIGNATURE),
        )

    def as_dict(self) -> dict[str, str]:
        return {
            HEADER_ID: self.id or "",
            HEADER_TIMESTAMP: self.timestamp or "",
            HEADER_SIGNATURE: self.signature or "",
        }


def _build_webhook(secret: str | None) -> Webhook:
    if not secret or not secret.strip():
        raise ConfigurationError(
            "Webhook secret is not configured", setting="DODO_PAYMENTS_WEBHOOK_KEY"
        )
    try:
        return Webhook(secret.strip())
    except (binascii.Error, ValueError, RuntimeError) as e:
        raise ConfigurationError(
            f"Webhook secret is not valid signing material: {e}",
            setting="DODO_PAYMENTS_WEBHOOK_KEY",
        ) from e


def verify_webhook(raw_body: bytes, headers: WebhookHeaders, secret: str | None) -> None:
    """
    Verify a webhook delivery.

    Args:
        raw_body: Exact request body bytes as received
        headers: Signature header triplet
        secret: Shared signing secret ("whsec_..." or bare base64)

    Raises:
        TypeError: raw_body is not bytes
        ConfigurationError: secret unset or unusable
        InvalidSignatureError: headers missing, stale timestamp, or no matching signature
        MalformedPayloadError: signature matches but the body is not JSON
    """
    if not isinstance(raw_body, bytes | bytearray):
        raise TypeError("verify_webhook requires the raw request body as bytes")

    webhook = _build_webhook(secret)

    if not (headers.id and headers.timestamp and headers.signature):
        raise InvalidSignatureError("Missing webhook signature headers")

    try:
        webhook.verify(bytes(raw_body), headers.as_dict())
    except WebhookVerificationError as e:
        raise InvalidSignatureError(f"Webhook verification failed: {e}") from e
    except json.JSONDecodeError as e:
        raise MalformedPayloadError(f"Signed body is not valid JSON: {e}") from e
    except (ValueError, UnicodeDecodeError) as e:
        # Malformed signature header entries or undecodable body.
        raise InvalidSignatureError(f"Webhook verification failed: {e}") from e


class WebhookVerifier:
    """verify_webhook bound to a configured secret."""

    def __init__(self, secret: str | None) -> None:
        self._secret = secret

    @property
    def configured(self) -> bool:
        return bool(self._secret and self._secret.strip())

    def verify(self, raw_body: bytes, headers: WebhookHeaders) -> None:
        verify_webhook(raw_body, headers, self._secret)
