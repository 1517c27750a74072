"""
Webhook event parser.

Decodes a verified webhook body into a WebhookEvent variant.

Envelope shape (Dodo Payments):
    {"type": "payment.succeeded", "timestamp": "...", "data": {...}}

Key behaviors:
- Unknown "type" values parse to Unrecognized, never to an error
- A missing customer email is valid (event carries no target)
- Malformed envelopes, missing ids, and unparseable timestamps raise
  MalformedPayloadError so nothing is partially applied
"""

from __future__ import annotations

import json
import math
from datetime import UTC, datetime
from typing import Any

from entitlement_gate.domain.entities import normalize_email
from entitlement_gate.domain.errors import MalformedPayloadError

from .models import (
    PAYMENT_SUCCEEDED,
    SUBSCRIPTION_ACTIVE,
    SUBSCRIPTION_CANCELLED,
    SUBSCRIPTION_FAILED,
    SUBSCRIPTION_RENEWED,
    PaymentSucceeded,
    SubscriptionActive,
    SubscriptionCancelled,
    SubscriptionFailed,
    SubscriptionRenewed,
    Unrecognized,
    WebhookEvent,
)

# --- Field Helpers ---


def parse_timestamp(value: Any, field: str) -> datetime | None:
    """
    Parse an ISO-8601 string or epoch number into an aware UTC datetime.

    None and "" parse to None. Naive values are taken as UTC.
    """
    if value is None or value == "":
        return None

    if isinstance(value, bool):
        raise MalformedPayloadError(f"Invalid timestamp in '{field}'", field=field)

    if isinstance(value, int | float):
        try:
            return datetime.fromtimestamp(value, tz=UTC)
        except (OverflowError, OSError, ValueError) as e:
            raise MalformedPayloadError(f"Invalid timestamp in '{field}': {e}", field=field) from e

    if isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as e:
            raise MalformedPayloadError(
                f"Invalid timestamp in '{field}': {value!r}", field=field
            ) from e
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)

    raise MalformedPayloadError(f"Invalid timestamp in '{field}'", field=field)


def _optional_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise MalformedPayloadError(f"Field '{key}' must be a string", field=key)
    return value or None


def _required_str(data: dict[str, Any], key: str) -> str:
    value = _optional_str(data, key)
    if value is None:
        raise MalformedPayloadError(f"Missing required field '{key}'", field=key)
    return value


def _optional_number(data: dict[str, Any], key: str) -> int | float | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise MalformedPayloadError(f"Field '{key}' must be a number", field=key)
    if not math.isfinite(value):
        raise MalformedPayloadError(f"Field '{key}' must be a finite number", field=key)
    return value


def _optional_int(data: dict[str, Any], key: str) -> int | None:
    value = _optional_number(data, key)
    if value is None:
        return None
    if isinstance(value, float) and not value.is_integer():
        raise MalformedPayloadError(f"Field '{key}' must be a whole number", field=key)
    return int(value)


def extract_email(data: dict[str, Any]) -> str | None:
    """Customer email from data.customer.email, normalized."""
    customer = data.get("customer")
    if not isinstance(customer, dict):
        return None
    email = customer.get("email")
    if not isinstance(email, str) or not email.strip():
        return None
    return normalize_email(email)


def extract_product_id(data: dict[str, Any]) -> str | None:
    """data.product_id, falling back to the first product_cart entry."""
    product_id = _optional_str(data, "product_id")
    if product_id:
        return product_id

    cart = data.get("product_cart")
    if isinstance(cart, list):
        for item in cart:
            if isinstance(item, dict) and isinstance(item.get("product_id"), str):
                return item["product_id"]
    return None


# --- Parser ---


def parse_event(verified_body: bytes, *, received_at: datetime | None = None) -> WebhookEvent:
    """
    Decode a verified webhook body.

    Args:
        verified_body: Raw body bytes that already passed signature verification
        received_at: Fallback for events without an envelope timestamp
            (defaults to now, UTC)

    Returns:
        One WebhookEvent variant

    Raises:
        MalformedPayloadError: body is not a well-formed event envelope
    """
    try:
        envelope = json.loads(verified_body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedPayloadError(f"Webhook body is not valid JSON: {e}") from e

    if not isinstance(envelope, dict):
        raise MalformedPayloadError("Webhook body must be a JSON object")

    event_type = envelope.get("type")
    if not isinstance(event_type, str) or not event_type:
        raise MalformedPayloadError("Webhook envelope is missing 'type'", field="type")

    data = envelope.get("data")
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise MalformedPayloadError("Webhook envelope 'data' must be an object", field="data")

    occurred_at = (
        parse_timestamp(envelope.get("timestamp"), "timestamp")
        or received_at
        or datetime.now(UTC)
    )

    email = extract_email(data)

    if event_type == PAYMENT_SUCCEEDED:
        return PaymentSucceeded(
            email=email,
            payment_id=_required_str(data, "payment_id"),
            product_id=extract_product_id(data),
            purchased_at=parse_timestamp(data.get("created_at"), "created_at") or occurred_at,
            amount=_optional_number(data, "total_amount"),
            currency=_optional_str(data, "currency"),
            occurred_at=occurred_at,
        )

    if event_type == SUBSCRIPTION_ACTIVE:
        return SubscriptionActive(
            email=email,
            subscription_id=_required_str(data, "subscription_id"),
            product_id=extract_product_id(data),
            next_billing_date=parse_timestamp(data.get("next_billing_date"), "next_billing_date"),
            occurred_at=occurred_at,
            recurring_amount=_optional_int(data, "recurring_pre_tax_amount"),
        )

    if event_type == SUBSCRIPTION_RENEWED:
        return SubscriptionRenewed(
            email=email,
            subscription_id=_required_str(data, "subscription_id"),
            next_billing_date=parse_timestamp(data.get("next_billing_date"), "next_billing_date"),
            occurred_at=occurred_at,
            product_id=extract_product_id(data),
        )

    if event_type == SUBSCRIPTION_CANCELLED:
        return SubscriptionCancelled(
            email=email,
            subscription_id=_required_str(data, "subscription_id"),
            occurred_at=occurred_at,
        )

    if event_type == SUBSCRIPTION_FAILED:
        return SubscriptionFailed(
            email=email,
            subscription_id=_required_str(data, "subscription_id"),
            failure_reason=_optional_str(data, "failure_reason"),
            occurred_at=occurred_at,
        )

    return Unrecognized(raw_type=event_type)


_TYPE_NAMES: dict[type, str] = {
    PaymentSucceeded: PAYMENT_SUCCEEDED,
    SubscriptionActive: SUBSCRIPTION_ACTIVE,
    SubscriptionRenewed: SUBSCRIPTION_RENEWED,
    SubscriptionCancelled: SUBSCRIPTION_CANCELLED,
    SubscriptionFailed: SUBSCRIPTION_FAILED,
}


def event_type_of(event: WebhookEvent) -> str:
    """Provider type string for an event variant."""
    if isinstance(event, Unrecognized):
        return event.raw_type
    return _TYPE_NAMES[type(event)]
