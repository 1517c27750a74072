"""
Reconciler component - Webhook processing pipeline.

verify -> parse -> replay check -> apply -> record delivery id

Nothing reaches the store unless the signature checked out and the body
parsed completely.
"""

from __future__ import annotations

import logging
from typing import Protocol

from entitlement_gate.components.events import event_type_of, parse_event
from entitlement_gate.components.signature import WebhookHeaders

from ._impl import EntitlementReconciler
from .models import REASON_REPLAYED, ApplyOutcome, WebhookInput, WebhookOutput
from .ports import ReplayGuardPort

logger = logging.getLogger(__name__)


class VerifierPort(Protocol):
    """Anything that can vouch for a raw webhook delivery."""

    def verify(self, raw_body: bytes, headers: WebhookHeaders) -> None: ...


# --- Component Entry Points ---


def run_webhook(
    inp: WebhookInput,
    *,
    verifier: VerifierPort,
    reconciler: EntitlementReconciler,
    replay_guard: ReplayGuardPort | None = None,
) -> WebhookOutput:
    """
    Process one webhook delivery end to end.

    Raises:
        ConfigurationError: verifier has no usable secret
        InvalidSignatureError: delivery failed verification
        MalformedPayloadError: verified body is not a well-formed event
        StorageError: the store could not be read or written
    """
    verifier.verify(inp.raw_body, inp.headers)
    event = parse_event(inp.raw_body, received_at=inp.received_at)
    event_type = event_type_of(event)
    delivery_id = inp.headers.id or ""

    if replay_guard is not None and replay_guard.seen(delivery_id):
        logger.info(f"Skipping replayed webhook {delivery_id} ({event_type})")
        return WebhookOutput(
            event_type=event_type,
            outcome=ApplyOutcome(applied=False, reason=REASON_REPLAYED, email=event.email),
            replayed=True,
        )

    outcome = reconciler.apply(event)

    if replay_guard is not None:
        replay_guard.record(delivery_id)

    return WebhookOutput(event_type=event_type, outcome=outcome)
