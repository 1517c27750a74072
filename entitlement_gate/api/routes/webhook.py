"""
Webhook receiver.

Key behaviors:
- Verifies against the exact raw body bytes
- 200 for every verified delivery, including no-ops and replays
- 400 when the delivery is forged or its body is malformed (provider should not retry)
- 500 when the secret is unset or the store failed (provider retries)
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool

from entitlement_gate.api.deps import get_reconciler, get_replay_guard, get_verifier
from entitlement_gate.api.schemas import WebhookAck
from entitlement_gate.app_shell.replay_guard import ReplayGuard
from entitlement_gate.components.reconciler import (
    EntitlementReconciler,
    WebhookInput,
    run_webhook,
)
from entitlement_gate.components.signature import WebhookHeaders, WebhookVerifier
from entitlement_gate.domain.errors import (
    ConfigurationError,
    InvalidSignatureError,
    MalformedPayloadError,
    StorageError,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/webhook", response_model=WebhookAck)
async def receive_webhook(
    request: Request,
    verifier: WebhookVerifier = Depends(get_verifier),
    reconciler: EntitlementReconciler = Depends(get_reconciler),
    replay_guard: ReplayGuard = Depends(get_replay_guard),
) -> WebhookAck:
    raw_body = await request.body()
    headers = WebhookHeaders.from_mapping(request.headers)
    inp = WebhookInput(raw_body=raw_body, headers=headers, received_at=datetime.now(UTC))

    try:
        # Store calls and lock waits block; keep them off the event loop.
        result = await run_in_threadpool(
            run_webhook,
            inp,
            verifier=verifier,
            reconciler=reconciler,
            replay_guard=replay_guard,
        )
    except InvalidSignatureError as e:
        logger.warning(f"Rejected webhook {headers.id}: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except MalformedPayloadError as e:
        logger.warning(f"Malformed webhook {headers.id}: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except ConfigurationError as e:
        logger.error(f"Webhook {headers.id} refused, configuration error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Webhook verification is not configured",
        ) from e
    except StorageError as e:
        logger.exception(f"Webhook {headers.id} failed on storage: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Webhook processing failed",
        ) from e

    logger.info(
        f"Webhook {headers.id} {result.event_type}: "
        f"applied={result.outcome.applied} reason={result.outcome.reason}"
    )
    return WebhookAck()
