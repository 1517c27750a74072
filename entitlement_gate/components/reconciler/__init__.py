"""
Reconciler component - folds verified webhook events into entitlements.
"""

from ._impl import EntitlementReconciler, KeyedLocks, reconcile
from .component import VerifierPort, run_webhook
from .models import (
    REASON_DUPLICATE_PAYMENT,
    REASON_GRANTED,
    REASON_NO_EMAIL,
    REASON_NO_SUBSCRIPTION,
    REASON_REPLAYED,
    REASON_SUBSCRIPTION_ACTIVATED,
    REASON_SUBSCRIPTION_CANCELLED,
    REASON_SUBSCRIPTION_FAILED,
    REASON_SUBSCRIPTION_RENEWED,
    REASON_UNCHANGED,
    REASON_UNRECOGNIZED,
    ApplyOutcome,
    ReconcileResult,
    WebhookInput,
    WebhookOutput,
)
from .ports import EntitlementStorePort, ReplayGuardPort

__all__ = [
    # Entry points
    "reconcile",
    "run_webhook",
    # Services
    "EntitlementReconciler",
    "KeyedLocks",
    # Models
    "ApplyOutcome",
    "ReconcileResult",
    "WebhookInput",
    "WebhookOutput",
    # Reasons
    "REASON_DUPLICATE_PAYMENT",
    "REASON_GRANTED",
    "REASON_NO_EMAIL",
    "REASON_NO_SUBSCRIPTION",
    "REASON_REPLAYED",
    "REASON_SUBSCRIPTION_ACTIVATED",
    "REASON_SUBSCRIPTION_CANCELLED",
    "REASON_SUBSCRIPTION_FAILED",
    "REASON_SUBSCRIPTION_RENEWED",
    "REASON_UNCHANGED",
    "REASON_UNRECOGNIZED",
    # Ports
    "EntitlementStorePort",
    "ReplayGuardPort",
    "VerifierPort",
]
