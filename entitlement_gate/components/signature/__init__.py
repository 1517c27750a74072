"""
Signature component - webhook authenticity checks.
"""

from ._impl import (
    HEADER_ID,
    HEADER_SIGNATURE,
    HEADER_TIMESTAMP,
    WebhookHeaders,
    WebhookVerifier,
    verify_webhook,
)

__all__ = [
    "HEADER_ID",
    "HEADER_SIGNATURE",
    "HEADER_TIMESTAMP",
    "WebhookHeaders",
    "WebhookVerifier",
    "verify_webhook",
]
