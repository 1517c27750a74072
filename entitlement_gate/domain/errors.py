"""
Error taxonomy for the entitlement engine.

Each exception maps to one handling policy at the HTTP edge:

- InvalidSignatureError: untrusted sender, reject (400), no state change
- ConfigurationError: deployment defect, fail the request (500), alert operators
- MalformedPayloadError: cannot parse, reject (400), no state change
- StorageError: transient infrastructure failure, reject with a retryable status

Unrecognized event types are not errors; they are acknowledged as no-ops.
"""

from __future__ import annotations


class EntitlementGateError(Exception):
    """Base exception for entitlement engine errors."""

    pass


class InvalidSignatureError(EntitlementGateError):
    """Webhook signature does not match the shared secret."""

    def __init__(self, message: str = "Invalid webhook signature") -> None:
        super().__init__(message)


class ConfigurationError(EntitlementGateError):
    """Required configuration (e.g. the webhook secret) is missing or unusable."""

    def __init__(self, message: str, setting: str | None = None) -> None:
        self.setting = setting
        super().__init__(message)


class MalformedPayloadError(EntitlementGateError):
    """Verified body could not be decoded into a webhook event."""

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class StorageError(EntitlementGateError):
    """Entitlement store unavailable, timed out, or rejected the write."""

    def __init__(self, message: str, retriable: bool = True) -> None:
        self.retriable = retriable
        super().__init__(message)


class ConcurrentUpdateError(StorageError):
    """Compare-and-swap failed: the stored record changed since it was read."""

    def __init__(self, email: str, expected_version: int, actual_version: int | None) -> None:
        self.email = email
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Entitlement for {email} changed concurrently "
            f"(expected version {expected_version}, found {actual_version})"
        )
