from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

# --- Enums / Literals ---
SubscriptionStatus = Literal["active", "cancelled", "failed"]
AccessType = Literal["subscription", "product"]


def normalize_email(email: str) -> str:
    """Canonical key form of a customer email (trimmed, lower-cased)."""
    return email.strip().lower()


# --- Entitlements ---


class ProductGrant(BaseModel):
    model_config = ConfigDict(frozen=True)

    payment_id: str  # idempotency key
    product_id: str | None = None
    purchased_at: datetime
    amount: int | float | None = None
    currency: str | None = None


class SubscriptionState(BaseModel):
    model_config = ConfigDict(frozen=True)

    subscription_id: str
    product_id: str | None = None
    status: SubscriptionStatus = "active"
    next_billing_date: datetime | None = None
    activated_at: datetime
    last_renewed: datetime | None = None
    failure_reason: str | None = None
    recurring_amount: int | None = None


class CustomerEntitlement(BaseModel):
    """
    Entitlement record for one customer, keyed by normalized email.

    version counts successful writes; 0 means the record has never been stored.
    """

    model_config = ConfigDict(frozen=True)

    email: str
    subscription: SubscriptionState | None = None
    products: tuple[ProductGrant, ...] = Field(default_factory=tuple)
    version: int = 0
    updated_at: datetime | None = None

    @classmethod
    def empty(cls, email: str) -> "CustomerEntitlement":
        return cls(email=normalize_email(email))

    def has_payment(self, payment_id: str) -> bool:
        return any(p.payment_id == payment_id for p in self.products)

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, raw: str | bytes) -> "CustomerEntitlement":
        return cls.model_validate_json(raw)
