from typing import Literal

from pydantic import BaseModel

from entitlement_gate.components.access import AccessView
from entitlement_gate.domain.entities import AccessType, ProductGrant, SubscriptionState


# --- Webhooks ---
class WebhookAck(BaseModel):
    status: Literal["success"] = "success"


# --- Access ---
class AccessViewResponse(BaseModel):
    email: str
    has_active_access: bool
    subscription: SubscriptionState | None = None
    products: list[ProductGrant] = []
    access_type: list[AccessType] = []

    @classmethod
    def from_view(cls, view: AccessView) -> "AccessViewResponse":
        return cls(
            email=view.email,
            has_active_access=view.has_active_access,
            subscription=view.subscription,
            products=list(view.products),
            access_type=list(view.access_type),
        )
