"""
Checkout redirect and return handling.

Key behaviors:
- /checkout/{product_id} sends the customer to the provider with their email
  carried through the return URL
- /success never grants anything; access comes only from verified webhooks
- A missing email on return may be recovered from the provider, best effort
"""

from __future__ import annotations

import logging
from html import escape

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from entitlement_gate.api.deps import Settings, get_lookup, get_rules, get_settings
from entitlement_gate.api.routes.pages import render_page
from entitlement_gate.components.checkout import (
    build_checkout_redirect,
    build_return_redirect,
    checkout_base_url,
    is_success_status,
)
from entitlement_gate.core.ports.lookup import PaymentLookupPort
from entitlement_gate.rules.models import Rules

logger = logging.getLogger(__name__)

router = APIRouter()


def _recover_email(
    lookup: PaymentLookupPort,
    payment_id: str | None,
    subscription_id: str | None,
) -> str | None:
    """Ask the provider who paid. None whenever it cannot say."""
    result = None
    if payment_id:
        result = lookup.lookup_payment(payment_id)
    if result is None and subscription_id:
        result = lookup.lookup_subscription(subscription_id)
    return result.customer_email if result is not None else None


@router.get("/checkout/{product_id}")
def checkout_redirect(
    product_id: str,
    request: Request,
    email: str | None = Query(default=None),
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
) -> RedirectResponse:
    return_url = settings.return_url or (
        str(request.base_url).rstrip("/") + rules.checkout.success_path
    )
    email = email.strip() if email and email.strip() else None

    url = build_checkout_redirect(
        product_id=product_id,
        email=email,
        base_checkout_url=checkout_base_url(settings.environment),
        return_url=return_url,
    )
    logger.info(f"Checkout redirect for product {product_id} (email={email})")
    return RedirectResponse(url=url, status_code=302)


@router.get("/success", response_class=HTMLResponse)
def checkout_return(
    request: Request,
    payment_status: str | None = Query(default=None, alias="status"),
    email: str | None = Query(default=None),
    payment_id: str | None = Query(default=None),
    subscription_id: str | None = Query(default=None),
    lookup: PaymentLookupPort = Depends(get_lookup),
) -> Response:
    if not is_success_status(payment_status):
        logger.info(f"Checkout returned unsuccessful status {payment_status!r}")
        shown_status = payment_status or "unknown"
        body = (
            "<h1>Payment Not Successful</h1>"
            f"<p>Your payment status is: <strong>{escape(shown_status)}</strong>.</p>"
            "<p>Please contact support if you believe this is an error.</p>"
            '<p><a href="/">Back to Home</a></p>'
        )
        return HTMLResponse(render_page("Payment Failed", body), status_code=400)

    if not email:
        email = _recover_email(lookup, payment_id, subscription_id)

    target = build_return_redirect(str(request.url_for("access_page")), email)
    return RedirectResponse(url=target, status_code=303)
