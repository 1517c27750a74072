"""
Customer-facing HTML pages.

Deliberately minimal: the access page shows what the entitlement store says
for a self-reported email, nothing more.
"""

from __future__ import annotations

import logging
from html import escape
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse

from entitlement_gate.api.deps import get_access_service, get_rules
from entitlement_gate.components.access import AccessQueryService, AccessView
from entitlement_gate.domain.errors import StorageError
from entitlement_gate.rules.models import Rules

logger = logging.getLogger(__name__)

router = APIRouter()


def render_page(title: str, body: str) -> str:
    """Wrap body HTML in the shared page shell. title is escaped, body is not."""
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{escape(title)}</title>
</head>
<body>
    <main>
{body}
    </main>
</body>
</html>"""


EMAIL_FORM = """<h1>Check your access</h1>
<form method="get" action="/">
    <label for="email">Email</label>
    <input type="email" id="email" name="email" required>
    <button type="submit">Check Access</button>
</form>"""


def _render_access(view: AccessView, product_id: str | None) -> str:
    email = escape(view.email)
    parts = [f"<h1>Access for {email}</h1>"]

    if view.has_active_access:
        parts.append("<p><strong>You have active access.</strong></p>")
    else:
        parts.append("<p>No active access found for this email.</p>")

    if view.subscription is not None:
        sub = view.subscription
        parts.append(
            f"<h2>Subscription</h2><p>{escape(sub.subscription_id)}: "
            f"<strong>{escape(sub.status)}</strong></p>"
        )
        if sub.next_billing_date is not None:
            parts.append(f"<p>Next billing date: {sub.next_billing_date.date().isoformat()}</p>")

    if view.products:
        items = "".join(
            f"<li>{escape(p.product_id or 'unknown product')} "
            f"({p.purchased_at.date().isoformat()})</li>"
            for p in view.products
        )
        parts.append(f"<h2>Products</h2><ul>{items}</ul>")

    if not view.has_active_access and product_id:
        href = f"/checkout/{quote(product_id, safe='')}?email={quote(view.email, safe='')}"
        parts.append(f'<p><a href="{escape(href)}">Buy access</a></p>')

    parts.append('<p><a href="/">Check another email</a></p>')
    return "\n".join(parts)


@router.get("/", response_class=HTMLResponse, name="access_page")
def access_page(
    email: str | None = Query(default=None),
    service: AccessQueryService = Depends(get_access_service),
    rules: Rules = Depends(get_rules),
) -> HTMLResponse:
    if not email or not email.strip():
        return HTMLResponse(render_page("Check Access", EMAIL_FORM))

    try:
        view = service.query_access(email)
    except StorageError as e:
        logger.error(f"Access page lookup failed for {email}: {e}")
        return HTMLResponse(
            render_page("Unavailable", "<h1>Access status is temporarily unavailable.</h1>"),
            status_code=503,
        )

    body = _render_access(view, rules.checkout.default_product_id)
    return HTMLResponse(render_page("Your Access", body))
