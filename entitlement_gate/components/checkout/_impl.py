"""
Checkout correlation.

Carries the customer's self-reported email through the provider's hosted
checkout and back, so the return page can land on the right access view.

Invariants:
- Redirect URLs are built only from caller-supplied values and config
- Existing query parameters on a base URL are preserved
- Only "succeeded" and "active" count as a successful return
"""

from __future__ import annotations

from urllib.parse import parse_qsl, quote, urlencode, urlparse, urlunparse

LIVE_CHECKOUT_URL = "https://checkout.dodopayments.com/buy"
TEST_CHECKOUT_URL = "https://test.checkout.dodopayments.com/buy"

SUCCESS_STATUSES = frozenset({"succeeded", "active"})


def checkout_base_url(environment: str | None) -> str:
    """Hosted checkout base for a provider environment; anything but live_mode is test."""
    return LIVE_CHECKOUT_URL if environment == "live_mode" else TEST_CHECKOUT_URL


def with_query_param(url: str, key: str, value: str) -> str:
    """
    Set one query parameter on url, keeping the others in order.

    An existing value for key is replaced.
    """
    parsed = urlparse(url)
    params = [(k, v) for k, v in parse_qsl(parsed.query, keep_blank_values=True) if k != key]
    params.append((key, value))
    return urlunparse(parsed._replace(query=urlencode(params)))


def build_checkout_redirect(
    product_id: str,
    email: str | None,
    base_checkout_url: str,
    return_url: str,
) -> str:
    """
    URL of the provider checkout for product_id.

    Args:
        product_id: Provider product identifier
        email: Customer email to carry through, or None
        base_checkout_url: e.g. checkout_base_url(environment)
        return_url: Where the provider sends the customer afterwards

    Returns:
        {base}/{product_id}?quantity=1&redirect_url=...[&email=...]
    """
    redirect_url = with_query_param(return_url, "email", email) if email else return_url
    url = (
        f"{base_checkout_url.rstrip('/')}/{quote(product_id, safe='')}"
        f"?quantity=1&redirect_url={quote(redirect_url, safe='')}"
    )
    if email:
        url += f"&email={quote(email, safe='')}"
    return url


def build_return_redirect(origin_url: str, email: str | None) -> str:
    """Access page URL for a returning customer."""
    if not email:
        return origin_url
    return with_query_param(origin_url, "email", email)


def is_success_status(status: str | None) -> bool:
    return status in SUCCESS_STATUSES
