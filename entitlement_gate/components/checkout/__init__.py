"""
Checkout component - checkout and return redirects.
"""

from ._impl import (
    LIVE_CHECKOUT_URL,
    SUCCESS_STATUSES,
    TEST_CHECKOUT_URL,
    build_checkout_redirect,
    build_return_redirect,
    checkout_base_url,
    is_success_status,
    with_query_param,
)

__all__ = [
    "LIVE_CHECKOUT_URL",
    "SUCCESS_STATUSES",
    "TEST_CHECKOUT_URL",
    "build_checkout_redirect",
    "build_return_redirect",
    "checkout_base_url",
    "is_success_status",
    "with_query_param",
]
