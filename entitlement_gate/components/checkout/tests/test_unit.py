"""
Checkout component unit tests.
"""

from __future__ import annotations

from urllib.parse import parse_qs, urlparse

import pytest

from entitlement_gate.components.checkout import (
    LIVE_CHECKOUT_URL,
    TEST_CHECKOUT_URL,
    build_checkout_redirect,
    build_return_redirect,
    checkout_base_url,
    is_success_status,
    with_query_param,
)


class TestCheckoutBaseUrl:
    def test_live_mode(self) -> None:
        assert checkout_base_url("live_mode") == LIVE_CHECKOUT_URL

    @pytest.mark.parametrize("environment", ["test_mode", "", None, "LIVE_MODE"])
    def test_everything_else_is_test(self, environment: str | None) -> None:
        assert checkout_base_url(environment) == TEST_CHECKOUT_URL


class TestWithQueryParam:
    def test_adds_param(self) -> None:
        assert with_query_param("https://x.test/success", "email", "a@b.com") == (
            "https://x.test/success?email=a%40b.com"
        )

    def test_keeps_existing_params(self) -> None:
        url = with_query_param("https://x.test/?ref=ad&utm_source=tw", "email", "a@b.com")
        assert parse_qs(urlparse(url).query) == {
            "ref": ["ad"],
            "utm_source": ["tw"],
            "email": ["a@b.com"],
        }

    def test_replaces_same_key(self) -> None:
        url = with_query_param("https://x.test/?email=old@b.com", "email", "new@b.com")
        assert parse_qs(urlparse(url).query) == {"email": ["new@b.com"]}


class TestBuildCheckoutRedirect:
    def test_with_email(self) -> None:
        url = build_checkout_redirect(
            "pdt_1", "a@b.com", TEST_CHECKOUT_URL, "https://shop.test/success"
        )
        parsed = urlparse(url)
        assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == f"{TEST_CHECKOUT_URL}/pdt_1"

        query = parse_qs(parsed.query)
        assert query["quantity"] == ["1"]
        assert query["email"] == ["a@b.com"]
        assert query["redirect_url"] == ["https://shop.test/success?email=a%40b.com"]

    def test_param_order(self) -> None:
        url = build_checkout_redirect("pdt_1", "a@b.com", TEST_CHECKOUT_URL, "https://s.test/r")
        assert url.startswith(f"{TEST_CHECKOUT_URL}/pdt_1?quantity=1&redirect_url=")
        assert url.endswith("&email=a%40b.com")

    def test_without_email(self) -> None:
        url = build_checkout_redirect("pdt_1", None, LIVE_CHECKOUT_URL, "https://shop.test/success")
        query = parse_qs(urlparse(url).query)
        assert "email" not in query
        assert query["redirect_url"] == ["https://shop.test/success"]

    def test_return_url_query_preserved(self) -> None:
        url = build_checkout_redirect(
            "pdt_1", "a@b.com", TEST_CHECKOUT_URL, "https://shop.test/success?src=promo"
        )
        redirect = parse_qs(urlparse(url).query)["redirect_url"][0]
        assert parse_qs(urlparse(redirect).query) == {"src": ["promo"], "email": ["a@b.com"]}

    def test_product_id_is_escaped(self) -> None:
        url = build_checkout_redirect("pdt/../x", None, TEST_CHECKOUT_URL, "https://s.test/")
        assert urlparse(url).path == "/buy/pdt%2F..%2Fx"


class TestBuildReturnRedirect:
    def test_appends_email(self) -> None:
        assert build_return_redirect("https://shop.test/", "a@b.com") == (
            "https://shop.test/?email=a%40b.com"
        )

    def test_without_email_returns_origin(self) -> None:
        assert build_return_redirect("https://shop.test/", None) == "https://shop.test/"


class TestIsSuccessStatus:
    @pytest.mark.parametrize("status", ["succeeded", "active"])
    def test_success(self, status: str) -> None:
        assert is_success_status(status) is True

    @pytest.mark.parametrize("status", ["failed", "cancelled", "processing", "", None, "SUCCEEDED"])
    def test_not_success(self, status: str | None) -> None:
        assert is_success_status(status) is False
