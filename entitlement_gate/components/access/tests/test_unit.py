"""
Access component unit tests.
"""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from entitlement_gate.adapters.memory_store import InMemoryEntitlementStore
from entitlement_gate.components.access import AccessQueryService, AccessView, derive_access
from entitlement_gate.domain.entities import (
    CustomerEntitlement,
    ProductGrant,
    SubscriptionState,
)
from entitlement_gate.domain.errors import StorageError

T0 = datetime(2025, 1, 1, tzinfo=UTC)


def subscription(status: str) -> SubscriptionState:
    return SubscriptionState(subscription_id="sub_1", status=status, activated_at=T0)  # type: ignore[arg-type]


GRANT = ProductGrant(payment_id="pay_1", product_id="pdt_1", purchased_at=T0)


class TestDeriveAccess:
    def test_absent_record(self) -> None:
        assert derive_access("a@b.com", None) == AccessView(
            email="a@b.com", has_active_access=False, subscription=None, products=(), access_type=[]
        )

    def test_active_subscription(self) -> None:
        view = derive_access("a@b.com", CustomerEntitlement(email="a@b.com", subscription=subscription("active")))
        assert view.has_active_access is True
        assert view.access_type == ["subscription"]

    @pytest.mark.parametrize("status", ["cancelled", "failed"])
    def test_inactive_subscription_alone_grants_nothing(self, status: str) -> None:
        view = derive_access("a@b.com", CustomerEntitlement(email="a@b.com", subscription=subscription(status)))
        assert view.has_active_access is False
        assert view.access_type == []
        assert view.subscription is not None
        assert view.subscription.status == status

    def test_product_grant_alone(self) -> None:
        view = derive_access("a@b.com", CustomerEntitlement(email="a@b.com", products=(GRANT,)))
        assert view.has_active_access is True
        assert view.access_type == ["product"]
        assert view.products == (GRANT,)

    def test_cancelled_subscription_with_product_still_has_access(self) -> None:
        record = CustomerEntitlement(
            email="a@b.com", subscription=subscription("cancelled"), products=(GRANT,)
        )
        view = derive_access("a@b.com", record)
        assert view.has_active_access is True
        assert view.access_type == ["product"]

    def test_both_kinds(self) -> None:
        record = CustomerEntitlement(
            email="a@b.com", subscription=subscription("active"), products=(GRANT,)
        )
        assert derive_access("a@b.com", record).access_type == ["subscription", "product"]

    def test_empty_record(self) -> None:
        view = derive_access("a@b.com", CustomerEntitlement(email="a@b.com"))
        assert view.has_active_access is False


class ReadOnlyStore(InMemoryEntitlementStore):
    def put(self, email: str, record: CustomerEntitlement) -> CustomerEntitlement:
        raise AssertionError("access queries must not write")


class TestAccessQueryService:
    def test_unknown_email(self) -> None:
        view = AccessQueryService(InMemoryEntitlementStore()).query_access("nobody@example.com")
        assert view.has_active_access is False
        assert view.subscription is None
        assert view.products == ()

    def test_query_normalizes_email(self) -> None:
        store = InMemoryEntitlementStore()
        store.put("a@b.com", CustomerEntitlement(email="a@b.com", products=(GRANT,), version=1))
        view = AccessQueryService(store).query_access("  A@B.COM ")
        assert view.email == "a@b.com"
        assert view.has_active_access is True

    def test_query_never_writes(self) -> None:
        store = ReadOnlyStore()
        AccessQueryService(store).query_access("a@b.com")
        assert store.keys() == []

    def test_store_failure_propagates(self) -> None:
        class Broken:
            def get(self, email: str) -> CustomerEntitlement | None:
                raise StorageError("down")

            def put(self, email: str, record: CustomerEntitlement) -> CustomerEntitlement:
                raise StorageError("down")

        with pytest.raises(StorageError):
            AccessQueryService(Broken()).query_access("a@b.com")
