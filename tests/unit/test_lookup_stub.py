"""
Unit tests for the lookup stub adapter.
"""

from entitlement_gate.adapters.lookup_stub import LookupStubAdapter
from entitlement_gate.core.ports.lookup import LookupResult, PaymentLookupPort


class TestLookupStubAdapter:
    def test_satisfies_lookup_port_protocol(self) -> None:
        adapter: PaymentLookupPort = LookupStubAdapter()
        assert isinstance(adapter, LookupStubAdapter)

    def test_unknown_ids_return_none(self) -> None:
        adapter = LookupStubAdapter()
        assert adapter.lookup_payment("pay_1") is None
        assert adapter.lookup_subscription("sub_1") is None

    def test_registered_payment(self) -> None:
        adapter = LookupStubAdapter()
        adapter.add_payment("pay_1", "a@b.com")
        assert adapter.lookup_payment("pay_1") == LookupResult(
            kind="payment", object_id="pay_1", status="succeeded", customer_email="a@b.com"
        )

    def test_registered_subscription(self) -> None:
        adapter = LookupStubAdapter()
        adapter.add_subscription("sub_1", "a@b.com", status="on_hold")
        result = adapter.lookup_subscription("sub_1")
        assert result is not None
        assert result.kind == "subscription"
        assert result.status == "on_hold"

    def test_calls_recorded_in_order(self) -> None:
        adapter = LookupStubAdapter()
        adapter.lookup_payment("pay_1")
        adapter.lookup_subscription("sub_1")
        assert adapter.calls == [("payment", "pay_1"), ("subscription", "sub_1")]

    def test_clear(self) -> None:
        adapter = LookupStubAdapter()
        adapter.add_payment("pay_1", "a@b.com")
        adapter.lookup_payment("pay_1")
        adapter.clear()
        assert adapter.lookup_payment("pay_1") is None
        assert adapter.calls == [("payment", "pay_1")]
