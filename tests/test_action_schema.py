"""
Typed action and request model invariants.
"""

import pytest

from hl_l1.action_schema import (
    Cloid,
    Grouping,
    LimitWire,
    OrderAction,
    OrderTypeWire,
    Tif,
    Tpsl,
    TriggerWire,
    to_order_id,
)
from hl_l1.errors import EncodingError
from hl_l1.schemas.order_intent import (
    CreateOrderRequest,
    LimitOrderType,
    ModifyOrderRequest,
    OrderType,
    TriggerOrderType,
)


class TestOrderTypeExclusivity:
    """Exactly one of limit / trigger, never a silent preference."""

    def test_request_with_both_kinds_fails(self):
        with pytest.raises(EncodingError, match="both"):
            OrderType(
                limit=LimitOrderType(tif="Gtc"),
                trigger=TriggerOrderType(trigger_px=60000.0, is_market=True, tpsl="sl"),
            )

    def test_request_with_neither_kind_fails(self):
        with pytest.raises(EncodingError, match="neither"):
            OrderType()

    def test_wire_with_both_kinds_fails(self):
        with pytest.raises(EncodingError):
            OrderTypeWire(
                limit=LimitWire(tif=Tif.GTC),
                trigger=TriggerWire(is_market=False, tpsl=Tpsl.TP, trigger_px="70000"),
            )

    def test_order_request_with_both_kinds_fails(self):
        """Conflicting order type fails when building the whole intent from plain data."""
        with pytest.raises(EncodingError):
            CreateOrderRequest.model_validate({
                "coin": "BTC",
                "is_buy": True,
                "limit_px": 65000.5,
                "sz": 0.01,
                "order_type": {
                    "limit": {"tif": "Gtc"},
                    "trigger": {"trigger_px": 64000.0, "is_market": True, "tpsl": "sl"},
                },
            })

    def test_helpers_build_single_kind(self):
        limit = OrderType.limit_order("Ioc")
        assert limit.limit.tif is Tif.IOC and limit.trigger is None
        trigger = OrderType.trigger_order(64000.0, True, "sl")
        assert trigger.trigger.tpsl is Tpsl.SL and trigger.limit is None


class TestCloid:

    def test_normalises_to_lowercase(self):
        cloid = Cloid("0x00000000000000000000000000ABCDEF")
        assert str(cloid) == "0x00000000000000000000000000abcdef"

    def test_from_int(self):
        assert Cloid.from_int(1).raw == "0x00000000000000000000000000000001"

    @pytest.mark.parametrize("raw", ["0x1234", "00000000000000000000000000000001ab", "0x" + "g" * 32])
    def test_rejects_malformed(self, raw):
        with pytest.raises(EncodingError):
            Cloid(raw)


class TestOrderId:
    """Exchange oid (int) or client order id (Cloid), resolved at the boundary."""

    def test_int_stays_int(self):
        assert to_order_id(12345) == 12345

    def test_hex_string_becomes_cloid(self):
        oid = to_order_id("0x00000000000000000000000000000001")
        assert isinstance(oid, Cloid)

    @pytest.mark.parametrize("value", [True, -1, 1.5, None])
    def test_rejects_other_types(self, value):
        with pytest.raises(EncodingError):
            to_order_id(value)

    def test_modify_request_resolves_oid(self):
        req = ModifyOrderRequest(
            oid="0x00000000000000000000000000000002",
            order=CreateOrderRequest(
                coin="BTC", is_buy=True, limit_px=1.0, sz=1.0, order_type=OrderType.limit_order(),
            ),
        )
        assert req.oid == Cloid("0x00000000000000000000000000000002")


class TestActionImmutability:

    def test_order_action_is_frozen(self):
        action = OrderAction(orders=[], grouping="na")
        assert action.orders == ()
        assert action.grouping is Grouping.NA
        with pytest.raises(AttributeError):
            action.grouping = Grouping.NORMAL_TPSL

    def test_unknown_grouping_rejected(self):
        with pytest.raises(EncodingError):
            OrderAction(orders=(), grouping="everything")
