"""
Action builder tests: request -> typed action -> wire JSON, plus the
market open/close helpers.
"""

import json
import math

import pytest

from hl_l1.action_schema import BuilderInfo, Cloid, Grouping, Tif
from hl_l1.errors import EncodingError, InvalidNumber, PositionNotFound, UnknownAsset
from hl_l1.hl_canon import action_to_wire
from hl_l1.hl_l1_sign import sign_l1_action, verify_l1_action
from hl_l1.order_builder import (
    build_batch_modify_action,
    build_cancel_action,
    build_cancel_by_cloid_action,
    build_market_close,
    build_market_open,
    build_modify_action,
    build_order_action,
    build_update_leverage_action,
    build_usd_class_transfer_action,
    find_position,
    slippage_price,
)
from hl_l1.schemas.order_intent import (
    CancelByCloidRequest,
    CancelRequest,
    CreateOrderRequest,
    ModifyOrderRequest,
    OrderType,
)

from conftest import TEST_ADDRESS, TEST_NONCE, TEST_PRIVATE_KEY, TEST_VAULT


def btc_limit(**overrides) -> CreateOrderRequest:
    fields = dict(
        coin="BTC",
        is_buy=True,
        limit_px=65000.5,
        sz=0.01,
        reduce_only=False,
        order_type=OrderType.limit_order(Tif.GTC),
    )
    fields.update(overrides)
    return CreateOrderRequest(**fields)


def user_state(*positions) -> dict:
    return {"assetPositions": [{"position": {"coin": coin, "szi": szi}, "type": "oneWay"} for coin, szi in positions]}


class TestOrderAction:

    def test_btc_limit_order_end_to_end(self, asset_table, fixture_text):
        """Build, compare against the stored wire JSON, sign and verify."""
        action = build_order_action([btc_limit()], asset_table)
        wire = action_to_wire(action)
        assert json.dumps(wire, separators=(",", ":")) == fixture_text("btc_limit_order.json")

        sig = sign_l1_action(TEST_PRIVATE_KEY, action, None, TEST_NONCE, None, True)
        assert verify_l1_action(TEST_ADDRESS, action, sig, None, TEST_NONCE, None, True)

    def test_trigger_order(self, asset_table):
        req = btc_limit(coin="ETH", is_buy=False, limit_px=1800, sz=2, reduce_only=True,
                        order_type=OrderType.trigger_order(1850.0, True, "sl"))
        wire = action_to_wire(build_order_action([req], asset_table))
        assert wire["orders"][0] == {
            "a": 1, "b": False, "p": "1800", "s": "2", "r": True,
            "t": {"trigger": {"isMarket": True, "tpsl": "sl", "triggerPx": "1850"}},
        }

    def test_cloid_builder_and_grouping(self, asset_table):
        builder = BuilderInfo(address="0x8c967E73E7B15087c42A10D344cFf4c96D877f1D", fee=5)
        action = build_order_action([btc_limit(cloid=7)], asset_table, builder=builder, grouping=Grouping.NORMAL_TPSL)
        wire = action_to_wire(action)
        assert wire["orders"][0]["c"] == "0x00000000000000000000000000000007"
        assert wire["grouping"] == "normalTpsl"
        assert wire["builder"]["f"] == 5

    def test_spot_asset_id(self, asset_table):
        wire = action_to_wire(build_order_action([btc_limit(coin="PURR/USDC", limit_px=0.2, sz=100)], asset_table))
        assert wire["orders"][0]["a"] == 10000

    def test_accepts_plain_dicts(self, asset_table):
        req = {"coin": "BTC", "is_buy": True, "limit_px": 65000.5, "sz": 0.01,
               "order_type": {"limit": {"tif": "Gtc"}}}
        assert build_order_action([req], asset_table) == build_order_action([btc_limit()], asset_table)

    def test_batch_failure_reports_index(self, asset_table):
        """NaN price in the middle of a batch names order 1 and builds nothing."""
        requests = [btc_limit(), btc_limit(limit_px=math.nan), btc_limit()]
        with pytest.raises(InvalidNumber, match="failed to build order 1:") as exc:
            build_order_action(requests, asset_table)
        assert exc.value.details["index"] == 1

    def test_unknown_coin(self, asset_table):
        with pytest.raises(UnknownAsset, match="DOGE"):
            build_order_action([btc_limit(coin="DOGE")], asset_table)

    def test_unknown_coin_keeps_index(self, asset_table):
        with pytest.raises(UnknownAsset) as exc:
            build_order_action([btc_limit(), btc_limit(coin="DOGE")], asset_table)
        assert exc.value.details == {"coin": "DOGE", "index": 1}

    def test_empty_batch(self, asset_table):
        with pytest.raises(EncodingError):
            build_order_action([], asset_table)

    def test_malformed_request(self, asset_table):
        with pytest.raises(EncodingError, match="CreateOrderRequest"):
            build_order_action([{"coin": "BTC"}], asset_table)


class TestModifyAndCancel:

    def test_modify_by_oid(self, asset_table):
        action = build_modify_action(ModifyOrderRequest(oid=77738308, order=btc_limit(limit_px=64000)), asset_table)
        wire = action_to_wire(action)
        assert wire["type"] == "modify"
        assert wire["oid"] == 77738308
        assert wire["order"]["p"] == "64000"

    def test_modify_by_cloid(self, asset_table):
        cloid = "0x00000000000000000000000000000003"
        wire = action_to_wire(build_modify_action(ModifyOrderRequest(oid=cloid, order=btc_limit()), asset_table))
        assert wire["oid"] == cloid

    def test_batch_modify(self, asset_table):
        requests = [
            ModifyOrderRequest(oid=1, order=btc_limit()),
            ModifyOrderRequest(oid=2, order=btc_limit(coin="ETH", limit_px=2000, sz=0.5)),
        ]
        wire = action_to_wire(build_batch_modify_action(requests, asset_table))
        assert wire["type"] == "batchModify"
        assert [m["oid"] for m in wire["modifies"]] == [1, 2]
        assert wire["modifies"][1]["order"]["a"] == 1

    def test_batch_modify_index(self, asset_table):
        requests = [ModifyOrderRequest(oid=1, order=btc_limit()), ModifyOrderRequest(oid=2, order=btc_limit(sz=math.inf))]
        with pytest.raises(InvalidNumber, match="failed to build modify 1:"):
            build_batch_modify_action(requests, asset_table)

    def test_cancel(self, asset_table):
        wire = action_to_wire(build_cancel_action(
            [CancelRequest(coin="BTC", oid=1), CancelRequest(coin="ETH", oid=2)], asset_table,
        ))
        assert wire == {"type": "cancel", "cancels": [{"a": 0, "o": 1}, {"a": 1, "o": 2}]}

    def test_cancel_by_cloid(self, asset_table):
        cloid = Cloid.from_int(9)
        wire = action_to_wire(build_cancel_by_cloid_action([CancelByCloidRequest(coin="ETH", cloid=cloid)], asset_table))
        assert wire == {"type": "cancelByCloid", "cancels": [{"asset": 1, "cloid": str(cloid)}]}

    def test_cancel_unknown_coin(self, asset_table):
        with pytest.raises(UnknownAsset, match="failed to build cancel 0:"):
            build_cancel_action([CancelRequest(coin="DOGE", oid=1)], asset_table)


class TestAccountActions:

    def test_update_leverage(self, asset_table):
        wire = action_to_wire(build_update_leverage_action("ETH", 10, False, asset_table))
        assert wire == {"type": "updateLeverage", "asset": 1, "isCross": False, "leverage": 10}

    @pytest.mark.parametrize("leverage", [0, -3, 2.5, True, "5"])
    def test_update_leverage_rejects_bad_values(self, asset_table, leverage):
        with pytest.raises(EncodingError):
            build_update_leverage_action("ETH", leverage, True, asset_table)

    def test_usd_class_transfer(self):
        wire = action_to_wire(build_usd_class_transfer_action(125.5, True, TEST_NONCE, False))
        assert wire == {
            "type": "usdClassTransfer",
            "amount": "125.5",
            "toPerp": True,
            "nonce": TEST_NONCE,
            "signatureChainId": "0x66eee",
            "hyperliquidChain": "Testnet",
        }

    def test_usd_class_transfer_names_vault_in_amount(self):
        action = build_usd_class_transfer_action(125.5, False, TEST_NONCE, True, vault_address=TEST_VAULT)
        assert action.amount == "125.5 subaccount:" + TEST_VAULT
        assert action.hyperliquid_chain == "Mainnet"

    @pytest.mark.parametrize("amount", [0, -1.0, math.nan, 1.2345678])
    def test_usd_class_transfer_rejects_bad_amounts(self, amount):
        with pytest.raises(InvalidNumber):
            build_usd_class_transfer_action(amount, False, TEST_NONCE, False)


class TestSlippagePrice:

    @pytest.mark.parametrize("args,expected", [
        ((65000.5, True, 0.01, 5), 65651.0),
        ((65000.0, True, 0.05, 5), 68250.0),
        ((2000.0, False, 0.05, 4), 1900.0),
        ((0.123456, False, 0.0, 0, True), 0.12346),
        ((1.234567, True, 0.0, 4), 1.23),
    ])
    def test_rounding(self, args, expected):
        assert slippage_price(*args) == expected

    @pytest.mark.parametrize("mid,slippage", [(0.0, 0.05), (-1.0, 0.05), (100.0, 1.5), (100.0, -0.1), (math.nan, 0.05)])
    def test_rejects_bad_inputs(self, mid, slippage):
        with pytest.raises(InvalidNumber):
            slippage_price(mid, True, slippage, 2)


class TestMarketOrders:

    def test_market_open(self, asset_table):
        req = build_market_open("BTC", True, 0.01, 65000.0, asset_table)
        assert req.order_type.limit.tif is Tif.IOC
        assert not req.reduce_only
        wire = action_to_wire(build_order_action([req], asset_table))
        assert wire["orders"][0]["p"] == "68250"

    def test_market_open_explicit_px(self, asset_table):
        req = build_market_open("BTC", False, 0.01, 65000.0, asset_table, slippage=0.01, px=60000.0)
        assert req.limit_px == 59400.0

    def test_market_open_unknown_coin(self, asset_table):
        with pytest.raises(UnknownAsset):
            build_market_open("DOGE", True, 1.0, 0.1, asset_table)

    def test_close_short_buys_back(self, asset_table):
        req = build_market_close("ETH", user_state(("ETH", "-0.5")), 2000.0, asset_table)
        assert (req.is_buy, req.sz, req.limit_px, req.reduce_only) == (True, 0.5, 2100.0, True)
        assert req.order_type.limit.tif is Tif.IOC

    def test_close_long_sells(self, asset_table):
        req = build_market_close("ETH", user_state(("BTC", "1"), ("ETH", "0.25")), 2000.0, asset_table)
        assert (req.is_buy, req.sz, req.limit_px) == (False, 0.25, 1900.0)

    def test_partial_close(self, asset_table):
        req = build_market_close("ETH", user_state(("ETH", "0.25")), 2000.0, asset_table, sz=0.1)
        assert req.sz == 0.1

    @pytest.mark.parametrize("state", [user_state(), user_state(("ETH", "0.0")), {}])
    def test_close_without_position(self, asset_table, state):
        with pytest.raises(PositionNotFound):
            build_market_close("ETH", state, 2000.0, asset_table)

    def test_find_position(self):
        state = user_state(("BTC", "0.1"), ("ETH", "-2"))
        assert find_position(state, "ETH")["szi"] == "-2"
        assert find_position(state, "SOL") is None
