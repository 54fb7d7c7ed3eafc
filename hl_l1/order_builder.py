"""
Action builders.

Pure functions from high-level requests to typed wire actions: symbol
lookup in the AssetTable, numeric formatting and order-type translation.
Everything here fails before anything is signed or sent.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError

from hl_l1.action_schema import (
    BatchModifyAction,
    BuilderInfo,
    CancelAction,
    CancelByCloidAction,
    CancelByCloidWire,
    CancelWire,
    Grouping,
    LimitWire,
    ModifyAction,
    ModifyWire,
    OrderAction,
    OrderTypeWire,
    OrderWire,
    Tif,
    TriggerWire,
    UpdateLeverageAction,
    UsdClassTransferAction,
)
from hl_l1.errors import EncodingError, HyperliquidError, InvalidNumber, PositionNotFound, with_index
from hl_l1.formatting import check_finite, float_to_usd_int, float_to_wire
from hl_l1.hl_meta import AssetTable
from hl_l1.hl_network import SIGNATURE_CHAIN_ID, hyperliquid_chain
from hl_l1.schemas.order_intent import (
    CancelByCloidRequest,
    CancelRequest,
    CreateOrderRequest,
    ModifyOrderRequest,
    OrderType,
)

logger = logging.getLogger("order_builder")

DEFAULT_SLIPPAGE = 0.05
PERP_MAX_DECIMALS = 6
SPOT_MAX_DECIMALS = 8

M = TypeVar("M", bound=BaseModel)


def _as_request(req: Any, model: Type[M]) -> M:
    if isinstance(req, model):
        return req
    try:
        return model.model_validate(req)
    except ValidationError as e:
        raise EncodingError(f"malformed {model.__name__}: {e}") from e


def order_type_to_wire(order_type: OrderType) -> OrderTypeWire:
    if order_type.limit is not None and order_type.trigger is not None:
        raise EncodingError("order type sets both limit and trigger")
    if order_type.limit is not None:
        return OrderTypeWire(limit=LimitWire(tif=order_type.limit.tif))
    if order_type.trigger is not None:
        t = order_type.trigger
        return OrderTypeWire(trigger=TriggerWire(
            is_market=t.is_market,
            tpsl=t.tpsl,
            trigger_px=float_to_wire(t.trigger_px),
        ))
    raise EncodingError("order type sets neither limit nor trigger")


def order_request_to_order_wire(req: CreateOrderRequest, asset_table: AssetTable) -> OrderWire:
    req = _as_request(req, CreateOrderRequest)
    return OrderWire(
        asset=asset_table.asset(req.coin),
        is_buy=req.is_buy,
        limit_px=float_to_wire(req.limit_px),
        sz=float_to_wire(req.sz),
        reduce_only=req.reduce_only,
        order_type=order_type_to_wire(req.order_type),
        cloid=req.cloid,
    )


def _build_each(items: Iterable[Any], what: str, build) -> List[Any]:
    out = []
    for i, item in enumerate(items):
        try:
            out.append(build(item))
        except HyperliquidError as e:
            raise with_index(e, what, i) from e
    return out


def build_order_action(
    requests: Sequence[CreateOrderRequest],
    asset_table: AssetTable,
    builder: Optional[BuilderInfo] = None,
    grouping: Grouping = Grouping.NA,
) -> OrderAction:
    """One wire order per request, in request order (also execution order)."""
    if not requests:
        raise EncodingError("order action needs at least one order")
    orders = _build_each(requests, "order", lambda r: order_request_to_order_wire(r, asset_table))
    return OrderAction(orders=tuple(orders), grouping=grouping, builder=builder)


def build_modify_action(req: ModifyOrderRequest, asset_table: AssetTable) -> ModifyAction:
    req = _as_request(req, ModifyOrderRequest)
    return ModifyAction(oid=req.oid, order=order_request_to_order_wire(req.order, asset_table))


def build_batch_modify_action(requests: Sequence[ModifyOrderRequest], asset_table: AssetTable) -> BatchModifyAction:
    if not requests:
        raise EncodingError("batch modify needs at least one modify")

    def build(r):
        r = _as_request(r, ModifyOrderRequest)
        return ModifyWire(oid=r.oid, order=order_request_to_order_wire(r.order, asset_table))

    return BatchModifyAction(modifies=tuple(_build_each(requests, "modify", build)))


def build_cancel_action(requests: Sequence[CancelRequest], asset_table: AssetTable) -> CancelAction:
    if not requests:
        raise EncodingError("cancel needs at least one order")

    def build(r):
        r = _as_request(r, CancelRequest)
        return CancelWire(asset=asset_table.asset(r.coin), oid=r.oid)

    return CancelAction(cancels=tuple(_build_each(requests, "cancel", build)))


def build_cancel_by_cloid_action(requests: Sequence[CancelByCloidRequest], asset_table: AssetTable) -> CancelByCloidAction:
    if not requests:
        raise EncodingError("cancel needs at least one order")

    def build(r):
        r = _as_request(r, CancelByCloidRequest)
        return CancelByCloidWire(asset=asset_table.asset(r.coin), cloid=r.cloid)

    return CancelByCloidAction(cancels=tuple(_build_each(requests, "cancel", build)))


def build_update_leverage_action(coin: str, leverage: int, is_cross: bool, asset_table: AssetTable) -> UpdateLeverageAction:
    if isinstance(leverage, bool) or not isinstance(leverage, int) or leverage < 1:
        raise EncodingError(f"leverage must be a positive integer: {leverage!r}", {"leverage": leverage})
    return UpdateLeverageAction(asset=asset_table.asset(coin), is_cross=bool(is_cross), leverage=leverage)


def build_usd_class_transfer_action(
    amount: float,
    to_perp: bool,
    nonce: int,
    is_mainnet: bool,
    vault_address: Optional[str] = None,
) -> UsdClassTransferAction:
    """
    USDC spot <-> perp transfer. The nonce is part of the signed message.
    With a vault, the amount names it: "25 subaccount:0x...".
    """
    # USDC has 6 decimals; finer amounts cannot be transferred
    if float_to_usd_int(amount) <= 0:
        raise InvalidNumber(f"transfer amount must be positive: {amount}", {"amount": amount})
    wire_amount = float_to_wire(amount)
    if vault_address:
        wire_amount += f" subaccount:{vault_address}"
    return UsdClassTransferAction(
        amount=wire_amount,
        to_perp=bool(to_perp),
        nonce=nonce,
        hyperliquid_chain=hyperliquid_chain(is_mainnet),
        signature_chain_id=SIGNATURE_CHAIN_ID,
    )


# ---- market orders ----

def slippage_price(mid_px: float, is_buy: bool, slippage: float, sz_decimals: int, is_spot: bool = False) -> float:
    """
    Aggressive limit price for an IOC market order.

    Rounded to 5 significant figures, then to the price decimals the
    exchange allows for the asset (6 for perps, 8 for spot, minus szDecimals).
    """
    px = check_finite(mid_px)
    slippage = check_finite(slippage)
    if px <= 0:
        raise InvalidNumber(f"reference price must be positive: {mid_px}", {"px": mid_px})
    if not 0 <= slippage < 1:
        raise InvalidNumber(f"slippage must be in [0, 1): {slippage}", {"slippage": slippage})
    px *= (1 + slippage) if is_buy else (1 - slippage)
    max_decimals = SPOT_MAX_DECIMALS if is_spot else PERP_MAX_DECIMALS
    return round(float(f"{px:.5g}"), max(0, max_decimals - sz_decimals))


def build_market_open(
    coin: str,
    is_buy: bool,
    sz: float,
    mid_px: float,
    asset_table: AssetTable,
    slippage: float = DEFAULT_SLIPPAGE,
    px: Optional[float] = None,
    cloid=None,
) -> CreateOrderRequest:
    """IOC limit order priced `slippage` through the reference price."""
    info = asset_table.info(coin)
    ref = px if px is not None else mid_px
    limit_px = slippage_price(ref, is_buy, slippage, info.sz_decimals, info.is_spot)
    logger.info(f"[order_builder] market open {coin} buy={is_buy} sz={sz} ref={ref} px={limit_px}")
    return CreateOrderRequest(
        coin=coin,
        is_buy=is_buy,
        limit_px=limit_px,
        sz=sz,
        reduce_only=False,
        order_type=OrderType.limit_order(Tif.IOC),
        cloid=cloid,
    )


def find_position(user_state: Mapping[str, Any], coin: str) -> Optional[Dict[str, Any]]:
    """Open position for `coin` in a clearinghouseState response, if any."""
    for asset_pos in user_state.get("assetPositions", []) or []:
        pos = asset_pos.get("position", {}) or {}
        if pos.get("coin") != coin:
            continue
        if float(pos.get("szi", 0) or 0) == 0:
            return None
        return pos
    return None


def build_market_close(
    coin: str,
    user_state: Mapping[str, Any],
    mid_px: float,
    asset_table: AssetTable,
    sz: Optional[float] = None,
    px: Optional[float] = None,
    slippage: float = DEFAULT_SLIPPAGE,
    cloid=None,
) -> CreateOrderRequest:
    """Reduce-only IOC order on the opposite side of the open position."""
    pos = find_position(user_state, coin)
    if pos is None:
        raise PositionNotFound(f"position not found for coin: {coin}", {"coin": coin})
    szi = float(pos["szi"])
    is_buy = szi < 0
    size = sz if sz is not None else abs(szi)
    info = asset_table.info(coin)
    ref = px if px is not None else mid_px
    limit_px = slippage_price(ref, is_buy, slippage, info.sz_decimals, info.is_spot)
    logger.info(f"[order_builder] market close {coin} szi={szi} buy={is_buy} sz={size} px={limit_px}")
    return CreateOrderRequest(
        coin=coin,
        is_buy=is_buy,
        limit_px=limit_px,
        sz=size,
        reduce_only=True,
        order_type=OrderType.limit_order(Tif.IOC),
        cloid=cloid,
    )
