"""
Canonical action encoding.

action_to_wire walks each dataclass's WIRE_FIELDS in declared order and
builds a plain dict, so msgpack emits the keys in exactly that order.
decode_action rebuilds the typed action from the packed bytes.
"""
import logging
from enum import Enum
from typing import Any, Dict, Mapping

import msgpack

from hl_l1.action_schema import (
    ACTION_TYPES,
    Action,
    BatchModifyAction,
    BuilderInfo,
    CancelAction,
    CancelByCloidAction,
    CancelByCloidWire,
    CancelWire,
    Cloid,
    LimitWire,
    ModifyAction,
    ModifyWire,
    OrderAction,
    OrderTypeWire,
    OrderWire,
    TriggerWire,
    UpdateLeverageAction,
    UsdClassTransferAction,
    to_order_id,
)
from hl_l1.errors import EncodingError

logger = logging.getLogger(__name__)


def _value_to_wire(value: Any) -> Any:
    if hasattr(value, "WIRE_FIELDS"):
        return _fields_to_wire(value)
    if isinstance(value, (tuple, list)):
        return [_value_to_wire(v) for v in value]
    if isinstance(value, Cloid):
        return value.raw
    if isinstance(value, Enum):
        return value.value
    return value


def _fields_to_wire(obj: Any) -> Dict[str, Any]:
    if isinstance(obj, OrderTypeWire) and (obj.limit is None) == (obj.trigger is None):
        raise EncodingError("order type must set exactly one of limit or trigger")
    out: Dict[str, Any] = {}
    for attr, key in obj.WIRE_FIELDS:
        value = getattr(obj, attr)
        if value is None:
            continue
        out[key] = _value_to_wire(value)
    return out


def action_to_wire(action: Action) -> Dict[str, Any]:
    """Plain dict for the action with `type` first, then declared fields."""
    action_type = getattr(action, "ACTION_TYPE", None)
    if ACTION_TYPES.get(action_type) is not type(action):
        raise EncodingError(f"not an action: {type(action).__name__}")
    wire = {"type": action_type}
    wire.update(_fields_to_wire(action))
    return wire


def pack_wire(wire: Mapping[str, Any]) -> bytes:
    return msgpack.packb(wire, use_bin_type=True)


def encode_action(action: Action) -> bytes:
    """Byte-stable msgpack encoding of an action; this is the signing input."""
    packed = pack_wire(action_to_wire(action))
    logger.debug("[hl:canon] %s packed=%s", action.ACTION_TYPE, packed.hex()[:200])
    return packed


# ---- decoding ----

def _require(wire: Mapping[str, Any], key: str, what: str) -> Any:
    if not isinstance(wire, Mapping):
        raise EncodingError(f"{what} must be a map, got {type(wire).__name__}")
    if key not in wire:
        raise EncodingError(f"{what} missing field {key!r}", {"field": key})
    return wire[key]


def _require_list(wire: Mapping[str, Any], key: str, what: str) -> list:
    value = _require(wire, key, what)
    if not isinstance(value, (list, tuple)):
        raise EncodingError(f"{what} field {key!r} must be a list, got {type(value).__name__}", {"field": key})
    return value


def _order_type_from_wire(wire: Mapping[str, Any]) -> OrderTypeWire:
    if not isinstance(wire, Mapping) or set(wire) - {"limit", "trigger"}:
        raise EncodingError(f"unexpected order type: {wire!r}")
    limit = trigger = None
    if "limit" in wire:
        limit = LimitWire(tif=_require(wire["limit"], "tif", "limit"))
    if "trigger" in wire:
        t = wire["trigger"]
        trigger = TriggerWire(
            is_market=_require(t, "isMarket", "trigger"),
            tpsl=_require(t, "tpsl", "trigger"),
            trigger_px=_require(t, "triggerPx", "trigger"),
        )
    return OrderTypeWire(limit=limit, trigger=trigger)


def _order_from_wire(wire: Mapping[str, Any]) -> OrderWire:
    cloid = wire.get("c") if isinstance(wire, Mapping) else None
    return OrderWire(
        asset=_require(wire, "a", "order"),
        is_buy=_require(wire, "b", "order"),
        limit_px=_require(wire, "p", "order"),
        sz=_require(wire, "s", "order"),
        reduce_only=_require(wire, "r", "order"),
        order_type=_order_type_from_wire(_require(wire, "t", "order")),
        cloid=Cloid(cloid) if cloid is not None else None,
    )


def _modify_from_wire(wire: Mapping[str, Any]) -> ModifyWire:
    return ModifyWire(
        oid=to_order_id(_require(wire, "oid", "modify")),
        order=_order_from_wire(_require(wire, "order", "modify")),
    )


def _order_action(wire):
    builder = wire.get("builder")
    return OrderAction(
        orders=tuple(_order_from_wire(o) for o in _require_list(wire, "orders", "order action")),
        grouping=_require(wire, "grouping", "order action"),
        builder=BuilderInfo(
            address=_require(builder, "b", "builder"),
            fee=_require(builder, "f", "builder"),
        ) if builder is not None else None,
    )


def _modify_action(wire):
    m = _modify_from_wire(wire)
    return ModifyAction(oid=m.oid, order=m.order)


def _batch_modify_action(wire):
    return BatchModifyAction(
        modifies=tuple(_modify_from_wire(m) for m in _require_list(wire, "modifies", "batchModify")),
    )


def _cancel_action(wire):
    return CancelAction(cancels=tuple(
        CancelWire(asset=_require(c, "a", "cancel"), oid=_require(c, "o", "cancel"))
        for c in _require_list(wire, "cancels", "cancel")
    ))


def _cancel_by_cloid_action(wire):
    return CancelByCloidAction(cancels=tuple(
        CancelByCloidWire(
            asset=_require(c, "asset", "cancelByCloid"),
            cloid=Cloid(_require(c, "cloid", "cancelByCloid")),
        )
        for c in _require_list(wire, "cancels", "cancelByCloid")
    ))


def _update_leverage_action(wire):
    return UpdateLeverageAction(
        asset=_require(wire, "asset", "updateLeverage"),
        is_cross=_require(wire, "isCross", "updateLeverage"),
        leverage=_require(wire, "leverage", "updateLeverage"),
    )


def _usd_class_transfer_action(wire):
    return UsdClassTransferAction(
        amount=_require(wire, "amount", "usdClassTransfer"),
        to_perp=_require(wire, "toPerp", "usdClassTransfer"),
        nonce=_require(wire, "nonce", "usdClassTransfer"),
        hyperliquid_chain=_require(wire, "hyperliquidChain", "usdClassTransfer"),
        signature_chain_id=_require(wire, "signatureChainId", "usdClassTransfer"),
    )


_DECODERS = {
    OrderAction.ACTION_TYPE: _order_action,
    ModifyAction.ACTION_TYPE: _modify_action,
    BatchModifyAction.ACTION_TYPE: _batch_modify_action,
    CancelAction.ACTION_TYPE: _cancel_action,
    CancelByCloidAction.ACTION_TYPE: _cancel_by_cloid_action,
    UpdateLeverageAction.ACTION_TYPE: _update_leverage_action,
    UsdClassTransferAction.ACTION_TYPE: _usd_class_transfer_action,
}


def wire_to_action(wire: Mapping[str, Any]) -> Action:
    action_type = _require(wire, "type", "action")
    decoder = _DECODERS.get(action_type) if isinstance(action_type, str) else None
    if decoder is None:
        raise EncodingError(f"unknown action type: {action_type!r}", {"type": action_type})
    return decoder(wire)


def decode_action(data: bytes) -> Action:
    """Inverse of encode_action."""
    try:
        wire = msgpack.unpackb(data, raw=False)
    except (ValueError, TypeError, msgpack.UnpackException) as e:
        raise EncodingError(f"cannot unpack action: {e}") from e
    return wire_to_action(wire)
