# hl_l1/action_schema.py
"""
Typed L1 actions.

One frozen dataclass per action kind. WIRE_FIELDS fixes both the wire key
and its position for every field; the encoder in hl_canon walks it in
order, so key order never depends on how an object was built.
Optional fields set to None are left out of the wire form.

Field types are checked on construction: a float where the wire wants a
decimal string would still pack, and only the exchange would notice.
"""
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Optional, Tuple, Union

from hl_l1.errors import EncodingError


class Tif(str, Enum):
    """Time in force."""
    ALO = "Alo"  # Add Liquidity Only (post-only)
    IOC = "Ioc"  # Immediate or Cancel
    GTC = "Gtc"  # Good Till Cancel


class Tpsl(str, Enum):
    TP = "tp"
    SL = "sl"


class Grouping(str, Enum):
    NA = "na"
    NORMAL_TPSL = "normalTpsl"
    POSITION_TPSL = "positionTpsl"


def _enum(enum_cls, value, what: str):
    try:
        return enum_cls(value)
    except (ValueError, TypeError):
        raise EncodingError(f"invalid {what}: {value!r}", {what: repr(value)}) from None


def _int(value, what: str, minimum: int = 0) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise EncodingError(f"{what} must be an int, got {type(value).__name__}", {what: repr(value)})
    if not minimum <= value < 2 ** 64:
        raise EncodingError(f"{what} out of range: {value}", {what: value})
    return value


def _bool(value, what: str) -> bool:
    if not isinstance(value, bool):
        raise EncodingError(f"{what} must be a bool, got {type(value).__name__}", {what: repr(value)})
    return value


def _str(value, what: str) -> str:
    if not isinstance(value, str) or not value:
        raise EncodingError(f"{what} must be a non-empty string, got {value!r}", {what: repr(value)})
    return value


def _instance(value, cls, what: str):
    if not isinstance(value, cls):
        raise EncodingError(f"{what} must be {cls.__name__}, got {type(value).__name__}", {what: repr(value)})
    return value


def _items(value, cls, what: str) -> tuple:
    if not isinstance(value, (list, tuple)):
        raise EncodingError(f"{what} must be a list, got {type(value).__name__}", {what: repr(value)})
    return tuple(_instance(v, cls, what) for v in value)


@dataclass(frozen=True)
class Cloid:
    """Client order id: 16 bytes as 0x-prefixed hex."""
    raw: str

    def __post_init__(self):
        raw = self.raw
        if not isinstance(raw, str) or not raw.startswith("0x") or len(raw) != 34:
            raise EncodingError(f"cloid must be 0x + 32 hex chars: {raw!r}", {"cloid": repr(raw)})
        try:
            int(raw[2:], 16)
        except ValueError:
            raise EncodingError(f"cloid is not hex: {raw!r}", {"cloid": raw}) from None
        object.__setattr__(self, "raw", raw.lower())

    @classmethod
    def from_int(cls, value: int) -> "Cloid":
        if value < 0 or value >= 2 ** 128:
            raise EncodingError(f"cloid int out of range: {value}", {"cloid": value})
        return cls(f"0x{value:032x}")

    def __str__(self) -> str:
        return self.raw


OrderId = Union[int, Cloid]


def to_order_id(value) -> OrderId:
    """Resolve an exchange oid (int) or a client order id (Cloid / hex str)."""
    if isinstance(value, bool):
        raise EncodingError(f"order id cannot be a bool: {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise EncodingError(f"order id must be non-negative: {value}", {"oid": value})
        return value
    if isinstance(value, Cloid):
        return value
    if isinstance(value, str):
        return Cloid(value)
    raise EncodingError(f"unsupported order id type: {type(value).__name__}")


@dataclass(frozen=True)
class LimitWire:
    tif: Tif

    WIRE_FIELDS: ClassVar = (("tif", "tif"),)

    def __post_init__(self):
        object.__setattr__(self, "tif", _enum(Tif, self.tif, "tif"))


@dataclass(frozen=True)
class TriggerWire:
    is_market: bool
    tpsl: Tpsl
    trigger_px: str

    WIRE_FIELDS: ClassVar = (("is_market", "isMarket"), ("tpsl", "tpsl"), ("trigger_px", "triggerPx"))

    def __post_init__(self):
        _bool(self.is_market, "isMarket")
        _str(self.trigger_px, "triggerPx")
        object.__setattr__(self, "tpsl", _enum(Tpsl, self.tpsl, "tpsl"))


@dataclass(frozen=True)
class OrderTypeWire:
    limit: Optional[LimitWire] = None
    trigger: Optional[TriggerWire] = None

    WIRE_FIELDS: ClassVar = (("limit", "limit"), ("trigger", "trigger"))

    def __post_init__(self):
        if (self.limit is None) == (self.trigger is None):
            raise EncodingError("order type must set exactly one of limit or trigger")
        if self.limit is not None:
            _instance(self.limit, LimitWire, "limit")
        if self.trigger is not None:
            _instance(self.trigger, TriggerWire, "trigger")


@dataclass(frozen=True)
class OrderWire:
    asset: int
    is_buy: bool
    limit_px: str
    sz: str
    reduce_only: bool
    order_type: OrderTypeWire
    cloid: Optional[Cloid] = None

    WIRE_FIELDS: ClassVar = (
        ("asset", "a"),
        ("is_buy", "b"),
        ("limit_px", "p"),
        ("sz", "s"),
        ("reduce_only", "r"),
        ("order_type", "t"),
        ("cloid", "c"),
    )

    def __post_init__(self):
        _int(self.asset, "asset")
        _bool(self.is_buy, "isBuy")
        _str(self.limit_px, "limitPx")
        _str(self.sz, "sz")
        _bool(self.reduce_only, "reduceOnly")
        _instance(self.order_type, OrderTypeWire, "orderType")
        if self.cloid is not None:
            _instance(self.cloid, Cloid, "cloid")


@dataclass(frozen=True)
class BuilderInfo:
    """Builder fee recipient; fee is in tenths of a basis point."""
    address: str
    fee: int

    WIRE_FIELDS: ClassVar = (("address", "b"), ("fee", "f"))

    def __post_init__(self):
        _str(self.address, "builder")
        _int(self.fee, "fee")
        object.__setattr__(self, "address", self.address.lower())


@dataclass(frozen=True)
class ModifyWire:
    oid: OrderId
    order: OrderWire

    WIRE_FIELDS: ClassVar = (("oid", "oid"), ("order", "order"))

    def __post_init__(self):
        object.__setattr__(self, "oid", to_order_id(self.oid))
        _instance(self.order, OrderWire, "order")


@dataclass(frozen=True)
class CancelWire:
    asset: int
    oid: int

    WIRE_FIELDS: ClassVar = (("asset", "a"), ("oid", "o"))

    def __post_init__(self):
        _int(self.asset, "asset")
        _int(self.oid, "oid")


@dataclass(frozen=True)
class CancelByCloidWire:
    asset: int
    cloid: Cloid

    WIRE_FIELDS: ClassVar = (("asset", "asset"), ("cloid", "cloid"))

    def __post_init__(self):
        _int(self.asset, "asset")
        _instance(self.cloid, Cloid, "cloid")


# ---- actions ----

@dataclass(frozen=True)
class OrderAction:
    orders: Tuple[OrderWire, ...]
    grouping: Grouping = Grouping.NA
    builder: Optional[BuilderInfo] = None

    ACTION_TYPE: ClassVar[str] = "order"
    WIRE_FIELDS: ClassVar = (("orders", "orders"), ("grouping", "grouping"), ("builder", "builder"))

    def __post_init__(self):
        object.__setattr__(self, "orders", _items(self.orders, OrderWire, "orders"))
        object.__setattr__(self, "grouping", _enum(Grouping, self.grouping, "grouping"))
        if self.builder is not None:
            _instance(self.builder, BuilderInfo, "builder")


@dataclass(frozen=True)
class ModifyAction:
    oid: OrderId
    order: OrderWire

    ACTION_TYPE: ClassVar[str] = "modify"
    WIRE_FIELDS: ClassVar = (("oid", "oid"), ("order", "order"))

    def __post_init__(self):
        object.__setattr__(self, "oid", to_order_id(self.oid))
        _instance(self.order, OrderWire, "order")


@dataclass(frozen=True)
class BatchModifyAction:
    modifies: Tuple[ModifyWire, ...]

    ACTION_TYPE: ClassVar[str] = "batchModify"
    WIRE_FIELDS: ClassVar = (("modifies", "modifies"),)

    def __post_init__(self):
        object.__setattr__(self, "modifies", _items(self.modifies, ModifyWire, "modifies"))


@dataclass(frozen=True)
class CancelAction:
    cancels: Tuple[CancelWire, ...]

    ACTION_TYPE: ClassVar[str] = "cancel"
    WIRE_FIELDS: ClassVar = (("cancels", "cancels"),)

    def __post_init__(self):
        object.__setattr__(self, "cancels", _items(self.cancels, CancelWire, "cancels"))


@dataclass(frozen=True)
class CancelByCloidAction:
    cancels: Tuple[CancelByCloidWire, ...]

    ACTION_TYPE: ClassVar[str] = "cancelByCloid"
    WIRE_FIELDS: ClassVar = (("cancels", "cancels"),)

    def __post_init__(self):
        object.__setattr__(self, "cancels", _items(self.cancels, CancelByCloidWire, "cancels"))


@dataclass(frozen=True)
class UpdateLeverageAction:
    asset: int
    is_cross: bool
    leverage: int

    ACTION_TYPE: ClassVar[str] = "updateLeverage"
    WIRE_FIELDS: ClassVar = (("asset", "asset"), ("is_cross", "isCross"), ("leverage", "leverage"))

    def __post_init__(self):
        _int(self.asset, "asset")
        _bool(self.is_cross, "isCross")
        _int(self.leverage, "leverage", minimum=1)


@dataclass(frozen=True)
class UsdClassTransferAction:
    """
    Move USDC between the spot and perp balances.

    User-signed: the EIP-712 message is the action's own fields, so the
    nonce and chain travel inside the action. A vault is addressed by the
    " subaccount:<vault>" suffix on `amount`, never by the payload's
    vaultAddress.
    """
    amount: str
    to_perp: bool
    nonce: int
    hyperliquid_chain: str
    signature_chain_id: str

    ACTION_TYPE: ClassVar[str] = "usdClassTransfer"
    WIRE_FIELDS: ClassVar = (
        ("amount", "amount"),
        ("to_perp", "toPerp"),
        ("nonce", "nonce"),
        ("signature_chain_id", "signatureChainId"),
        ("hyperliquid_chain", "hyperliquidChain"),
    )
    SIGN_TYPES: ClassVar = (
        {"name": "hyperliquidChain", "type": "string"},
        {"name": "amount", "type": "string"},
        {"name": "toPerp", "type": "bool"},
        {"name": "nonce", "type": "uint64"},
    )
    PRIMARY_TYPE: ClassVar[str] = "HyperliquidTransaction:UsdClassTransfer"

    def __post_init__(self):
        _str(self.amount, "amount")
        _bool(self.to_perp, "toPerp")
        _int(self.nonce, "nonce")
        if self.hyperliquid_chain not in ("Mainnet", "Testnet"):
            raise EncodingError(f"invalid hyperliquidChain: {self.hyperliquid_chain!r}")
        _str(self.signature_chain_id, "signatureChainId")
        try:
            int(self.signature_chain_id, 16)
        except ValueError:
            raise EncodingError(f"signatureChainId is not hex: {self.signature_chain_id!r}") from None


Action = Union[
    OrderAction,
    ModifyAction,
    BatchModifyAction,
    CancelAction,
    CancelByCloidAction,
    UpdateLeverageAction,
    UsdClassTransferAction,
]

ACTION_TYPES = {
    cls.ACTION_TYPE: cls
    for cls in (
        OrderAction,
        ModifyAction,
        BatchModifyAction,
        CancelAction,
        CancelByCloidAction,
        UpdateLeverageAction,
        UsdClassTransferAction,
    )
}

# Signed over their own fields (EIP-712) instead of the L1 action hash.
USER_SIGNED_ACTION_TYPES = frozenset({UsdClassTransferAction.ACTION_TYPE})
