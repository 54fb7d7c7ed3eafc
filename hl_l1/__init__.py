"""
hl_l1 - signed L1 actions for the Hyperliquid exchange.

Build an action, sign it against the network domain, assemble the
/exchange payload. Exchange wraps the whole path behind one HTTP call.
"""

from .action_schema import (
    Action,
    BuilderInfo,
    Cloid,
    Grouping,
    Tif,
    Tpsl,
    to_order_id,
)
from .errors import (
    ConfigurationError,
    EncodingError,
    HyperliquidError,
    InvalidNumber,
    NetworkError,
    PositionNotFound,
    RemoteRejected,
    SigningError,
    UnknownAsset,
)
from .formatting import float_to_wire
from .hl_canon import decode_action, encode_action
from .hl_envelope import assemble_payload, serialize_payload
from .hl_l1_sign import SigningEnvelope, sign_action, sign_l1_action, verify_l1_action
from .hl_meta import AssetInfo, AssetTable
from .hl_network import MAINNET_API_URL, TESTNET_API_URL
from .hl_private import Exchange
from .hl_user_sign import sign_user_signed_action, verify_user_signed_action
from .schemas.order_intent import (
    CancelByCloidRequest,
    CancelRequest,
    CreateOrderRequest,
    ModifyOrderRequest,
    OrderType,
)

__all__ = [
    "Action",
    "AssetInfo",
    "AssetTable",
    "BuilderInfo",
    "CancelByCloidRequest",
    "CancelRequest",
    "Cloid",
    "ConfigurationError",
    "CreateOrderRequest",
    "EncodingError",
    "Exchange",
    "Grouping",
    "HyperliquidError",
    "InvalidNumber",
    "MAINNET_API_URL",
    "ModifyOrderRequest",
    "NetworkError",
    "OrderType",
    "PositionNotFound",
    "RemoteRejected",
    "SigningEnvelope",
    "SigningError",
    "TESTNET_API_URL",
    "Tif",
    "Tpsl",
    "UnknownAsset",
    "assemble_payload",
    "decode_action",
    "encode_action",
    "float_to_wire",
    "serialize_payload",
    "sign_action",
    "sign_l1_action",
    "sign_user_signed_action",
    "to_order_id",
    "verify_l1_action",
    "verify_user_signed_action",
]
