"""
User-signed actions.

Transfers are not signed through the L1 action hash. The EIP-712 message
is the action's own fields under the "HyperliquidSignTransaction" domain,
with the chain id the action names in `signatureChainId`.
"""
import logging

from eth_account import Account
from eth_account.messages import encode_typed_data
from eth_keys.exceptions import BadSignature, ValidationError as KeyValidationError

from hl_l1.action_schema import USER_SIGNED_ACTION_TYPES, Action
from hl_l1.errors import EncodingError, SigningError
from hl_l1.hl_canon import action_to_wire
from hl_l1.hl_l1_sign import sign_typed
from hl_l1.hl_network import user_signed_domain

logger = logging.getLogger(__name__)

EIP712_DOMAIN_TYPES = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]


def is_user_signed(action: Action) -> bool:
    return getattr(action, "ACTION_TYPE", None) in USER_SIGNED_ACTION_TYPES


def user_signed_payload(action: Action) -> dict:
    """EIP-712 message for a user-signed action."""
    if not is_user_signed(action):
        raise EncodingError(f"{type(action).__name__} is not a user-signed action")
    wire = action_to_wire(action)
    fields = list(action.SIGN_TYPES)
    return {
        "domain": user_signed_domain(action.signature_chain_id),
        "types": {action.PRIMARY_TYPE: fields, "EIP712Domain": EIP712_DOMAIN_TYPES},
        "primaryType": action.PRIMARY_TYPE,
        "message": {f["name"]: wire[f["name"]] for f in fields},
    }


def sign_user_signed_action(private_key, action: Action) -> dict:
    """Sign a transfer-style action. Returns {"r", "s", "v"}."""
    signature = sign_typed(private_key, user_signed_payload(action))
    logger.info(
        "[hl:sign] type=%s nonce=%s chain=%s user-signed",
        action.ACTION_TYPE, action.nonce, action.hyperliquid_chain,
    )
    return signature


def recover_user_signed_signer(action: Action, signature: dict) -> str:
    try:
        return Account.recover_message(
            encode_typed_data(full_message=user_signed_payload(action)),
            vrs=(signature["v"], int(signature["r"], 16), int(signature["s"], 16)),
        )
    except (ValueError, TypeError, KeyError, BadSignature, KeyValidationError) as e:
        raise SigningError(f"cannot recover signer: {e}") from e


def verify_user_signed_action(expected_address: str, action: Action, signature: dict) -> bool:
    try:
        recovered = recover_user_signed_signer(action, signature)
    except SigningError:
        return False
    return recovered.lower() == expected_address.lower()
