"""
L1 action signing.

    data   = msgpack(action) || nonce (8 bytes BE) || vault marker || [expiry]
    digest = keccak256(data)
    sig    = EIP-712 sign of Agent{source, connectionId=digest}

Vault marker is 0x00 when there is no vault, 0x01 followed by the 20-byte
address otherwise. Expiry, when configured, is 0x00 followed by 8 bytes BE.
"""
import logging
import time
from dataclasses import dataclass
from typing import Optional

from eth_account import Account
from eth_account.messages import encode_typed_data
from eth_keys.exceptions import BadSignature, ValidationError as KeyValidationError
from eth_utils import keccak, to_hex
from hexbytes import HexBytes

from hl_l1.action_schema import USER_SIGNED_ACTION_TYPES, Action
from hl_l1.errors import EncodingError, SigningError
from hl_l1.hl_canon import encode_action
from hl_l1.hl_network import NetworkDomain, domain_for

logger = logging.getLogger(__name__)

AGENT_TYPES = {
    "Agent": [
        {"name": "source", "type": "string"},
        {"name": "connectionId", "type": "bytes32"},
    ],
    "EIP712Domain": [
        {"name": "name", "type": "string"},
        {"name": "version", "type": "string"},
        {"name": "chainId", "type": "uint256"},
        {"name": "verifyingContract", "type": "address"},
    ],
}


@dataclass(frozen=True)
class SigningEnvelope:
    """Authentication envelope signed together with the action."""
    nonce: int
    vault_address: Optional[str] = None
    expires_after: Optional[int] = None

    def __post_init__(self):
        _uint64(self.nonce, "nonce")
        if self.expires_after is not None:
            _uint64(self.expires_after, "expiresAfter")


def _uint64(value, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value < 2 ** 64:
        raise EncodingError(f"{what} must be an unsigned 64-bit int: {value!r}", {what: repr(value)})
    return value


def get_timestamp_ms() -> int:
    return int(time.time() * 1000)


def address_to_bytes(address: str) -> bytes:
    try:
        raw = bytes.fromhex(address[2:] if address.startswith("0x") else address)
    except (ValueError, AttributeError):
        raise EncodingError(f"invalid address: {address!r}", {"address": address}) from None
    if len(raw) != 20:
        raise EncodingError(f"address must be 20 bytes: {address!r}", {"address": address})
    return raw


def action_hash(encoded: bytes, vault_address: Optional[str], nonce: int, expires_after: Optional[int]) -> bytes:
    """Keccak digest of the encoded action plus its authentication envelope."""
    data = encoded + _uint64(nonce, "nonce").to_bytes(8, "big")
    if vault_address:
        data += b"\x01" + address_to_bytes(vault_address)
    else:
        data += b"\x00"
    if expires_after is not None:
        data += b"\x00" + _uint64(expires_after, "expiresAfter").to_bytes(8, "big")
    return keccak(data)


def l1_payload(digest: bytes, domain: NetworkDomain) -> dict:
    """EIP-712 message for the phantom agent bound to `domain`."""
    return {
        "domain": domain.eip712_domain(),
        "types": AGENT_TYPES,
        "primaryType": "Agent",
        "message": {"source": domain.source, "connectionId": digest},
    }


def _signable(digest: bytes, is_mainnet: bool):
    return encode_typed_data(full_message=l1_payload(digest, domain_for(is_mainnet)))


def sign_typed(private_key, full_message: dict) -> dict:
    """EIP-712 sign `full_message` with a hex key or LocalAccount."""
    try:
        wallet = private_key if hasattr(private_key, "sign_message") else Account.from_key(HexBytes(private_key))
        signed = wallet.sign_message(encode_typed_data(full_message=full_message))
    except (ValueError, TypeError, KeyValidationError) as e:
        raise SigningError(f"signing failed: {e}") from e
    return {"r": to_hex(signed.r), "s": to_hex(signed.s), "v": signed.v}


def sign_hash(private_key, digest: bytes, is_mainnet: bool) -> dict:
    return sign_typed(private_key, l1_payload(digest, domain_for(is_mainnet)))


def sign_l1_action(
    private_key,
    action: Action,
    vault_address: Optional[str],
    nonce: int,
    expires_after: Optional[int],
    is_mainnet: bool,
) -> dict:
    """
    Sign an action for submission to /exchange.

    `private_key` may be a hex key or an eth_account LocalAccount.
    Returns {"r", "s", "v"}. Never retried: a new nonce is a new signature.
    """
    if getattr(action, "ACTION_TYPE", None) in USER_SIGNED_ACTION_TYPES:
        raise EncodingError(f"{action.ACTION_TYPE} is user-signed, not an L1 action")
    digest = action_hash(encode_action(action), vault_address, nonce, expires_after)
    signature = sign_hash(private_key, digest, is_mainnet)
    logger.info(
        "[hl:sign] type=%s nonce=%s vault=%s expires=%s mainnet=%s digest=0x%s",
        action.ACTION_TYPE, nonce, vault_address or "-", expires_after, is_mainnet, digest.hex(),
    )
    return signature


def recover_from_hash(digest: bytes, signature: dict, is_mainnet: bool) -> str:
    try:
        return Account.recover_message(
            _signable(digest, is_mainnet),
            vrs=(signature["v"], int(signature["r"], 16), int(signature["s"], 16)),
        )
    except (ValueError, TypeError, KeyError, BadSignature, KeyValidationError) as e:
        raise SigningError(f"cannot recover signer: {e}") from e


def recover_l1_signer(
    action: Action,
    signature: dict,
    vault_address: Optional[str],
    nonce: int,
    expires_after: Optional[int],
    is_mainnet: bool,
) -> str:
    digest = action_hash(encode_action(action), vault_address, nonce, expires_after)
    return recover_from_hash(digest, signature, is_mainnet)


def verify_l1_action(
    expected_address: str,
    action: Action,
    signature: dict,
    vault_address: Optional[str],
    nonce: int,
    expires_after: Optional[int],
    is_mainnet: bool,
) -> bool:
    try:
        recovered = recover_l1_signer(action, signature, vault_address, nonce, expires_after, is_mainnet)
    except SigningError:
        return False
    return recovered.lower() == expected_address.lower()


def sign_action(private_key, action: Action, envelope: SigningEnvelope, is_mainnet: bool) -> dict:
    return sign_l1_action(
        private_key, action, envelope.vault_address, envelope.nonce, envelope.expires_after, is_mainnet,
    )
