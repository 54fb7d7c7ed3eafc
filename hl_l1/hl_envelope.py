"""
Payload assembly for POST /exchange.

Whether `vaultAddress` appears is decided in one place, VAULT_FIELD_TABLE,
keyed by (action type, vault present). The signer uses the same table
through signing_vault() so the hash always commits to what is sent.
"""
import json
from enum import Enum
from typing import Any, Dict, Optional

from hl_l1.action_schema import ACTION_TYPES, Action, UsdClassTransferAction
from hl_l1.hl_canon import action_to_wire
from hl_l1.hl_l1_sign import SigningEnvelope


class VaultField(Enum):
    OMIT = "omit"        # no vaultAddress key
    ADDRESS = "address"  # "vaultAddress": "0x..."
    NULL = "null"        # "vaultAddress": null


# Account-level transfers always carry an explicit null vault.
EXPLICIT_NULL_VAULT_TYPES = frozenset({UsdClassTransferAction.ACTION_TYPE})


def _vault_rule(action_type: str, vault_present: bool) -> VaultField:
    if action_type in EXPLICIT_NULL_VAULT_TYPES:
        return VaultField.NULL
    return VaultField.ADDRESS if vault_present else VaultField.OMIT


VAULT_FIELD_TABLE: Dict[tuple, VaultField] = {
    (action_type, vault_present): _vault_rule(action_type, vault_present)
    for action_type in ACTION_TYPES
    for vault_present in (False, True)
}


def vault_field(action_type: str, vault_address: Optional[str]) -> VaultField:
    return VAULT_FIELD_TABLE[(action_type, bool(vault_address))]


def signing_vault(action_type: str, vault_address: Optional[str]) -> Optional[str]:
    """Vault the signature commits to: only the one the payload carries."""
    if vault_field(action_type, vault_address) is VaultField.ADDRESS:
        return vault_address
    return None


def assemble_payload(action: Action, signature: Dict[str, Any], envelope: SigningEnvelope) -> Dict[str, Any]:
    """{action, nonce, signature, [vaultAddress], [expiresAfter]}."""
    payload: Dict[str, Any] = {
        "action": action_to_wire(action),
        "nonce": envelope.nonce,
        "signature": signature,
    }
    rule = vault_field(action.ACTION_TYPE, envelope.vault_address)
    if rule is VaultField.ADDRESS:
        payload["vaultAddress"] = envelope.vault_address
    elif rule is VaultField.NULL:
        payload["vaultAddress"] = None
    if envelope.expires_after is not None:
        payload["expiresAfter"] = envelope.expires_after
    return payload


def serialize_payload(payload: Dict[str, Any]) -> bytes:
    return json.dumps(payload, separators=(",", ":")).encode("utf-8")
