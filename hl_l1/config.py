# hl_l1/config.py
from dataclasses import dataclass
from typing import Literal, Optional
import os
import logging

from dotenv import load_dotenv, find_dotenv

from hl_l1.errors import ConfigurationError
from hl_l1.hl_network import base_url_for

# Load nearest .env from project tree, don't override existing process env
load_dotenv(find_dotenv(usecwd=True), override=False)

logger = logging.getLogger(__name__)

Network = Literal["mainnet", "testnet"]


@dataclass(frozen=True)
class ExchangeConfig:
    network: Network
    base_url: str
    private_key: str               # signer (API wallet or main account)
    vault_address: Optional[str]   # sub-account / vault to act for
    account_address: Optional[str] # master funded address, for position lookups
    expires_after: Optional[int]   # ms timestamp, signed into every action
    default_slippage: float
    timeout_s: float


def _require(name: str) -> str:
    v = (os.getenv(name) or "").strip()
    if not v:
        raise ConfigurationError(f"Missing env var: {name}", {"var": name})
    return v


def _optional(name: str) -> Optional[str]:
    v = (os.getenv(name) or "").strip()
    return v or None


def _number(name: str, default: str, cast):
    raw = (os.getenv(name) or default).strip()
    try:
        return cast(raw)
    except ValueError:
        raise ConfigurationError(f"{name} is not a valid number: {raw!r}", {"var": name}) from None


def load_config() -> ExchangeConfig:
    network = (os.getenv("HL_NETWORK") or "testnet").strip().lower()
    if network not in ("mainnet", "testnet"):
        raise ConfigurationError("HL_NETWORK must be 'mainnet' or 'testnet'", {"var": "HL_NETWORK"})

    expires = _optional("HL_EXPIRES_AFTER_MS")
    slippage = _number("HL_DEFAULT_SLIPPAGE", "0.05", float)
    if not 0 <= slippage < 1:
        raise ConfigurationError("HL_DEFAULT_SLIPPAGE must be in [0, 1)", {"var": "HL_DEFAULT_SLIPPAGE"})

    return ExchangeConfig(
        network=network,
        base_url=(_optional("HL_BASE_URL") or base_url_for(network)).rstrip("/"),
        private_key=_require("HL_PRIVATE_KEY"),
        vault_address=_optional("HL_VAULT_ADDRESS"),
        account_address=_optional("HL_ACCOUNT_ADDRESS"),
        expires_after=_number("HL_EXPIRES_AFTER_MS", expires, int) if expires else None,
        default_slippage=slippage,
        timeout_s=_number("HL_TIMEOUT_S", "10", float),
    )


def _short(addr: Optional[str]) -> Optional[str]:
    if not addr:
        return None
    return addr[:6] + "..." + addr[-4:]


def redacted(cfg: ExchangeConfig) -> dict:
    return {
        "network": cfg.network,
        "base_url": cfg.base_url,
        "private_key": "0x***redacted***",
        "vault_address": _short(cfg.vault_address),
        "account_address": _short(cfg.account_address),
        "expires_after": cfg.expires_after,
        "default_slippage": cfg.default_slippage,
        "timeout_s": cfg.timeout_s,
    }
