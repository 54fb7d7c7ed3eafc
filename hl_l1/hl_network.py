"""
Network selection and EIP-712 domain separation.

Mainnet and testnet share the "Exchange" domain; the phantom agent
`source` differs ("a" vs "b"), so a signature made for one network never
verifies on the other.
"""
from dataclasses import dataclass

MAINNET_API_URL = "https://api.hyperliquid.xyz"
TESTNET_API_URL = "https://api.hyperliquid-testnet.xyz"

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


@dataclass(frozen=True)
class NetworkDomain:
    name: str
    chain_id: int
    verifying_contract: str
    version: str
    source: str

    def eip712_domain(self) -> dict:
        return {
            "chainId": self.chain_id,
            "name": self.name,
            "verifyingContract": self.verifying_contract,
            "version": self.version,
        }


MAINNET = NetworkDomain(name="Exchange", chain_id=1337, verifying_contract=ZERO_ADDRESS, version="1", source="a")
TESTNET = NetworkDomain(name="Exchange", chain_id=1337, verifying_contract=ZERO_ADDRESS, version="1", source="b")


def domain_for(is_mainnet: bool) -> NetworkDomain:
    return MAINNET if is_mainnet else TESTNET


def base_url_for(network: str) -> str:
    n = (network or "testnet").strip().lower()
    if n == "mainnet":
        return MAINNET_API_URL
    return TESTNET_API_URL


def is_mainnet_url(base_url: str) -> bool:
    return (base_url or "").rstrip("/") == MAINNET_API_URL


# User-signed actions (transfers) sign their own fields under a separate domain.
SIGNATURE_CHAIN_ID = "0x66eee"


def hyperliquid_chain(is_mainnet: bool) -> str:
    return "Mainnet" if is_mainnet else "Testnet"


def user_signed_domain(signature_chain_id: str = SIGNATURE_CHAIN_ID) -> dict:
    return {
        "name": "HyperliquidSignTransaction",
        "version": "1",
        "chainId": int(signature_chain_id, 16),
        "verifyingContract": ZERO_ADDRESS,
    }
