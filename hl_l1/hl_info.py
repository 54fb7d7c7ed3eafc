"""
Read-only /info collaborator: exchange metadata, mid prices, account state.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from hl_l1.errors import NetworkError, RemoteRejected, UnknownAsset
from hl_l1.hl_meta import AssetTable
from hl_l1.hl_network import TESTNET_API_URL

logger = logging.getLogger("hl_info")


def post_json(client: httpx.Client, path: str, payload: Dict[str, Any]) -> Any:
    """Single POST, no retries. Maps transport failures onto client errors."""
    try:
        r = client.post(path, json=payload)
        r.raise_for_status()
        return r.json()
    except httpx.HTTPStatusError as e:
        status_code = e.response.status_code
        body = e.response.text
        logger.error(f"[hl_info] POST {path} -> HTTP {status_code}: {body[:200]}")
        if 400 <= status_code < 500:
            raise RemoteRejected(f"HTTP {status_code}: {body}", {"status_code": status_code}) from e
        raise NetworkError(f"Server error: {status_code}", {"status_code": status_code}) from e
    except httpx.RequestError as e:
        logger.error(f"[hl_info] POST {path} failed: {e}")
        raise NetworkError(str(e)) from e
    except ValueError as e:
        raise RemoteRejected(f"response is not JSON: {e}") from e


class Info:
    """Thin client for the /info endpoint."""

    def __init__(
        self,
        base_url: str = TESTNET_API_URL,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def post(self, payload: Dict[str, Any]) -> Any:
        return post_json(self._client, "/info", payload)

    def meta(self) -> Dict[str, Any]:
        return self.post({"type": "meta"})

    def spot_meta(self) -> Dict[str, Any]:
        return self.post({"type": "spotMeta"})

    def all_mids(self) -> Dict[str, str]:
        return self.post({"type": "allMids"})

    def mid_price(self, coin: str) -> float:
        mids = self.all_mids()
        if coin not in mids:
            raise UnknownAsset(f"no mid price for coin: {coin}", {"coin": coin})
        return float(mids[coin])

    def user_state(self, address: str) -> Dict[str, Any]:
        return self.post({"type": "clearinghouseState", "user": address})

    def asset_table(self, include_spot: bool = False) -> AssetTable:
        return AssetTable.from_meta(self.meta(), self.spot_meta() if include_spot else None)

    def close(self) -> None:
        self._client.close()
