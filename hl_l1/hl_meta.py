"""
Asset table: coin symbol -> exchange asset index.

Perp IDs are the index in meta["universe"]; spot IDs are 10000 plus the
index in spotMeta["universe"]. The table is built once and never mutated.
"""
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional

from hl_l1.errors import UnknownAsset

logger = logging.getLogger(__name__)

SPOT_ASSET_OFFSET = 10000


@dataclass(frozen=True)
class AssetInfo:
    name: str
    asset: int
    sz_decimals: int

    @property
    def is_spot(self) -> bool:
        return self.asset >= SPOT_ASSET_OFFSET


class AssetTable(Mapping):
    """Read-only coin -> AssetInfo mapping."""

    def __init__(self, assets: Mapping[str, AssetInfo]):
        self._assets = MappingProxyType(dict(assets))

    def __getitem__(self, coin: str) -> AssetInfo:
        return self._assets[coin]

    def __iter__(self) -> Iterator[str]:
        return iter(self._assets)

    def __len__(self) -> int:
        return len(self._assets)

    def info(self, coin: str) -> AssetInfo:
        try:
            return self._assets[coin]
        except KeyError:
            raise UnknownAsset(f"unknown asset: {coin}", {"coin": coin}) from None

    def asset(self, coin: str) -> int:
        return self.info(coin).asset

    @classmethod
    def from_indices(cls, indices: Mapping[str, int], sz_decimals: int = 0) -> "AssetTable":
        """Table from a plain {coin: index} map, e.g. {"BTC": 0}."""
        return cls({
            coin: AssetInfo(name=coin, asset=int(idx), sz_decimals=sz_decimals)
            for coin, idx in indices.items()
        })

    @classmethod
    def from_meta(cls, meta: Dict[str, Any], spot_meta: Optional[Dict[str, Any]] = None) -> "AssetTable":
        assets: Dict[str, AssetInfo] = {}
        for idx, coin in enumerate(meta.get("universe", []) or []):
            name = coin["name"]
            assets[name] = AssetInfo(name=name, asset=idx, sz_decimals=int(coin.get("szDecimals", 0)))

        if spot_meta:
            tokens = spot_meta.get("tokens", []) or []
            for pair in spot_meta.get("universe", []) or []:
                asset = SPOT_ASSET_OFFSET + int(pair["index"])
                base, _quote = pair["tokens"]
                base_info = tokens[base] if base < len(tokens) else {}
                info = AssetInfo(name=pair["name"], asset=asset, sz_decimals=int(base_info.get("szDecimals", 0)))
                assets[pair["name"]] = info

        logger.info(f"[hl_meta] Loaded {len(assets)} assets")
        return cls(assets)
