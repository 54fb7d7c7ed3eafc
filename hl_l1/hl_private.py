"""
Hyperliquid Private Client - authenticated actions against /exchange.

Every call runs the same path: build action -> nonce -> sign -> assemble
payload -> one POST -> parse. Nothing is retried; a retry would carry a
new nonce and therefore a different signature.
"""

import logging
from typing import Callable, List, Optional, Sequence, Union

import httpx
from eth_account import Account
from eth_keys.exceptions import ValidationError as KeyValidationError
from hexbytes import HexBytes

from hl_l1.action_schema import Action, BuilderInfo, Cloid, Grouping
from hl_l1.config import ExchangeConfig
from hl_l1.errors import PositionNotFound, RemoteRejected, SigningError, create_structured_error_response
from hl_l1.hl_envelope import assemble_payload, signing_vault
from hl_l1.hl_info import Info, post_json
from hl_l1.hl_l1_sign import SigningEnvelope, get_timestamp_ms, sign_l1_action
from hl_l1.hl_meta import AssetTable
from hl_l1.hl_network import TESTNET_API_URL, is_mainnet_url
from hl_l1.hl_user_sign import is_user_signed, sign_user_signed_action
from hl_l1.order_builder import (
    DEFAULT_SLIPPAGE,
    build_batch_modify_action,
    build_cancel_action,
    build_cancel_by_cloid_action,
    build_market_close,
    build_market_open,
    build_modify_action,
    build_order_action,
    build_update_leverage_action,
    build_usd_class_transfer_action,
    find_position,
    slippage_price,
)
from hl_l1.schemas.order_intent import (
    CancelByCloidRequest,
    CancelRequest,
    CreateOrderRequest,
    ModifyOrderRequest,
)
from hl_l1.schemas.responses import APIResponse, OrderStatus

logger = logging.getLogger("hl_private")


class Exchange:
    """Signs and submits L1 actions for one signer key."""

    def __init__(
        self,
        private_key: str,
        base_url: str = TESTNET_API_URL,
        asset_table: Optional[AssetTable] = None,
        vault_address: Optional[str] = None,
        account_address: Optional[str] = None,
        info: Optional[Info] = None,
        expires_after: Optional[int] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
        nonce_fn: Callable[[], int] = get_timestamp_ms,
        default_slippage: float = DEFAULT_SLIPPAGE,
    ):
        try:
            self.wallet = Account.from_key(HexBytes(private_key))
        except (ValueError, TypeError, KeyValidationError) as e:
            raise SigningError(f"invalid private key: {e}") from None
        self.base_url = base_url.rstrip("/")
        self.is_mainnet = is_mainnet_url(self.base_url)
        self.vault_address = vault_address or None
        self.account_address = account_address or None
        self.expires_after = expires_after
        self.default_slippage = default_slippage
        self._nonce_fn = nonce_fn
        self.info = info or Info(self.base_url, timeout=timeout, transport=transport)
        try:
            self.asset_table = asset_table if asset_table is not None else self.info.asset_table()
        except Exception:
            if info is None:
                self.info.close()
            raise
        self._client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

        logger.info(
            f"[hl_private] signer={self.wallet.address} vault={self.vault_address or '-'} "
            f"mainnet={self.is_mainnet} assets={len(self.asset_table)}"
        )

    @classmethod
    def from_config(
        cls,
        cfg: ExchangeConfig,
        asset_table: Optional[AssetTable] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> "Exchange":
        return cls(
            cfg.private_key,
            base_url=cfg.base_url,
            asset_table=asset_table,
            vault_address=cfg.vault_address,
            account_address=cfg.account_address,
            expires_after=cfg.expires_after,
            timeout=cfg.timeout_s,
            transport=transport,
            default_slippage=cfg.default_slippage,
        )

    @property
    def address(self) -> str:
        return self.wallet.address

    def set_expires_after(self, expires_after: Optional[int]) -> None:
        """Sign future actions with this expiry (ms); None disables it."""
        self.expires_after = expires_after

    # ---- core path ----

    def _execute(self, action: Action) -> APIResponse:
        if is_user_signed(action):
            # nonce and chain are inside the signed action; no L1 envelope
            nonce = action.nonce
            envelope = SigningEnvelope(nonce=nonce, vault_address=self.vault_address)
            signature = sign_user_signed_action(self.wallet, action)
        else:
            nonce = self._nonce_fn()
            envelope = SigningEnvelope(nonce=nonce, vault_address=self.vault_address, expires_after=self.expires_after)
            signature = sign_l1_action(
                self.wallet,
                action,
                signing_vault(action.ACTION_TYPE, self.vault_address),
                nonce,
                self.expires_after,
                self.is_mainnet,
            )
        payload = assemble_payload(action, signature, envelope)
        raw = post_json(self._client, "/exchange", payload)
        try:
            resp = APIResponse.model_validate(raw)
        except ValueError as e:
            raise RemoteRejected(f"unexpected response: {raw!r}") from e
        logger.info(f"[hl_private] {action.ACTION_TYPE} nonce={nonce} status={resp.status}")
        return resp

    @staticmethod
    def _check(resp: APIResponse, what: str) -> APIResponse:
        error = None
        if not resp.ok:
            error = RemoteRejected(f"failed to {what}: {resp.err}", {"response": resp.model_dump()})
        else:
            failed = resp.first_error()
            if failed is not None:
                index, message = failed
                error = RemoteRejected(
                    f"failed to {what}: order {index}: {message}",
                    {"index": index, "response": resp.model_dump()},
                )
        if error is not None:
            logger.warning(f"[hl_private] rejected: {create_structured_error_response(error)}")
            raise error
        return resp

    @staticmethod
    def _first_status(resp: APIResponse, what: str) -> OrderStatus:
        statuses = resp.statuses
        if not statuses:
            raise RemoteRejected(f"no status for {what}")
        return statuses[0]

    # ---- orders ----

    def bulk_orders(
        self,
        requests: Sequence[CreateOrderRequest],
        builder: Optional[BuilderInfo] = None,
        grouping: Grouping = Grouping.NA,
    ) -> APIResponse:
        action = build_order_action(requests, self.asset_table, builder=builder, grouping=grouping)
        return self._check(self._execute(action), "create orders")

    def order(self, request: CreateOrderRequest, builder: Optional[BuilderInfo] = None) -> OrderStatus:
        resp = self.bulk_orders([request], builder=builder)
        return self._first_status(resp, "order")

    def modify_order(self, request: ModifyOrderRequest) -> OrderStatus:
        action = build_modify_action(request, self.asset_table)
        resp = self._check(self._execute(action), "modify order")
        return self._first_status(resp, "modified order")

    def bulk_modify_orders(self, requests: Sequence[ModifyOrderRequest]) -> List[Union[OrderStatus, str]]:
        action = build_batch_modify_action(requests, self.asset_table)
        resp = self._check(self._execute(action), "modify orders")
        if not resp.statuses:
            raise RemoteRejected("no status for modified orders")
        return resp.statuses

    # ---- cancels ----

    def bulk_cancel(self, requests: Sequence[CancelRequest]) -> APIResponse:
        return self._check(self._execute(build_cancel_action(requests, self.asset_table)), "cancel orders")

    def cancel(self, coin: str, oid: int) -> APIResponse:
        return self.bulk_cancel([CancelRequest(coin=coin, oid=oid)])

    def bulk_cancel_by_cloid(self, requests: Sequence[CancelByCloidRequest]) -> APIResponse:
        action = build_cancel_by_cloid_action(requests, self.asset_table)
        return self._check(self._execute(action), "cancel orders")

    def cancel_by_cloid(self, coin: str, cloid: Union[Cloid, str]) -> APIResponse:
        return self.bulk_cancel_by_cloid([CancelByCloidRequest(coin=coin, cloid=cloid)])

    # ---- account ----

    def update_leverage(self, leverage: int, coin: str, is_cross: bool = True) -> APIResponse:
        action = build_update_leverage_action(coin, leverage, is_cross, self.asset_table)
        return self._check(self._execute(action), "update leverage")

    def usd_class_transfer(self, amount: float, to_perp: bool) -> APIResponse:
        action = build_usd_class_transfer_action(
            amount, to_perp, self._nonce_fn(), self.is_mainnet, vault_address=self.vault_address,
        )
        return self._check(self._execute(action), "transfer")

    # ---- market orders ----

    def _slippage(self, slippage: Optional[float]) -> float:
        return self.default_slippage if slippage is None else slippage

    def slippage_price(self, coin: str, is_buy: bool, slippage: Optional[float] = None, px: Optional[float] = None) -> float:
        info = self.asset_table.info(coin)
        ref = px if px is not None else self.info.mid_price(coin)
        return slippage_price(ref, is_buy, self._slippage(slippage), info.sz_decimals, info.is_spot)

    def market_open(
        self,
        coin: str,
        is_buy: bool,
        sz: float,
        px: Optional[float] = None,
        slippage: Optional[float] = None,
        cloid: Optional[Union[Cloid, str]] = None,
        builder: Optional[BuilderInfo] = None,
    ) -> OrderStatus:
        # unknown coins fail before any price lookup
        self.asset_table.info(coin)
        mid = px if px is not None else self.info.mid_price(coin)
        request = build_market_open(coin, is_buy, sz, mid, self.asset_table, slippage=self._slippage(slippage), cloid=cloid)
        return self.order(request, builder=builder)

    def market_close(
        self,
        coin: str,
        sz: Optional[float] = None,
        px: Optional[float] = None,
        slippage: Optional[float] = None,
        cloid: Optional[Union[Cloid, str]] = None,
        builder: Optional[BuilderInfo] = None,
    ) -> OrderStatus:
        self.asset_table.info(coin)
        address = self.account_address or self.vault_address or self.wallet.address
        user_state = self.info.user_state(address)
        if find_position(user_state, coin) is None:
            raise PositionNotFound(f"position not found for coin: {coin}", {"coin": coin})
        mid = px if px is not None else self.info.mid_price(coin)
        request = build_market_close(
            coin, user_state, mid, self.asset_table, sz=sz, slippage=self._slippage(slippage), cloid=cloid,
        )
        return self.order(request, builder=builder)

    # ---- lifecycle ----

    def close(self) -> None:
        self._client.close()
        self.info.close()

    def __enter__(self) -> "Exchange":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
