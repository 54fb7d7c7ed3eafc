"""
Order Intent Schema - Pydantic models for high-level trading requests.
These are what callers build; order_builder turns them into wire actions.
"""

import logging
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from hl_l1.action_schema import Cloid, Tif, Tpsl, to_order_id
from hl_l1.errors import EncodingError

logger = logging.getLogger("order_intent")


def _to_cloid(v: Any) -> Optional[Cloid]:
    if v is None or isinstance(v, Cloid):
        return v
    if isinstance(v, str):
        return Cloid(v)
    if isinstance(v, int) and not isinstance(v, bool):
        return Cloid.from_int(v)
    raise EncodingError(f"unsupported cloid type: {type(v).__name__}")


class LimitOrderType(BaseModel):
    model_config = ConfigDict(frozen=True)

    tif: Tif = Field(..., description="Time in force (Alo, Ioc, Gtc)")


class TriggerOrderType(BaseModel):
    model_config = ConfigDict(frozen=True)

    trigger_px: float = Field(..., description="Price at which the order activates")
    is_market: bool = Field(..., description="Execute as market once triggered")
    tpsl: Tpsl = Field(..., description="Take profit (tp) or stop loss (sl)")


class OrderType(BaseModel):
    """Exactly one of limit or trigger."""
    model_config = ConfigDict(frozen=True)

    limit: Optional[LimitOrderType] = None
    trigger: Optional[TriggerOrderType] = None

    @model_validator(mode="after")
    def exactly_one_kind(self):
        if self.limit is not None and self.trigger is not None:
            raise EncodingError("order type sets both limit and trigger")
        if self.limit is None and self.trigger is None:
            raise EncodingError("order type sets neither limit nor trigger")
        return self

    @classmethod
    def limit_order(cls, tif: Union[Tif, str] = Tif.GTC) -> "OrderType":
        return cls(limit=LimitOrderType(tif=tif))

    @classmethod
    def trigger_order(cls, trigger_px: float, is_market: bool, tpsl: Union[Tpsl, str]) -> "OrderType":
        return cls(trigger=TriggerOrderType(trigger_px=trigger_px, is_market=is_market, tpsl=tpsl))


class CreateOrderRequest(BaseModel):
    """A single order intent, addressed by coin symbol."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    coin: str = Field(..., min_length=1, description="Coin symbol (e.g., BTC, ETH)")
    is_buy: bool = Field(..., description="True for buy, False for sell")
    limit_px: float = Field(..., description="Limit price")
    sz: float = Field(..., description="Order size in coin units")
    reduce_only: bool = Field(False, description="Only reduce an existing position")
    order_type: OrderType = Field(..., description="Limit or trigger order type")
    cloid: Optional[Cloid] = Field(None, description="Client order id")

    @field_validator("cloid", mode="before")
    @classmethod
    def parse_cloid(cls, v):
        return _to_cloid(v)


class ModifyOrderRequest(BaseModel):
    """Replace an existing order (by exchange oid or cloid) with a new one."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    oid: Union[int, Cloid]
    order: CreateOrderRequest

    @field_validator("oid", mode="before")
    @classmethod
    def parse_oid(cls, v):
        return to_order_id(v)


class CancelRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    coin: str = Field(..., min_length=1)
    oid: int = Field(..., ge=0)


class CancelByCloidRequest(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    coin: str = Field(..., min_length=1)
    cloid: Cloid

    @field_validator("cloid", mode="before")
    @classmethod
    def parse_cloid(cls, v):
        return _to_cloid(v)
