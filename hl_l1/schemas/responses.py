"""
Exchange response models.

/exchange answers {"status": "ok"|"err", "response": ...}. On "ok" the
response carries per-order statuses, each one of resting / filled / error
(cancels answer the bare string "success"). On "err" the response is the
error message.
"""

from typing import List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


class RestingStatus(BaseModel):
    oid: int
    cloid: Optional[str] = None
    status: Optional[str] = None


class FilledStatus(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_sz: str = Field(..., alias="totalSz")
    avg_px: str = Field(..., alias="avgPx")
    oid: int
    cloid: Optional[str] = None


class OrderStatus(BaseModel):
    resting: Optional[RestingStatus] = None
    filled: Optional[FilledStatus] = None
    error: Optional[str] = None

    @property
    def oid(self) -> Optional[int]:
        if self.resting is not None:
            return self.resting.oid
        if self.filled is not None:
            return self.filled.oid
        return None

    def __str__(self) -> str:
        return self.model_dump_json(exclude_none=True, by_alias=True)


class ResponseData(BaseModel):
    statuses: List[Union[OrderStatus, str]] = Field(default_factory=list)


class ResponseBody(BaseModel):
    type: str
    data: Optional[ResponseData] = None


class APIResponse(BaseModel):
    status: str
    response: Union[ResponseBody, str, None] = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def err(self) -> Optional[str]:
        if self.ok:
            return None
        return self.response if isinstance(self.response, str) else str(self.response)

    @property
    def data(self) -> Optional[ResponseData]:
        if isinstance(self.response, ResponseBody):
            return self.response.data
        return None

    @property
    def statuses(self) -> List[Union[OrderStatus, str]]:
        data = self.data
        return list(data.statuses) if data is not None else []

    def first_error(self) -> Optional[Tuple[int, str]]:
        """(index, message) of the first per-order error, if any."""
        for i, status in enumerate(self.statuses):
            if isinstance(status, OrderStatus) and status.error is not None:
                return i, status.error
        return None
