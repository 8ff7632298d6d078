"""
============================================================================
Hyperliquid Trust Layer v1.0.0
Info Endpoint Schemas - Pydantic Boundary Models
============================================================================

Reliability Level: SOVEREIGN TIER (Mission-Critical)
Input Constraints: Venue JSON with decimal values as strings
Side Effects: None (pure validation)

These models parse replies from POST /info. The venue sends every price
and size as a decimal string; they are parsed to Decimal here and never
pass through float. Unknown fields are ignored so that additive venue
changes do not break reads, while missing required fields fail
validation at the boundary.

ENDPOINTS
---------
- openOrders:          List[OpenOrder]
- orderStatus:         OrderStatusResponse
- clearinghouseState:  ClearinghouseState
- meta:                UniverseMeta

============================================================================
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


_VENUE_MODEL_CONFIG = ConfigDict(
    # Additive venue fields are tolerated
    extra="ignore",
    # Accept both wire names (limitPx) and field names (limit_price)
    populate_by_name=True,
    frozen=True,
)


def _reject_float(value: Any, field_name: str) -> Any:
    if isinstance(value, float):
        raise ValueError(f"{field_name} must be a decimal string, got float")
    return value


class OpenOrder(BaseModel):
    """A resting order as reported by openOrders."""

    model_config = _VENUE_MODEL_CONFIG

    order_id: int = Field(..., alias="oid")
    coin: str
    side: str = Field(..., pattern=r"^[AB]$", description="B = bid (buy), A = ask (sell)")
    limit_price: Decimal = Field(..., alias="limitPx")
    size: Decimal = Field(..., alias="sz")
    timestamp: int
    orig_size: Optional[Decimal] = Field(default=None, alias="origSz")
    cloid: Optional[str] = None
    reduce_only: Optional[bool] = Field(default=None, alias="reduceOnly")
    order_type: Optional[str] = Field(default=None, alias="orderType")
    tif: Optional[str] = None

    @field_validator("limit_price", "size", "orig_size", mode="before")
    @classmethod
    def validate_decimal_string(cls, v: Any, info: ValidationInfo) -> Any:
        return _reject_float(v, info.field_name)

    @property
    def is_buy(self) -> bool:
        return self.side == "B"


class OrderStatusDetail(BaseModel):
    model_config = _VENUE_MODEL_CONFIG

    order: OpenOrder
    status: str = Field(..., description="open, filled, canceled, triggered, rejected, ...")
    status_timestamp: int = Field(..., alias="statusTimestamp")


class OrderStatusResponse(BaseModel):
    """
    Reply to orderStatus.

    status is "order" when the venue knows the id and "unknownOid" when
    it does not.
    """

    model_config = _VENUE_MODEL_CONFIG

    status: str
    order: Optional[OrderStatusDetail] = None

    @property
    def is_known(self) -> bool:
        return self.status == "order" and self.order is not None

    @property
    def order_state(self) -> Optional[str]:
        return self.order.status if self.order is not None else None

    @property
    def is_filled(self) -> bool:
        return self.order_state == "filled"

    @property
    def is_open(self) -> bool:
        return self.order_state == "open"

    @property
    def is_canceled(self) -> bool:
        state = self.order_state
        return state is not None and state.lower().endswith("canceled")


class MarginSummary(BaseModel):
    model_config = _VENUE_MODEL_CONFIG

    account_value: Decimal = Field(..., alias="accountValue")
    total_margin_used: Decimal = Field(..., alias="totalMarginUsed")
    total_ntl_pos: Decimal = Field(..., alias="totalNtlPos")
    total_raw_usd: Decimal = Field(..., alias="totalRawUsd")


class ClearinghouseState(BaseModel):
    """Perpetuals account summary for one user."""

    model_config = _VENUE_MODEL_CONFIG

    margin_summary: MarginSummary = Field(..., alias="marginSummary")
    cross_margin_summary: Optional[MarginSummary] = Field(default=None, alias="crossMarginSummary")
    withdrawable: Decimal
    asset_positions: List[Dict[str, Any]] = Field(default_factory=list, alias="assetPositions")
    time: Optional[int] = None


class AssetInfo(BaseModel):
    model_config = _VENUE_MODEL_CONFIG

    name: str
    sz_decimals: int = Field(..., alias="szDecimals")
    max_leverage: Optional[int] = Field(default=None, alias="maxLeverage")


class UniverseMeta(BaseModel):
    """Perpetuals universe; an asset's id is its index in this list."""

    model_config = _VENUE_MODEL_CONFIG

    universe: List[AssetInfo]

    def asset_id(self, coin: str) -> Optional[int]:
        for index, asset in enumerate(self.universe):
            if asset.name == coin:
                return index
        return None
