# ============================================================================
# Hyperliquid Trust Layer v1.0.0
# Trading Intents - HL-ENC Compliance
# ============================================================================
#
# Reliability Level: SOVEREIGN TIER (Mission-Critical)
# Purpose: Immutable value objects describing what the caller wants to do
#
# SOVEREIGN MANDATE:
#   - Intents are frozen once built
#   - Structural problems (bad asset id, bad cloid) fail at construction
#   - Prices and sizes are validated by DecimalGateway at encode time
#
# Error Codes:
#   - HL-ENC-001: Intent field is structurally invalid
#
# ============================================================================

import re
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from trustlayer.errors import EncodingError


UINT64_MAX = 2 ** 64 - 1
CLOID_PATTERN = re.compile(r"^0x[0-9a-fA-F]{32}$")

NumericInput = Union[str, int, Decimal]


class TimeInForce(Enum):
    """Limit order time-in-force, valued as the venue spells it."""
    GTC = "Gtc"  # Good til cancelled
    IOC = "Ioc"  # Immediate or cancel
    ALO = "Alo"  # Add liquidity only (post-only)


class OrderGrouping(Enum):
    """How a batch of orders is linked on the venue."""
    NA = "na"
    NORMAL_TPSL = "normalTpsl"
    POSITION_TPSL = "positionTpsl"


def _require_asset(asset: object) -> None:
    if isinstance(asset, bool) or not isinstance(asset, int) or asset < 0:
        raise EncodingError(f"asset must be a non-negative integer, got {asset!r}")


def _require_order_id(order_id: object) -> None:
    if isinstance(order_id, bool) or not isinstance(order_id, int):
        raise EncodingError(f"order_id must be an integer, got {order_id!r}")
    if order_id < 0 or order_id > UINT64_MAX:
        raise EncodingError(f"order_id out of uint64 range: {order_id}")


def validate_cloid(cloid: object) -> str:
    """
    Check a client order id and return it in lowercase.

    A cloid is 16 bytes rendered as 0x-prefixed hex.
    """
    if not isinstance(cloid, str) or not CLOID_PATTERN.match(cloid):
        raise EncodingError(
            f"cloid must be 0x followed by 32 hex characters, got {cloid!r}"
        )
    return cloid.lower()


@dataclass(frozen=True)
class OrderIntent:
    """
    A limit order the caller wants placed.

    limit_price and size accept str, int or Decimal. Floats are refused
    when the intent is encoded.
    """
    asset: int
    is_buy: bool
    limit_price: NumericInput
    size: NumericInput
    time_in_force: TimeInForce = TimeInForce.GTC
    reduce_only: bool = False
    cloid: Optional[str] = None

    def __post_init__(self) -> None:
        _require_asset(self.asset)
        if not isinstance(self.is_buy, bool):
            raise EncodingError(f"is_buy must be a bool, got {self.is_buy!r}")
        if not isinstance(self.reduce_only, bool):
            raise EncodingError(f"reduce_only must be a bool, got {self.reduce_only!r}")
        if not isinstance(self.time_in_force, TimeInForce):
            raise EncodingError(f"time_in_force must be a TimeInForce, got {self.time_in_force!r}")
        if self.cloid is not None:
            object.__setattr__(self, "cloid", validate_cloid(self.cloid))


@dataclass(frozen=True)
class CancelIntent:
    """Cancel one order by venue order id."""
    asset: int
    order_id: int

    def __post_init__(self) -> None:
        _require_asset(self.asset)
        _require_order_id(self.order_id)


@dataclass(frozen=True)
class CancelByCloidIntent:
    """Cancel one order by client order id."""
    asset: int
    cloid: str

    def __post_init__(self) -> None:
        _require_asset(self.asset)
        object.__setattr__(self, "cloid", validate_cloid(self.cloid))


@dataclass(frozen=True)
class ModifyIntent:
    """Replace a resting order, addressed by venue order id or cloid."""
    order_id: Union[int, str]
    order: OrderIntent

    def __post_init__(self) -> None:
        if isinstance(self.order_id, str):
            object.__setattr__(self, "order_id", validate_cloid(self.order_id))
        else:
            _require_order_id(self.order_id)
        if not isinstance(self.order, OrderIntent):
            raise EncodingError("order must be an OrderIntent")
