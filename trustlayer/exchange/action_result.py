# ============================================================================
# Hyperliquid Trust Layer v1.0.0
# Exchange Response Decoding - HL-VEN Compliance
# ============================================================================
#
# Reliability Level: SOVEREIGN TIER (Mission-Critical)
# Purpose: Decode /exchange replies ONCE, at the boundary, into tagged
#          ActionResult variants
#
# SOVEREIGN MANDATE:
#   - Top-level "err" is a VenueRejectionError with the venue text verbatim
#   - Per-order outcomes are Resting | Filled | OrderError | Acknowledged
#   - Any shape not listed here is an UnknownResponseError, never guessed at
#
# Response Shapes:
#   {"status": "ok", "response": {"type": "order",
#       "data": {"statuses": [{"resting": {"oid": 1}},
#                             {"filled": {"totalSz": "0.1", "avgPx": "5", "oid": 2}},
#                             {"error": "Order must have minimum value of $10."}]}}}
#   {"status": "ok", "response": {"type": "cancel", "data": {"statuses": ["success"]}}}
#   {"status": "ok", "response": {"type": "default"}}
#   {"status": "err", "response": "User or API Wallet 0x... does not exist."}
#
# Error Codes:
#   - HL-VEN-001: Venue rejected the action
#   - HL-VEN-002: Unrecognised response shape
#
# ============================================================================

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple, Union

from trustlayer.errors import EncodingError, UnknownResponseError, VenueRejectionError
from trustlayer.signing.decimal_gateway import DecimalGateway

logger = logging.getLogger(__name__)


# Bare-string statuses that acknowledge an action without an order id
ACKNOWLEDGED_STATUSES = frozenset({"success", "waitingForFill", "waitingForTrigger"})


# ============================================================================
# Result variants
# ============================================================================

@dataclass(frozen=True)
class Resting:
    """Order accepted and resting on the book."""
    order_id: int
    cloid: Optional[str] = None


@dataclass(frozen=True)
class Filled:
    """Order matched immediately (fully, or for an IOC the filled part)."""
    order_id: int
    filled_size: Decimal
    average_price: Decimal
    cloid: Optional[str] = None


@dataclass(frozen=True)
class OrderError:
    """Venue refused this entry; message is the venue's own text."""
    message: str


@dataclass(frozen=True)
class Acknowledged:
    """Action accepted without an order id (cancel, leverage, margin)."""
    status: str
    message: Optional[str] = None


ActionResult = Union[Resting, Filled, OrderError, Acknowledged]


@dataclass(frozen=True)
class ExchangeResponse:
    """Decoded successful /exchange reply."""
    response_type: str
    statuses: Tuple[ActionResult, ...] = ()
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def first(self) -> ActionResult:
        if not self.statuses:
            raise UnknownResponseError(
                f"{self.response_type} response carried no statuses", payload=self.raw
            )
        return self.statuses[0]


def is_success(result: ActionResult) -> bool:
    """True for every variant except OrderError."""
    return not isinstance(result, OrderError)


# ============================================================================
# Decoding
# ============================================================================

_gateway = DecimalGateway()


def decode_status(entry: Any) -> ActionResult:
    """
    Decode one element of data.statuses.

    Raises:
        UnknownResponseError: If the entry matches no known variant (HL-VEN-002)
    """
    if isinstance(entry, str):
        if entry in ACKNOWLEDGED_STATUSES:
            return Acknowledged(status=entry)
        raise UnknownResponseError(f"unknown status string {entry!r}", payload=entry)

    if not isinstance(entry, dict) or len(entry) != 1:
        raise UnknownResponseError("status entry must be a single-key object", payload=entry)

    (tag, body), = entry.items()
    try:
        if tag == "resting":
            return Resting(order_id=_order_id(body["oid"]), cloid=body.get("cloid"))
        if tag == "filled":
            return Filled(
                order_id=_order_id(body["oid"]),
                filled_size=_gateway.to_decimal(body["totalSz"], "totalSz"),
                average_price=_gateway.to_decimal(body["avgPx"], "avgPx"),
                cloid=body.get("cloid"),
            )
        if tag == "error":
            if not isinstance(body, str):
                raise UnknownResponseError("error status must carry a string", payload=entry)
            return OrderError(message=body)
    except (KeyError, TypeError, AttributeError, EncodingError) as e:
        raise UnknownResponseError(f"malformed {tag} status: {e}", payload=entry) from e

    raise UnknownResponseError(f"unknown status variant {tag!r}", payload=entry)


def decode_exchange_response(payload: Any) -> ExchangeResponse:
    """
    Decode a full /exchange reply body.

    Raises:
        VenueRejectionError: On {"status": "err"} (HL-VEN-001)
        UnknownResponseError: On any unrecognised shape (HL-VEN-002)
    """
    if not isinstance(payload, dict):
        raise UnknownResponseError("exchange response is not an object", payload=payload)

    status = payload.get("status")
    response = payload.get("response")

    if status == "err":
        message = response if isinstance(response, str) else str(response)
        logger.warning(f"[HL-VEN-001] Venue rejected action | message={message}")
        raise VenueRejectionError(message)

    if status != "ok" or not isinstance(response, dict):
        raise UnknownResponseError(f"unexpected top-level status {status!r}", payload=payload)

    response_type = response.get("type")
    if not isinstance(response_type, str):
        raise UnknownResponseError("response.type missing", payload=payload)

    data = response.get("data")
    if data is None:
        # leverage, isolated margin and scheduleCancel reply with a bare type
        return ExchangeResponse(
            response_type=response_type,
            statuses=(Acknowledged(status=response_type),),
            raw=payload,
        )

    statuses = data.get("statuses") if isinstance(data, dict) else None
    if not isinstance(statuses, list):
        raise UnknownResponseError("response.data.statuses missing", payload=payload)

    return ExchangeResponse(
        response_type=response_type,
        statuses=tuple(decode_status(entry) for entry in statuses),
        raw=payload,
    )


def _order_id(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"oid must be an integer, got {value!r}")
    return value
