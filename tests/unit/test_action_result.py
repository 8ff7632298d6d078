"""
Unit Tests for Exchange Response Decoding

Reliability Level: SOVEREIGN TIER

Tests:
- Every known status variant decodes to its tagged result
- {"status": "err"} raises VenueRejectionError with the venue text verbatim
- Unknown shapes raise UnknownResponseError, never a default
"""

import os
import sys
from decimal import Decimal

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from trustlayer.errors import UnknownResponseError, VenueRejectionError
from trustlayer.exchange.action_result import (
    Acknowledged,
    ExchangeResponse,
    Filled,
    OrderError,
    Resting,
    decode_exchange_response,
    decode_status,
    is_success,
)


def ok(response_type, statuses):
    return {"status": "ok", "response": {"type": response_type, "data": {"statuses": statuses}}}


class TestDecodeStatus:

    def test_resting(self):
        assert decode_status({"resting": {"oid": 77738308}}) == Resting(order_id=77738308)

    def test_resting_with_cloid(self):
        result = decode_status({"resting": {"oid": 1, "cloid": "0x" + "ab" * 16}})
        assert result == Resting(order_id=1, cloid="0x" + "ab" * 16)

    def test_filled(self):
        result = decode_status({"filled": {"totalSz": "0.02", "avgPx": "1891.4", "oid": 77747314}})
        assert result == Filled(order_id=77747314, filled_size=Decimal("0.02"), average_price=Decimal("1891.4"))

    def test_error(self):
        message = "Order must have minimum value of $10."
        assert decode_status({"error": message}) == OrderError(message=message)

    @pytest.mark.parametrize("status", ["success", "waitingForFill", "waitingForTrigger"])
    def test_acknowledged_strings(self, status):
        assert decode_status(status) == Acknowledged(status=status)

    @pytest.mark.parametrize("entry", [
        "partiallyDone",
        {"unknown": {}},
        {"resting": {}},
        {"resting": {"oid": "12"}},
        {"resting": {"oid": True}},
        {"filled": {"oid": 1, "totalSz": 0.5, "avgPx": "1"}},
        {"filled": {"oid": 1}},
        {"error": {"code": 1}},
        {"resting": {"oid": 1}, "filled": {"oid": 1}},
        None,
        42,
    ])
    def test_unknown_shapes(self, entry):
        with pytest.raises(UnknownResponseError) as exc_info:
            decode_status(entry)
        assert exc_info.value.error_code == "HL-VEN-002"


class TestDecodeExchangeResponse:

    def test_order_statuses_in_order(self):
        response = decode_exchange_response(ok("order", [
            {"resting": {"oid": 1}},
            {"error": "Insufficient margin to place order."},
            {"filled": {"totalSz": "1", "avgPx": "2", "oid": 3}},
        ]))
        assert response.response_type == "order"
        assert [type(s) for s in response.statuses] == [Resting, OrderError, Filled]

    def test_cancel_success(self):
        response = decode_exchange_response(ok("cancel", ["success"]))
        assert response.first == Acknowledged(status="success")

    def test_default_without_data(self):
        response = decode_exchange_response({"status": "ok", "response": {"type": "default"}})
        assert response.statuses == (Acknowledged(status="default"),)

    def test_err_keeps_venue_text(self):
        message = "User or API Wallet 0xabc does not exist."
        with pytest.raises(VenueRejectionError) as exc_info:
            decode_exchange_response({"status": "err", "response": message})
        assert exc_info.value.venue_message == message
        assert exc_info.value.error_code == "HL-VEN-001"

    @pytest.mark.parametrize("payload", [
        "not json",
        [],
        {"status": "maybe", "response": {"type": "order"}},
        {"status": "ok", "response": "text"},
        {"status": "ok", "response": {"data": {"statuses": []}}},
        {"status": "ok", "response": {"type": "order", "data": {}}},
        {"status": "ok", "response": {"type": "order", "data": {"statuses": "success"}}},
    ])
    def test_unknown_top_level(self, payload):
        with pytest.raises(UnknownResponseError):
            decode_exchange_response(payload)

    def test_raw_is_kept(self):
        payload = ok("cancel", ["success"])
        assert decode_exchange_response(payload).raw == payload

    def test_first_on_empty_statuses(self):
        with pytest.raises(UnknownResponseError):
            ExchangeResponse(response_type="order").first


class TestIsSuccess:

    @pytest.mark.parametrize("result,expected", [
        (Resting(order_id=1), True),
        (Filled(order_id=1, filled_size=Decimal("1"), average_price=Decimal("1")), True),
        (Acknowledged(status="success"), True),
        (OrderError(message="no"), False),
    ])
    def test_variants(self, result, expected):
        assert is_success(result) is expected
