"""
Unit Tests for the Action Encoder

Reliability Level: SOVEREIGN TIER

Tests:
- Wire field order for every action builder
- Signing preimage layout: msgpack || nonce (uint64 BE) || vault marker
- Empty vault is treated as no vault
- Any change to action, nonce or vault changes the hash
"""

import os
import sys
from decimal import Decimal

import msgpack
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from trustlayer.errors import EncodingError
from trustlayer.intents import (
    CancelByCloidIntent,
    CancelIntent,
    ModifyIntent,
    OrderGrouping,
    OrderIntent,
    TimeInForce,
)
from trustlayer.signing.action_encoder import (
    ActionEncoder,
    address_to_bytes,
    normalize_vault_address,
)


VAULT = "0x1719884eb866cb12b2287399b15f7db5e7d775ea"
CLOID = "0x" + "0" * 31 + "1"


@pytest.fixture
def encoder():
    return ActionEncoder()


@pytest.fixture
def intent():
    return OrderIntent(asset=0, is_buy=True, limit_price="30000.0", size="0.0010")


# =============================================================================
# Wire Builders
# =============================================================================

class TestOrderWire:

    def test_field_order(self, encoder, intent):
        wire = encoder.order_wire(intent)
        assert list(wire.keys()) == ["a", "b", "p", "s", "r", "t"]

    def test_values_are_canonical(self, encoder, intent):
        wire = encoder.order_wire(intent)
        assert wire == {
            "a": 0,
            "b": True,
            "p": "30000",
            "s": "0.001",
            "r": False,
            "t": {"limit": {"tif": "Gtc"}},
        }

    def test_cloid_appended_last(self, encoder):
        wire = encoder.order_wire(
            OrderIntent(asset=1, is_buy=False, limit_price="10", size="2", cloid="0x" + "AB" * 16)
        )
        assert list(wire.keys())[-1] == "c"
        assert wire["c"] == "0x" + "ab" * 16

    @pytest.mark.parametrize("tif", list(TimeInForce))
    def test_time_in_force_spelling(self, encoder, tif):
        wire = encoder.order_wire(OrderIntent(asset=0, is_buy=True, limit_price="1", size="1", time_in_force=tif))
        assert wire["t"]["limit"]["tif"] == tif.value

    def test_float_price_refused(self, encoder):
        with pytest.raises(EncodingError):
            encoder.order_wire(OrderIntent(asset=0, is_buy=True, limit_price=30000.0, size="1"))


class TestActionBuilders:

    def test_order_action_layout(self, encoder, intent):
        action = encoder.order_action([intent])
        assert list(action.keys()) == ["type", "orders", "grouping"]
        assert action["type"] == "order"
        assert action["grouping"] == "na"

    def test_order_action_grouping(self, encoder, intent):
        action = encoder.order_action([intent, intent], grouping=OrderGrouping.NORMAL_TPSL)
        assert action["grouping"] == "normalTpsl"
        assert len(action["orders"]) == 2

    def test_order_action_builder(self, encoder, intent):
        action = encoder.order_action([intent], builder={"b": VAULT.upper().replace("0X", "0x"), "f": 10})
        assert list(action.keys())[-1] == "builder"
        assert action["builder"] == {"b": VAULT, "f": 10}

    def test_builder_requires_fields(self, encoder, intent):
        with pytest.raises(EncodingError):
            encoder.order_action([intent], builder={"b": VAULT})

    def test_empty_order_list_refused(self, encoder):
        with pytest.raises(EncodingError):
            encoder.order_action([])

    def test_cancel_action(self, encoder):
        action = encoder.cancel_action([CancelIntent(asset=3, order_id=77)])
        assert action == {"type": "cancel", "cancels": [{"a": 3, "o": 77}]}

    def test_cancel_by_cloid_action(self, encoder):
        action = encoder.cancel_by_cloid_action([CancelByCloidIntent(asset=2, cloid=CLOID)])
        assert action == {"type": "cancelByCloid", "cancels": [{"asset": 2, "cloid": CLOID}]}

    def test_empty_cancel_list_refused(self, encoder):
        with pytest.raises(EncodingError):
            encoder.cancel_action([])

    def test_modify_action(self, encoder, intent):
        action = encoder.modify_action(ModifyIntent(order_id=55, order=intent))
        assert list(action.keys()) == ["type", "oid", "order"]
        assert action["oid"] == 55

    def test_batch_modify_action(self, encoder, intent):
        action = encoder.batch_modify_action([
            ModifyIntent(order_id=1, order=intent),
            ModifyIntent(order_id=CLOID, order=intent),
        ])
        assert action["type"] == "batchModify"
        assert [m["oid"] for m in action["modifies"]] == [1, CLOID]

    def test_update_leverage_layout(self, encoder):
        action = encoder.update_leverage_action(asset=0, leverage=10, is_cross=True)
        assert list(action.keys()) == ["type", "asset", "isCross", "leverage"]
        assert action == {"type": "updateLeverage", "asset": 0, "isCross": True, "leverage": 10}

    @pytest.mark.parametrize("leverage", [0, -1, True, "10", 2.5])
    def test_update_leverage_refuses_bad_leverage(self, encoder, leverage):
        with pytest.raises(EncodingError):
            encoder.update_leverage_action(asset=0, leverage=leverage, is_cross=True)

    def test_update_isolated_margin(self, encoder):
        action = encoder.update_isolated_margin_action(asset=1, is_buy=True, ntli=-5_000_000)
        assert action == {"type": "updateIsolatedMargin", "asset": 1, "isBuy": True, "ntli": -5_000_000}

    def test_schedule_cancel(self, encoder):
        assert encoder.schedule_cancel_action() == {"type": "scheduleCancel"}
        assert encoder.schedule_cancel_action(1_700_000_000_000) == {
            "type": "scheduleCancel", "time": 1_700_000_000_000,
        }


# =============================================================================
# Signing Preimage
# =============================================================================

class TestEncode:

    NONCE = 1_700_000_000_123

    def test_layout_without_vault(self, encoder, intent):
        action = encoder.order_action([intent])
        data = encoder.encode(action, self.NONCE)

        packed = msgpack.packb(action, use_bin_type=True)
        assert data == packed + self.NONCE.to_bytes(8, "big") + b"\x00"

    def test_msgpack_map_header(self, encoder, intent):
        data = encoder.encode(encoder.order_action([intent]), self.NONCE)
        assert data[0] == 0x83  # fixmap with three entries

    def test_layout_with_vault(self, encoder, intent):
        action = encoder.order_action([intent])
        data = encoder.encode(action, self.NONCE, VAULT)
        assert data.endswith(b"\x01" + bytes.fromhex(VAULT[2:]))
        assert len(data) == len(encoder.pack_action(action)) + 8 + 1 + 20

    def test_empty_vault_is_no_vault(self, encoder, intent):
        action = encoder.order_action([intent])
        assert encoder.encode(action, self.NONCE, "") == encoder.encode(action, self.NONCE, None)

    def test_vault_case_does_not_matter(self, encoder, intent):
        action = encoder.order_action([intent])
        assert encoder.encode(action, self.NONCE, VAULT.upper().replace("0X", "0x")) == \
            encoder.encode(action, self.NONCE, VAULT)

    @pytest.mark.parametrize("nonce", [-1, 2 ** 64, True, "1"])
    def test_nonce_must_be_uint64(self, encoder, intent, nonce):
        with pytest.raises(EncodingError):
            encoder.encode(encoder.order_action([intent]), nonce)

    def test_nonce_bounds_accepted(self, encoder, intent):
        action = encoder.order_action([intent])
        assert encoder.encode(action, 0)[-9:-1] == b"\x00" * 8
        assert encoder.encode(action, 2 ** 64 - 1)[-9:-1] == b"\xff" * 8

    def test_unpackable_action_refused(self, encoder):
        with pytest.raises(EncodingError):
            encoder.encode({"type": "order", "bad": Decimal("1")}, self.NONCE)

    def test_bad_vault_refused(self, encoder, intent):
        with pytest.raises(EncodingError):
            encoder.encode(encoder.order_action([intent]), self.NONCE, "0x1234")


class TestActionHash:

    NONCE = 1_700_000_000_000

    def test_deterministic(self, encoder, intent):
        action = encoder.order_action([intent])
        assert encoder.action_hash(action, self.NONCE) == encoder.action_hash(action, self.NONCE)
        assert len(encoder.action_hash(action, self.NONCE)) == 32

    def test_equal_prices_in_different_spellings_hash_equal(self, encoder):
        a = encoder.order_action([OrderIntent(asset=0, is_buy=True, limit_price="100.0", size="1")])
        b = encoder.order_action([OrderIntent(asset=0, is_buy=True, limit_price=Decimal("100"), size="1.00")])
        assert encoder.action_hash(a, self.NONCE) == encoder.action_hash(b, self.NONCE)

    def test_nonce_changes_hash(self, encoder, intent):
        action = encoder.order_action([intent])
        assert encoder.action_hash(action, self.NONCE) != encoder.action_hash(action, self.NONCE + 1)

    def test_price_changes_hash(self, encoder):
        a = encoder.order_action([OrderIntent(asset=0, is_buy=True, limit_price="100", size="1")])
        b = encoder.order_action([OrderIntent(asset=0, is_buy=True, limit_price="100.1", size="1")])
        assert encoder.action_hash(a, self.NONCE) != encoder.action_hash(b, self.NONCE)

    def test_vault_changes_hash(self, encoder, intent):
        action = encoder.order_action([intent])
        assert encoder.action_hash(action, self.NONCE) != encoder.action_hash(action, self.NONCE, VAULT)


class TestAddressHelpers:

    def test_address_to_bytes(self):
        assert address_to_bytes(VAULT) == bytes.fromhex(VAULT[2:])
        assert address_to_bytes(VAULT[2:]) == bytes.fromhex(VAULT[2:])

    @pytest.mark.parametrize("value", ["0x12", "0x" + "zz" * 20, 123])
    def test_address_to_bytes_refuses(self, value):
        with pytest.raises(EncodingError):
            address_to_bytes(value)

    def test_normalize_vault_address(self):
        assert normalize_vault_address(None) is None
        assert normalize_vault_address("") is None
        assert normalize_vault_address(VAULT.upper().replace("0X", "0x")) == VAULT
