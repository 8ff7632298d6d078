# ============================================================================
# Hyperliquid Trust Layer v1.0.0
# Action Encoder - HL-ENC Compliance
# ============================================================================
#
# Reliability Level: SOVEREIGN TIER (Mission-Critical)
# Purpose: Turns intents into venue wire actions and the exact byte sequence
#          whose Keccak-256 hash is signed
#
# SOVEREIGN MANDATE:
#   - Field order is part of the signature; dict insertion order is fixed here
#   - Nonce is packed as uint64 big-endian
#   - Vault marker is 0x00, or 0x01 followed by the 20 address bytes
#   - Every price and size passes through DecimalGateway.to_wire()
#
# Wire Layout:
#   msgpack(action) || nonce (8 bytes, big-endian) || vault marker
#
# Error Codes:
#   - HL-ENC-001: Intent cannot be encoded
#
# ============================================================================

import logging
from typing import Any, Dict, Optional, Sequence

import msgpack

from trustlayer.errors import EncodingError
from trustlayer.intents import (
    UINT64_MAX,
    CancelByCloidIntent,
    CancelIntent,
    ModifyIntent,
    OrderGrouping,
    OrderIntent,
)
from trustlayer.signing.decimal_gateway import DecimalGateway
from trustlayer.signing.keccak import keccak256

logger = logging.getLogger(__name__)


NO_VAULT_MARKER = b"\x00"
VAULT_MARKER = b"\x01"
ADDRESS_BYTES = 20


def address_to_bytes(address: str) -> bytes:
    """
    Decode a 0x-prefixed 20-byte hex address.

    Raises:
        EncodingError: If the address is not 40 hex characters
    """
    if not isinstance(address, str):
        raise EncodingError(f"address must be a string, got {type(address).__name__}")
    body = address[2:] if address[:2] in ("0x", "0X") else address
    try:
        raw = bytes.fromhex(body)
    except ValueError:
        raise EncodingError(f"address is not hex: {address!r}") from None
    if len(raw) != ADDRESS_BYTES:
        raise EncodingError(f"address must be {ADDRESS_BYTES} bytes, got {len(raw)}")
    return raw


def normalize_vault_address(vault_address: Optional[str]) -> Optional[str]:
    """Return a lowercase vault address, or None for an absent or empty one."""
    if vault_address is None or vault_address == "":
        return None
    return "0x" + address_to_bytes(vault_address).hex()


class ActionEncoder:
    """
    Canonical encoder for Hyperliquid L1 actions.

    The *_action() builders return plain dicts in the venue's wire layout.
    encode() produces the bytes that are hashed into the Agent
    connectionId. The same action, nonce and vault always produce the same
    bytes; any change to any of them changes the bytes.

    Reliability Level: SOVEREIGN TIER
    Side Effects: None (pure), logs HL-ENC-001 on rejection

    Example Usage:
        encoder = ActionEncoder()
        action = encoder.order_action([intent])
        digest = encoder.action_hash(action, nonce=1700000000000)
    """

    def __init__(
        self,
        gateway: Optional[DecimalGateway] = None,
        correlation_id: Optional[str] = None
    ):
        self.gateway = gateway or DecimalGateway()
        self.correlation_id = correlation_id

    # ------------------------------------------------------------------
    # Wire builders
    # ------------------------------------------------------------------

    def order_wire(self, intent: OrderIntent) -> Dict[str, Any]:
        """Render one order in a, b, p, s, r, t[, c] order."""
        wire: Dict[str, Any] = {
            "a": intent.asset,
            "b": intent.is_buy,
            "p": self.gateway.to_wire(intent.limit_price, "limit_price", self.correlation_id),
            "s": self.gateway.to_wire(intent.size, "size", self.correlation_id),
            "r": intent.reduce_only,
            "t": {"limit": {"tif": intent.time_in_force.value}},
        }
        if intent.cloid is not None:
            wire["c"] = intent.cloid
        return wire

    def order_action(
        self,
        intents: Sequence[OrderIntent],
        grouping: OrderGrouping = OrderGrouping.NA,
        builder: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Build an order action for one or more intents.

        Args:
            intents: Orders to place, at least one
            grouping: Venue grouping for linked orders
            builder: Optional builder fee {"b": address, "f": tenths of a bp}
        """
        if not intents:
            raise EncodingError("order action requires at least one order")
        action: Dict[str, Any] = {
            "type": "order",
            "orders": [self.order_wire(intent) for intent in intents],
            "grouping": grouping.value,
        }
        if builder is not None:
            action["builder"] = self._builder_wire(builder)
        return action

    def cancel_action(self, cancels: Sequence[CancelIntent]) -> Dict[str, Any]:
        if not cancels:
            raise EncodingError("cancel action requires at least one cancel")
        return {
            "type": "cancel",
            "cancels": [{"a": c.asset, "o": c.order_id} for c in cancels],
        }

    def cancel_by_cloid_action(self, cancels: Sequence[CancelByCloidIntent]) -> Dict[str, Any]:
        if not cancels:
            raise EncodingError("cancelByCloid action requires at least one cancel")
        return {
            "type": "cancelByCloid",
            "cancels": [{"asset": c.asset, "cloid": c.cloid} for c in cancels],
        }

    def modify_action(self, modify: ModifyIntent) -> Dict[str, Any]:
        return {
            "type": "modify",
            "oid": modify.order_id,
            "order": self.order_wire(modify.order),
        }

    def batch_modify_action(self, modifies: Sequence[ModifyIntent]) -> Dict[str, Any]:
        if not modifies:
            raise EncodingError("batchModify action requires at least one modify")
        return {
            "type": "batchModify",
            "modifies": [
                {"oid": m.order_id, "order": self.order_wire(m.order)} for m in modifies
            ],
        }

    def update_leverage_action(self, asset: int, leverage: int, is_cross: bool) -> Dict[str, Any]:
        """Build an updateLeverage action. Leverage is a positive integer multiple."""
        self._require_index(asset, "asset")
        if isinstance(leverage, bool) or not isinstance(leverage, int) or leverage <= 0:
            raise EncodingError(f"leverage must be a positive integer, got {leverage!r}")
        if not isinstance(is_cross, bool):
            raise EncodingError(f"is_cross must be a bool, got {is_cross!r}")
        return {
            "type": "updateLeverage",
            "asset": asset,
            "isCross": is_cross,
            "leverage": leverage,
        }

    def update_isolated_margin_action(self, asset: int, is_buy: bool, ntli: int) -> Dict[str, Any]:
        """
        Build an updateIsolatedMargin action.

        ntli is the signed margin delta in micro-USD (USD * 1e6).
        """
        self._require_index(asset, "asset")
        if isinstance(ntli, bool) or not isinstance(ntli, int):
            raise EncodingError(f"ntli must be an integer, got {ntli!r}")
        return {
            "type": "updateIsolatedMargin",
            "asset": asset,
            "isBuy": is_buy,
            "ntli": ntli,
        }

    def schedule_cancel_action(self, time_ms: Optional[int] = None) -> Dict[str, Any]:
        """Build a dead man's switch action. None clears the schedule."""
        action: Dict[str, Any] = {"type": "scheduleCancel"}
        if time_ms is not None:
            self._require_index(time_ms, "time")
            action["time"] = time_ms
        return action

    # ------------------------------------------------------------------
    # Signing preimage
    # ------------------------------------------------------------------

    def pack_action(self, action: Dict[str, Any]) -> bytes:
        try:
            return msgpack.packb(action, use_bin_type=True)
        except (TypeError, ValueError, OverflowError) as e:
            logger.error(
                f"[HL-ENC-001] msgpack encoding failed | "
                f"type={action.get('type')} | error={e} | "
                f"correlation_id={self.correlation_id}"
            )
            raise EncodingError(f"action is not msgpack-encodable: {e}") from e

    def encode(
        self,
        action: Dict[str, Any],
        nonce: int,
        vault_address: Optional[str] = None
    ) -> bytes:
        """
        Produce the signing preimage for an action.

        Args:
            action: Wire action from one of the builders
            nonce: Millisecond nonce, uint64
            vault_address: Optional sub-account address; "" means none

        Returns:
            msgpack(action) || nonce_be64 || vault marker

        Raises:
            EncodingError: If the action, nonce or vault is invalid
        """
        if isinstance(nonce, bool) or not isinstance(nonce, int) or not 0 <= nonce <= UINT64_MAX:
            raise EncodingError(f"nonce must be a uint64, got {nonce!r}")

        data = self.pack_action(action) + nonce.to_bytes(8, "big")
        vault = normalize_vault_address(vault_address)
        if vault is None:
            data += NO_VAULT_MARKER
        else:
            data += VAULT_MARKER + address_to_bytes(vault)
        return data

    def action_hash(
        self,
        action: Dict[str, Any],
        nonce: int,
        vault_address: Optional[str] = None
    ) -> bytes:
        """Keccak-256 of encode(); becomes the Agent connectionId."""
        return keccak256(self.encode(action, nonce, vault_address))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _require_index(value: Any, field_name: str) -> None:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise EncodingError(f"{field_name} must be a non-negative integer, got {value!r}")

    @staticmethod
    def _builder_wire(builder: Dict[str, Any]) -> Dict[str, Any]:
        try:
            address = builder["b"]
            fee = builder["f"]
        except KeyError as e:
            raise EncodingError(f"builder is missing field {e}") from None
        if isinstance(fee, bool) or not isinstance(fee, int) or fee < 0:
            raise EncodingError(f"builder fee must be a non-negative integer, got {fee!r}")
        return {"b": "0x" + address_to_bytes(address).hex(), "f": fee}

