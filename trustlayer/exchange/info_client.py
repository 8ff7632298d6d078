# ============================================================================
# Hyperliquid Trust Layer v1.0.0
# Info Client - HL-INF Compliance
# ============================================================================
#
# Reliability Level: SOVEREIGN TIER (Mission-Critical)
# Purpose: Authoritative read-only queries used for reconciliation
#
# SOVEREIGN MANDATE:
#   - Reads take only a public address; no key material is ever involved
#   - Addresses are lowercased before they leave the process
#   - Every reply is validated by a pydantic model before use
#
# Error Codes:
#   - HL-VEN-002: Reply failed schema validation
#
# ============================================================================

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from trustlayer.errors import UnknownResponseError
from trustlayer.exchange.info_models import (
    ClearinghouseState,
    OpenOrder,
    OrderStatusResponse,
    UniverseMeta,
)
from trustlayer.exchange.transport import Transport
from trustlayer.signing.action_encoder import address_to_bytes
from trustlayer.signing.decimal_gateway import DecimalGateway

logger = logging.getLogger(__name__)


class InfoClient:
    """
    Read-only client for POST /info.

    Reliability Level: SOVEREIGN TIER
    Side Effects: HTTP POST via the injected Transport

    Example Usage:
        info = InfoClient(transport)
        orders = await info.open_orders(wallet.get_address())
        if any(o.order_id == oid for o in orders):
            ...
    """

    def __init__(self, transport: Transport, correlation_id: Optional[str] = None):
        self.transport = transport
        self.correlation_id = correlation_id
        self._gateway = DecimalGateway()
        self._meta: Optional[UniverseMeta] = None

    @property
    def network(self):
        return self.transport.network

    async def all_mids(self) -> Dict[str, Decimal]:
        """Mid price per coin."""
        payload = await self.transport.query("allMids")
        if not isinstance(payload, dict):
            raise UnknownResponseError("allMids reply is not an object", payload=payload)
        return {
            coin: self._gateway.to_decimal(px, f"allMids.{coin}", self.correlation_id)
            for coin, px in payload.items()
        }

    async def clearinghouse_state(self, user: str) -> ClearinghouseState:
        payload = await self.transport.query("clearinghouseState", {"user": self._user(user)})
        return self._parse(ClearinghouseState, payload, "clearinghouseState")

    async def open_orders(self, user: str) -> List[OpenOrder]:
        """Orders currently resting for a user, as the venue sees them now."""
        payload = await self.transport.query("openOrders", {"user": self._user(user)})
        if not isinstance(payload, list):
            raise UnknownResponseError("openOrders reply is not a list", payload=payload)
        return [self._parse(OpenOrder, entry, "openOrders") for entry in payload]

    async def order_status(self, user: str, order_id: Union[int, str]) -> OrderStatusResponse:
        """
        Look up one order by venue id or cloid.

        Unlike open_orders this also reports filled and cancelled orders.
        """
        payload = await self.transport.query(
            "orderStatus", {"user": self._user(user), "oid": order_id}
        )
        return self._parse(OrderStatusResponse, payload, "orderStatus")

    async def meta(self, refresh: bool = False) -> UniverseMeta:
        """Perpetuals universe, cached after the first call."""
        if self._meta is None or refresh:
            payload = await self.transport.query("meta")
            self._meta = self._parse(UniverseMeta, payload, "meta")
        return self._meta

    async def asset_id(self, coin: str) -> int:
        """
        Resolve a perpetual's coin name to its asset id.

        Raises:
            KeyError: If the coin is not listed
        """
        meta = await self.meta()
        index = meta.asset_id(coin)
        if index is None:
            meta = await self.meta(refresh=True)
            index = meta.asset_id(coin)
        if index is None:
            raise KeyError(f"unknown coin {coin!r} on {self.network.value}")
        return index

    # ------------------------------------------------------------------

    @staticmethod
    def _user(address: str) -> str:
        return "0x" + address_to_bytes(address).hex()

    def _parse(self, model: Any, payload: Any, endpoint: str):
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            logger.error(
                f"[HL-VEN-002] Reply failed validation | endpoint={endpoint} | "
                f"errors={e.error_count()} | correlation_id={self.correlation_id}"
            )
            raise UnknownResponseError(f"{endpoint}: {e}", payload=payload) from e
