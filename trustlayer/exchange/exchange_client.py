# ============================================================================
# Hyperliquid Trust Layer v1.0.0
# Exchange Client - HL-EXC Compliance
# ============================================================================
#
# Reliability Level: SOVEREIGN TIER (Mission-Critical)
# Purpose: Sign exchange actions and submit them to POST /exchange
#
# SOVEREIGN MANDATE:
#   - Every action is signed for the transport's network; an envelope
#     for any other network is refused before I/O (HL-NET-001)
#   - Order placement and cancellation are NEVER retried blind
#   - updateLeverage is idempotent: retried with a fresh nonce per attempt,
#     and "already set" counts as success
#   - Venue rejection text is returned verbatim
#   - Private key never leaves the WalletAdapter; signatures are not logged
#
# Error Codes:
#   - HL-NET-001: Envelope network differs from transport network
#   - HL-NET-002: Transport failure or ambiguous HTTP status
#   - HL-VEN-001: Venue rejected the action
#   - HL-VEN-002: Response shape not recognised
#
# ============================================================================

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from trustlayer.errors import (
    NetworkFailureError,
    NetworkMismatchError,
    UnknownResponseError,
    VenueRejectionError,
)
from trustlayer.exchange.action_result import (
    Acknowledged,
    ActionResult,
    ExchangeResponse,
    OrderError,
    decode_exchange_response,
)
from trustlayer.exchange.backoff import BackoffPolicy
from trustlayer.exchange.transport import EXCHANGE_PATH, Transport, is_retryable_status
from trustlayer.intents import (
    CancelByCloidIntent,
    CancelIntent,
    ModifyIntent,
    OrderGrouping,
    OrderIntent,
)
from trustlayer.network import Network
from trustlayer.observability.metrics import record_action_signed, record_action_submitted
from trustlayer.signing.action_encoder import ActionEncoder, normalize_vault_address
from trustlayer.signing.eip712 import l1_signing_digest
from trustlayer.signing.nonce import NonceSource
from trustlayer.signing.signer import Signature
from trustlayer.signing.wallet_adapter import WalletAdapter

logger = logging.getLogger(__name__)


# ============================================================================
# Constants
# ============================================================================

DEFAULT_LEVERAGE_MAX_ATTEMPTS = 3

# Lowercased fragments of venue replies meaning "leverage is already at that value"
BENIGN_LEVERAGE_MARKERS = ("already",)


def is_benign_leverage_rejection(message: str) -> bool:
    lowered = message.lower()
    return any(marker in lowered for marker in BENIGN_LEVERAGE_MARKERS)


# ============================================================================
# Signed Envelope
# ============================================================================

@dataclass(frozen=True)
class SignedEnvelope:
    """
    An action bound to a nonce, a network and a signature.

    Immutable once built; the body sent on the wire is derived from it by
    to_payload().
    """
    action: Dict[str, Any]
    nonce: int
    signature: Signature
    network: Network
    signer_address: str
    vault_address: Optional[str] = None

    @property
    def action_type(self) -> str:
        return str(self.action.get("type"))

    def to_payload(self) -> Dict[str, Any]:
        return {
            "action": self.action,
            "nonce": self.nonce,
            "signature": self.signature.to_wire(),
            "vaultAddress": self.vault_address,
        }


# ============================================================================
# Exchange Client
# ============================================================================

class ExchangeClient:
    """
    Hyperliquid Exchange Client - Sovereign Tier.

    Reliability Level: SOVEREIGN TIER
    Input Constraints: Intents from trustlayer.intents
    Side Effects: HTTP POST /exchange via the injected Transport

    Example Usage:
        client = ExchangeClient(wallet, transport)
        results = await client.place_order([
            OrderIntent(asset=0, is_buy=True, limit_price="30000", size="0.001")
        ])
        if isinstance(results[0], Resting):
            oid = results[0].order_id
    """

    def __init__(
        self,
        wallet: WalletAdapter,
        transport: Transport,
        encoder: Optional[ActionEncoder] = None,
        nonce_source: Optional[NonceSource] = None,
        vault_address: Optional[str] = None,
        network: Optional[Network] = None,
        leverage_max_attempts: int = DEFAULT_LEVERAGE_MAX_ATTEMPTS,
        backoff_policy: Optional[BackoffPolicy] = None,
        correlation_id: Optional[str] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None
    ):
        """
        Initialize Exchange Client.

        Args:
            wallet: Signing capability
            transport: Venue transport; its network is the signing network
            encoder: Action encoder (default: ActionEncoder())
            nonce_source: Nonce source (default: shared source for the wallet address)
            vault_address: Sub-account to act for, or None
            network: Expected network; must match transport.network if given
            leverage_max_attempts: Attempts for updateLeverage on network failure
            backoff_policy: Delay schedule between leverage attempts
            correlation_id: Audit trail identifier
            sleep: Awaitable sleep (default: asyncio.sleep)

        Raises:
            NetworkMismatchError: If network is given and differs from the transport's
        """
        if network is not None and network is not transport.network:
            logger.critical(
                f"[HL-NET-001] Network mismatch at construction | "
                f"expected={network.value} | transport={transport.network.value} | "
                f"correlation_id={correlation_id}"
            )
            raise NetworkMismatchError(
                f"configured network {network.value} does not match transport "
                f"network {transport.network.value}"
            )
        self.wallet = wallet
        self.transport = transport
        self.encoder = encoder or ActionEncoder(correlation_id=correlation_id)
        self.address = wallet.get_address()
        self.nonce_source = nonce_source or NonceSource.for_address(self.address)
        self.vault_address = normalize_vault_address(vault_address)
        self.leverage_max_attempts = max(1, leverage_max_attempts)
        self.backoff_policy = backoff_policy or BackoffPolicy(base_delay=0.5, max_delay=4.0)
        self.correlation_id = correlation_id
        self._sleep = sleep or asyncio.sleep

        logger.info(
            f"[HL-EXC] Exchange client initialized | network={self.network.value} | "
            f"address={self.address} | vault={self.vault_address} | "
            f"correlation_id={correlation_id}"
        )

    @property
    def network(self) -> Network:
        return self.transport.network

    # ========================================================================
    # Signing and submission
    # ========================================================================

    def build_envelope(self, action: Dict[str, Any]) -> SignedEnvelope:
        """
        Sign an action for this client's network with a fresh nonce.

        Raises:
            EncodingError: If the action cannot be encoded (HL-ENC-001)
            SigningError: If signing or recovery verification fails (HL-SIG-001)
        """
        nonce = self.nonce_source.next_nonce()
        action_hash = self.encoder.action_hash(action, nonce, self.vault_address)
        digest = l1_signing_digest(action_hash, self.network)
        signature = self.wallet.sign_hash(digest)

        envelope = SignedEnvelope(
            action=action,
            nonce=nonce,
            signature=signature,
            network=self.network,
            signer_address=self.address,
            vault_address=self.vault_address,
        )
        record_action_signed(envelope.action_type, self.correlation_id)
        logger.debug(
            f"[HL-EXC] Action signed | type={envelope.action_type} | nonce={nonce} | "
            f"network={self.network.value} | signature=[REDACTED] | "
            f"correlation_id={self.correlation_id}"
        )
        return envelope

    async def submit(self, envelope: SignedEnvelope) -> ExchangeResponse:
        """
        Send a signed envelope once and decode the reply.

        Raises:
            NetworkMismatchError: Envelope signed for another network (HL-NET-001)
            NetworkFailureError: Timeout, transport error, 429 or 5xx (HL-NET-002)
            VenueRejectionError: Venue refused the action (HL-VEN-001)
            UnknownResponseError: Reply shape not recognised (HL-VEN-002)
        """
        action_type = envelope.action_type
        if envelope.network is not self.network:
            logger.critical(
                f"[HL-NET-001] Refusing to submit | type={action_type} | "
                f"envelope_network={envelope.network.value} | "
                f"transport_network={self.network.value} | "
                f"correlation_id={self.correlation_id}"
            )
            raise NetworkMismatchError(
                f"envelope signed for {envelope.network.value} cannot be sent to "
                f"{self.network.value}"
            )

        try:
            status, body = await self.transport.request("POST", EXCHANGE_PATH, envelope.to_payload())
        except NetworkFailureError:
            record_action_submitted(action_type, "network_failure", self.correlation_id)
            raise

        if status != 200:
            if is_retryable_status(status):
                record_action_submitted(action_type, "network_failure", self.correlation_id)
                logger.warning(
                    f"[HL-NET-002] Ambiguous HTTP status | type={action_type} | "
                    f"status={status} | nonce={envelope.nonce} | "
                    f"correlation_id={self.correlation_id}"
                )
                raise NetworkFailureError(
                    f"{action_type}: HTTP {status}", outcome_unknown=True, status_code=status
                )
            record_action_submitted(action_type, "rejected", self.correlation_id)
            logger.warning(
                f"[HL-VEN-001] HTTP rejection | type={action_type} | status={status} | "
                f"body={str(body)[:200]} | correlation_id={self.correlation_id}"
            )
            raise VenueRejectionError(str(body), status_code=status)

        try:
            response = decode_exchange_response(body)
        except VenueRejectionError:
            record_action_submitted(action_type, "rejected", self.correlation_id)
            raise
        except UnknownResponseError:
            record_action_submitted(action_type, "unknown_response", self.correlation_id)
            logger.error(
                f"[HL-VEN-002] Unrecognised response | type={action_type} | "
                f"body={str(body)[:200]} | correlation_id={self.correlation_id}"
            )
            raise

        record_action_submitted(action_type, "ok", self.correlation_id)
        logger.info(
            f"[HL-EXC] Action accepted | type={action_type} | nonce={envelope.nonce} | "
            f"statuses={len(response.statuses)} | correlation_id={self.correlation_id}"
        )
        return response

    async def _sign_and_submit(self, action: Dict[str, Any]) -> ExchangeResponse:
        return await self.submit(self.build_envelope(action))

    # ========================================================================
    # Orders
    # ========================================================================

    async def place_order(
        self,
        intents: Sequence[OrderIntent],
        grouping: OrderGrouping = OrderGrouping.NA,
        builder: Optional[Dict[str, Any]] = None
    ) -> List[ActionResult]:
        """
        Place one or more limit orders in a single signed action.

        Returns:
            One ActionResult per intent, in order (Resting, Filled or OrderError)

        Raises:
            NetworkFailureError: Outcome unknown; reconcile before retrying
            VenueRejectionError: Whole action refused
            UnknownResponseError: Reply did not contain one status per intent
        """
        action = self.encoder.order_action(intents, grouping, builder)
        response = await self._sign_and_submit(action)
        return self._aligned(response, len(intents))

    async def cancel_orders(self, cancels: Sequence[CancelIntent]) -> List[ActionResult]:
        """Cancel orders by venue id. One ActionResult per cancel."""
        response = await self._sign_and_submit(self.encoder.cancel_action(cancels))
        return self._aligned(response, len(cancels))

    async def cancel_orders_by_cloid(self, cancels: Sequence[CancelByCloidIntent]) -> List[ActionResult]:
        """Cancel orders by client order id. One ActionResult per cancel."""
        response = await self._sign_and_submit(self.encoder.cancel_by_cloid_action(cancels))
        return self._aligned(response, len(cancels))

    async def modify_order(self, modify: ModifyIntent) -> ActionResult:
        response = await self._sign_and_submit(self.encoder.modify_action(modify))
        return response.first

    async def batch_modify(self, modifies: Sequence[ModifyIntent]) -> List[ActionResult]:
        response = await self._sign_and_submit(self.encoder.batch_modify_action(modifies))
        return self._aligned(response, len(modifies))

    async def schedule_cancel(self, time_ms: Optional[int] = None) -> ActionResult:
        """Set (or with None, clear) the cancel-all dead man's switch."""
        response = await self._sign_and_submit(self.encoder.schedule_cancel_action(time_ms))
        return response.first

    # ========================================================================
    # Margin
    # ========================================================================

    async def update_leverage(self, asset: int, leverage: int, is_cross: bool = True) -> ActionResult:
        """
        Set leverage for an asset.

        Idempotent: calling twice with the same arguments succeeds both
        times. A venue reply saying the value is already set is returned as
        Acknowledged(status="alreadySet").

        Raises:
            NetworkFailureError: If every attempt failed in transport
            VenueRejectionError: On any other rejection
        """
        action = self.encoder.update_leverage_action(asset, leverage, is_cross)
        backoff = self.backoff_policy.new_schedule()
        last_error: Optional[NetworkFailureError] = None

        for attempt in range(1, self.leverage_max_attempts + 1):
            try:
                response = await self._sign_and_submit(action)
            except VenueRejectionError as e:
                if is_benign_leverage_rejection(e.venue_message):
                    logger.info(
                        f"[HL-EXC] Leverage already set | asset={asset} | "
                        f"leverage={leverage} | message={e.venue_message} | "
                        f"correlation_id={self.correlation_id}"
                    )
                    return Acknowledged(status="alreadySet", message=e.venue_message)
                raise
            except NetworkFailureError as e:
                last_error = e
                logger.warning(
                    f"[HL-RETRY] updateLeverage failed | asset={asset} | "
                    f"attempt={attempt}/{self.leverage_max_attempts} | error={e.message} | "
                    f"correlation_id={self.correlation_id}"
                )
                if attempt < self.leverage_max_attempts:
                    await self._sleep(backoff.get_delay())
                continue

            result = response.first
            if isinstance(result, OrderError) and is_benign_leverage_rejection(result.message):
                return Acknowledged(status="alreadySet", message=result.message)
            return result

        if last_error is None:
            raise NetworkFailureError("updateLeverage: no attempt was made", outcome_unknown=False)
        raise last_error

    async def update_isolated_margin(self, asset: int, is_buy: bool, ntli: int) -> ActionResult:
        """Add (positive ntli) or remove (negative) isolated margin, in micro-USD."""
        response = await self._sign_and_submit(
            self.encoder.update_isolated_margin_action(asset, is_buy, ntli)
        )
        return response.first

    # ------------------------------------------------------------------

    @staticmethod
    def _aligned(response: ExchangeResponse, expected: int) -> List[ActionResult]:
        if len(response.statuses) != expected:
            raise UnknownResponseError(
                f"{response.response_type}: expected {expected} statuses, "
                f"got {len(response.statuses)}",
                payload=response.raw,
            )
        return list(response.statuses)
