# ============================================================================
# Hyperliquid Trust Layer v1.0.0
# HTTP Transport - HL-NET Compliance
# ============================================================================
#
# Reliability Level: SOVEREIGN TIER (Mission-Critical)
# Purpose: The only code that touches the network. Carries the Network it
#          was built for so signed envelopes can be checked against it.
#
# SOVEREIGN MANDATE:
#   - request() NEVER retries; mutating calls are retried (if at all) by
#     callers that re-sign with a fresh nonce
#   - query() (read-only /info) retries timeouts, connect errors, 429 and
#     5xx with exponential backoff
#   - A connection that was never established is reported as a definite
#     non-delivery; any later failure leaves the outcome unknown
#
# Error Codes:
#   - HL-NET-002: Transport failure
#   - HL-VEN-001: /info request refused (4xx)
#   - HL-VEN-002: /info reply was not JSON
#
# ============================================================================

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

import httpx

from trustlayer.errors import NetworkFailureError, UnknownResponseError, VenueRejectionError
from trustlayer.exchange.backoff import BackoffPolicy
from trustlayer.network import Network

logger = logging.getLogger(__name__)


# ============================================================================
# Constants
# ============================================================================

INFO_PATH = "/info"
EXCHANGE_PATH = "/exchange"

DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_MAX_RETRIES = 3


def is_retryable_status(status_code: int) -> bool:
    """429 and 5xx say nothing definite about whether a request took effect."""
    return status_code == 429 or status_code >= 500


# ============================================================================
# Transport Interface
# ============================================================================

class Transport(ABC):
    """
    Abstract venue transport.

    Implementations must expose the network they talk to. The exchange
    client refuses to send an envelope signed for any other network.
    """

    network: Network

    @abstractmethod
    async def request(self, method: str, path: str, body: Dict[str, Any]) -> Tuple[int, Any]:
        """Send one request; return (HTTP status, decoded JSON or raw text)."""

    @abstractmethod
    async def query(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """POST {"type": endpoint, **params} to /info and return the JSON reply."""

    async def close(self) -> None:
        """Release connections. Default: nothing to release."""

    async def __aenter__(self) -> "Transport":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


# ============================================================================
# httpx Implementation
# ============================================================================

class HttpTransport(Transport):
    """
    httpx.AsyncClient transport for the Hyperliquid REST API.

    Reliability Level: SOVEREIGN TIER
    Input Constraints: JSON-serialisable request bodies
    Side Effects: HTTP POST to api.hyperliquid.xyz (or testnet)

    Example Usage:
        async with HttpTransport(Network.TESTNET) as transport:
            mids = await transport.query("allMids")
    """

    def __init__(
        self,
        network: Network,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        backoff_policy: Optional[BackoffPolicy] = None,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
        correlation_id: Optional[str] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None
    ):
        """
        Initialize transport.

        Args:
            network: Network this transport is bound to
            timeout_seconds: Per-request timeout
            max_retries: Attempts for read-only queries (>= 1)
            backoff_policy: Delay schedule between query attempts
            http_transport: Optional httpx transport (e.g. MockTransport)
            correlation_id: Audit trail identifier
            sleep: Awaitable sleep (default: asyncio.sleep)
        """
        if max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        self.network = network
        self.base_url = network.api_url
        self.max_retries = max_retries
        self.backoff_policy = backoff_policy or BackoffPolicy(base_delay=0.5, max_delay=8.0)
        self.correlation_id = correlation_id
        self._sleep = sleep or asyncio.sleep
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout_seconds,
            headers={"Content-Type": "application/json"},
            transport=http_transport,
        )

        logger.info(
            f"[HL-HTTP] Transport initialized | network={network.value} | "
            f"base_url={self.base_url} | timeout={timeout_seconds}s | "
            f"max_retries={max_retries} | correlation_id={correlation_id}"
        )

    async def request(self, method: str, path: str, body: Dict[str, Any]) -> Tuple[int, Any]:
        """
        Send a single request with no retry.

        Returns:
            (status_code, payload) where payload is decoded JSON, or the
            response text when the body is not JSON

        Raises:
            NetworkFailureError: On timeout or transport error (HL-NET-002)
        """
        start = time.monotonic()
        try:
            response = await self._client.request(method, path, json=body)
        except (httpx.ConnectError, httpx.ConnectTimeout) as e:
            logger.warning(
                f"[HL-NET-002] Connection failed | {method} {path} | "
                f"error={str(e)[:100]} | correlation_id={self.correlation_id}"
            )
            raise NetworkFailureError(
                f"{method} {path}: connection failed: {e}", outcome_unknown=False
            ) from e
        except httpx.TimeoutException as e:
            logger.warning(
                f"[HL-NET-002] Request timeout | {method} {path} | "
                f"correlation_id={self.correlation_id}"
            )
            raise NetworkFailureError(f"{method} {path}: timed out", outcome_unknown=True) from e
        except httpx.TransportError as e:
            logger.warning(
                f"[HL-NET-002] Transport error | {method} {path} | "
                f"error={str(e)[:100]} | correlation_id={self.correlation_id}"
            )
            raise NetworkFailureError(f"{method} {path}: {e}", outcome_unknown=True) from e

        try:
            payload: Any = response.json()
        except ValueError:
            payload = response.text

        logger.debug(
            f"[HL-HTTP] {method} {path} | status={response.status_code} | "
            f"latency={(time.monotonic() - start) * 1000:.1f}ms | "
            f"correlation_id={self.correlation_id}"
        )
        return response.status_code, payload

    async def query(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Read-only /info query with retry and exponential backoff.

        Raises:
            NetworkFailureError: After max_retries transient failures (HL-NET-002)
            VenueRejectionError: On a 4xx other than 429 (HL-VEN-001)
            UnknownResponseError: If a 200 reply is not JSON (HL-VEN-002)
        """
        body: Dict[str, Any] = {"type": endpoint}
        if params:
            body.update(params)

        backoff = self.backoff_policy.new_schedule()
        last_error: Optional[NetworkFailureError] = None

        for attempt in range(1, self.max_retries + 1):
            try:
                status, payload = await self.request("POST", INFO_PATH, body)
            except NetworkFailureError as e:
                last_error = e
            else:
                if status == 200:
                    if isinstance(payload, str):
                        raise UnknownResponseError(
                            f"{endpoint}: reply is not JSON", payload=payload[:200]
                        )
                    return payload
                if not is_retryable_status(status):
                    logger.warning(
                        f"[HL-VEN-001] Info query refused | endpoint={endpoint} | "
                        f"status={status} | correlation_id={self.correlation_id}"
                    )
                    raise VenueRejectionError(str(payload), status_code=status)
                last_error = NetworkFailureError(
                    f"{endpoint}: HTTP {status}", outcome_unknown=False, status_code=status
                )

            logger.warning(
                f"[HL-RETRY] Info query failed | endpoint={endpoint} | "
                f"attempt={attempt}/{self.max_retries} | error={last_error.message} | "
                f"correlation_id={self.correlation_id}"
            )
            if attempt < self.max_retries:
                delay = backoff.get_delay()
                logger.debug(f"[HL-BACKOFF] Waiting {delay:.2f}s before retry")
                await self._sleep(delay)

        logger.error(
            f"[HL-NET-002] Max retries exceeded | endpoint={endpoint} | "
            f"correlation_id={self.correlation_id}"
        )
        if last_error is None:
            raise NetworkFailureError(f"{endpoint}: no attempt was made", outcome_unknown=False)
        raise last_error

    async def close(self) -> None:
        await self._client.aclose()
        logger.debug(f"[HL-HTTP] Transport closed | correlation_id={self.correlation_id}")
