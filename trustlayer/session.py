# ============================================================================
# Hyperliquid Trust Layer v1.0.0
# Trading Session - Process Wiring
# ============================================================================
#
# Reliability Level: SOVEREIGN TIER (Mission-Critical)
# Purpose: Build transport, clients and reconciler from one configuration,
#          and tear them down (zeroing the key) on exit
#
# SOVEREIGN MANDATE:
#   - Every component is built for the SAME configured network
#   - The wallet is closed on exit even when the body raises
#
# ============================================================================

import logging
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional

from trustlayer.config import TrustLayerConfig, get_config
from trustlayer.exchange.backoff import BackoffPolicy
from trustlayer.exchange.exchange_client import ExchangeClient
from trustlayer.exchange.info_client import InfoClient
from trustlayer.exchange.reconciliation import OrderReconciler
from trustlayer.exchange.transport import HttpTransport, Transport
from trustlayer.signing.wallet_adapter import PrivateKeyWalletAdapter, WalletAdapter

logger = logging.getLogger(__name__)


@dataclass
class TradingSession:
    """Components sharing one network, one wallet and one correlation id."""
    config: TrustLayerConfig
    wallet: WalletAdapter
    transport: Transport
    info: InfoClient
    exchange: ExchangeClient
    reconciler: OrderReconciler
    correlation_id: str

    @property
    def address(self) -> str:
        return self.wallet.get_address()


@asynccontextmanager
async def open_session(
    config: Optional[TrustLayerConfig] = None,
    wallet: Optional[WalletAdapter] = None,
    transport: Optional[Transport] = None,
    correlation_id: Optional[str] = None
) -> AsyncIterator[TradingSession]:
    """
    Open a trading session.

    Args:
        config: Configuration (default: get_config())
        wallet: Signing wallet (default: PrivateKeyWalletAdapter.from_environment())
        transport: Venue transport (default: HttpTransport for config.network)
        correlation_id: Audit trail identifier (default: new UUID4)

    Yields:
        TradingSession; the transport and wallet are closed on exit

    Example Usage:
        async with open_session() as session:
            result = await session.reconciler.place_and_confirm(intent)
    """
    config = config or get_config()
    correlation_id = correlation_id or str(uuid.uuid4())
    wallet = wallet or PrivateKeyWalletAdapter.from_environment(correlation_id=correlation_id)

    try:
        transport = transport or HttpTransport(
            config.network,
            timeout_seconds=config.http_timeout_seconds,
            max_retries=config.info_max_retries,
            correlation_id=correlation_id,
        )
        try:
            info = InfoClient(transport, correlation_id=correlation_id)
            exchange = ExchangeClient(
                wallet,
                transport,
                vault_address=config.vault_address,
                network=config.network,
                leverage_max_attempts=config.leverage_max_attempts,
                correlation_id=correlation_id,
            )
            reconciler = OrderReconciler(
                exchange,
                info,
                timeout_seconds=config.reconcile_timeout_seconds,
                backoff_policy=BackoffPolicy(
                    base_delay=config.reconcile_base_delay_seconds,
                    max_delay=config.reconcile_max_delay_seconds,
                ),
                correlation_id=correlation_id,
            )
            logger.info(
                f"[HL-SESSION] Session opened | network={config.network.value} | "
                f"address={wallet.get_address()} | correlation_id={correlation_id}"
            )
            yield TradingSession(
                config=config,
                wallet=wallet,
                transport=transport,
                info=info,
                exchange=exchange,
                reconciler=reconciler,
                correlation_id=correlation_id,
            )
        finally:
            await transport.close()
    finally:
        wallet.close()
        logger.info(f"[HL-SESSION] Session closed | correlation_id={correlation_id}")
