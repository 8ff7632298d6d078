"""
Unit Tests for Trading Session Wiring

Reliability Level: SOVEREIGN TIER

Tests:
- All components share the configured network and correlation id
- Transport and wallet are closed on exit, including when the body raises
- A transport on the wrong network fails closed at open
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from fake_venue import TEST_ADDRESS, TEST_PRIVATE_KEY, FakeVenue

from trustlayer.config import TrustLayerConfig
from trustlayer.errors import NetworkMismatchError
from trustlayer.exchange.reconciliation import OrderLifecycleState
from trustlayer.intents import OrderIntent
from trustlayer.network import Network
from trustlayer.session import open_session
from trustlayer.signing.nonce import NonceSource
from trustlayer.signing.wallet_adapter import PrivateKeyWalletAdapter


@pytest.fixture(autouse=True)
def clean_registry():
    NonceSource.reset_registry()
    yield
    NonceSource.reset_registry()


class TestOpenSession:

    @pytest.mark.asyncio
    async def test_components_share_network(self):
        config = TrustLayerConfig(network=Network.TESTNET)
        venue = FakeVenue(Network.TESTNET)
        wallet = PrivateKeyWalletAdapter(TEST_PRIVATE_KEY)

        async with open_session(config, wallet=wallet, transport=venue, correlation_id="corr-1") as session:
            assert session.address == TEST_ADDRESS
            assert session.exchange.network is Network.TESTNET
            assert session.info.network is Network.TESTNET
            assert session.correlation_id == "corr-1"
            assert session.reconciler.correlation_id == "corr-1"

        assert venue.closed
        assert wallet.closed

    @pytest.mark.asyncio
    async def test_place_and_cancel_through_session(self):
        config = TrustLayerConfig(reconcile_timeout_seconds=2.0, reconcile_base_delay_seconds=0.01,
                                  reconcile_max_delay_seconds=0.05)
        venue = FakeVenue()

        async with open_session(config, wallet=PrivateKeyWalletAdapter(TEST_PRIVATE_KEY),
                                transport=venue) as session:
            asset = await session.info.asset_id("BTC")
            placed = await session.reconciler.place_and_confirm(
                OrderIntent(asset=asset, is_buy=True, limit_price="30000", size="0.001")
            )
            cancelled = await session.reconciler.cancel_and_confirm(asset, placed.order_id)

        assert placed.state is OrderLifecycleState.CONFIRMED_OPEN
        assert cancelled.state is OrderLifecycleState.CONFIRMED_CANCELLED

    @pytest.mark.asyncio
    async def test_closes_on_error(self):
        venue = FakeVenue()
        wallet = PrivateKeyWalletAdapter(TEST_PRIVATE_KEY)

        with pytest.raises(RuntimeError):
            async with open_session(TrustLayerConfig(), wallet=wallet, transport=venue):
                raise RuntimeError("strategy crashed")

        assert venue.closed
        assert wallet.closed

    @pytest.mark.asyncio
    async def test_network_mismatch_fails_closed(self):
        venue = FakeVenue(Network.TESTNET)
        wallet = PrivateKeyWalletAdapter(TEST_PRIVATE_KEY)

        with pytest.raises(NetworkMismatchError):
            async with open_session(TrustLayerConfig(network=Network.MAINNET), wallet=wallet, transport=venue):
                pass

        assert venue.closed
        assert wallet.closed

    @pytest.mark.asyncio
    async def test_wallet_from_environment(self, monkeypatch):
        monkeypatch.setenv("HL_PRIVATE_KEY", TEST_PRIVATE_KEY)
        venue = FakeVenue()

        async with open_session(TrustLayerConfig(), transport=venue) as session:
            wallet = session.wallet
            assert session.address == TEST_ADDRESS

        assert wallet.closed
