# ============================================================================
# Hyperliquid Trust Layer v1.0.0
# Client-side signing and order reconciliation for the Hyperliquid exchange
# ============================================================================
#
# Reliability Level: SOVEREIGN TIER (Mission-Critical)
#
# Components:
#   - trustlayer.signing: Keccak-256, action encoding, secp256k1 signing,
#     wallet adapters and nonces
#   - trustlayer.exchange: Transport, exchange/info clients, reconciliation
#   - trustlayer.config: Environment configuration
#   - trustlayer.session: Process wiring
#
# SOVEREIGN MANDATE:
#   - Private key never leaves the WalletAdapter
#   - Network is threaded through signing AND transport; mismatch fails closed
#   - Acknowledgements are provisional until reconciled
#
# ============================================================================

from trustlayer.errors import (
    TrustLayerError,
    MalformedKeyError,
    EncodingError,
    SigningError,
    NetworkMismatchError,
    NetworkFailureError,
    VenueRejectionError,
    UnknownResponseError,
    IndeterminateOutcomeError,
    ConfigurationError,
)
from trustlayer.network import Network
from trustlayer.intents import (
    OrderIntent,
    CancelIntent,
    CancelByCloidIntent,
    ModifyIntent,
    TimeInForce,
    OrderGrouping,
)
from trustlayer.config import TrustLayerConfig, get_config, reset_config
from trustlayer.signing import (
    ActionEncoder,
    NonceSource,
    PrivateKeyWalletAdapter,
    Signature,
    Signer,
    WalletAdapter,
    keccak256,
)
from trustlayer.exchange import (
    ExchangeClient,
    HttpTransport,
    InfoClient,
    OrderReconciler,
    OrderLifecycleState,
    ReconciliationResult,
    ReconciliationStatus,
    Resting,
    Filled,
    OrderError,
    Acknowledged,
)
from trustlayer.session import TradingSession, open_session

__all__ = [
    # Errors
    'TrustLayerError',
    'MalformedKeyError',
    'EncodingError',
    'SigningError',
    'NetworkMismatchError',
    'NetworkFailureError',
    'VenueRejectionError',
    'UnknownResponseError',
    'IndeterminateOutcomeError',
    'ConfigurationError',
    # Network and intents
    'Network',
    'OrderIntent',
    'CancelIntent',
    'CancelByCloidIntent',
    'ModifyIntent',
    'TimeInForce',
    'OrderGrouping',
    # Config
    'TrustLayerConfig',
    'get_config',
    'reset_config',
    # Signing
    'ActionEncoder',
    'NonceSource',
    'PrivateKeyWalletAdapter',
    'Signature',
    'Signer',
    'WalletAdapter',
    'keccak256',
    # Exchange
    'ExchangeClient',
    'HttpTransport',
    'InfoClient',
    'OrderReconciler',
    'OrderLifecycleState',
    'ReconciliationResult',
    'ReconciliationStatus',
    'Resting',
    'Filled',
    'OrderError',
    'Acknowledged',
    # Session
    'TradingSession',
    'open_session',
]

# Version tracking
__version__ = '1.0.0'
