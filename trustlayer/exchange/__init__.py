# ============================================================================
# Hyperliquid Trust Layer v1.0.0
# Exchange Module - Hyperliquid Connectivity
# ============================================================================
#
# Reliability Level: SOVEREIGN TIER (Mission-Critical)
# Purpose: Submission of signed actions and authoritative reconciliation
#
# Components:
#   - HttpTransport: httpx transport bound to one Network
#   - ExchangeClient: Signs and submits actions to /exchange
#   - InfoClient: Read-only /info queries
#   - OrderReconciler: Place/cancel with confirmation by re-query
#   - ExponentialBackoff: Retry and poll delay schedule
#
# SOVEREIGN MANDATE:
#   - Placement and cancellation are never retried blind
#   - Envelope network must match transport network
#   - Responses are decoded once into tagged ActionResult variants
#
# ============================================================================

from trustlayer.exchange.backoff import ExponentialBackoff, BackoffPolicy
from trustlayer.exchange.transport import Transport, HttpTransport
from trustlayer.exchange.action_result import (
    ActionResult,
    Resting,
    Filled,
    OrderError,
    Acknowledged,
    ExchangeResponse,
    decode_exchange_response,
    decode_status,
    is_success,
)
from trustlayer.exchange.info_models import (
    OpenOrder,
    OrderStatusResponse,
    ClearinghouseState,
    MarginSummary,
    UniverseMeta,
)
from trustlayer.exchange.info_client import InfoClient
from trustlayer.exchange.exchange_client import (
    ExchangeClient,
    SignedEnvelope,
    is_benign_leverage_rejection,
)
from trustlayer.exchange.reconciliation import (
    OrderReconciler,
    ReconciliationResult,
    ReconciliationStatus,
    OrderLifecycleState,
)

__all__ = [
    # Backoff
    'ExponentialBackoff',
    'BackoffPolicy',
    # Transport
    'Transport',
    'HttpTransport',
    # Action Results
    'ActionResult',
    'Resting',
    'Filled',
    'OrderError',
    'Acknowledged',
    'ExchangeResponse',
    'decode_exchange_response',
    'decode_status',
    'is_success',
    # Info Models
    'OpenOrder',
    'OrderStatusResponse',
    'ClearinghouseState',
    'MarginSummary',
    'UniverseMeta',
    # Clients
    'InfoClient',
    'ExchangeClient',
    'SignedEnvelope',
    'is_benign_leverage_rejection',
    # Reconciliation
    'OrderReconciler',
    'ReconciliationResult',
    'ReconciliationStatus',
    'OrderLifecycleState',
]
