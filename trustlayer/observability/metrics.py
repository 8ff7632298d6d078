"""
============================================================================
Hyperliquid Trust Layer v1.0.0
Prometheus Metrics - Signing and Reconciliation Observability
============================================================================

Reliability Level: SOVEREIGN TIER (Mission-Critical)
Input Constraints: Label values are short fixed vocabularies
Side Effects: Updates Prometheus metrics registry

METRICS EXPOSED
---------------
- hl_actions_signed_total: Counter of envelopes signed, by action type
- hl_actions_submitted_total: Counter of submissions, by action type and outcome
- hl_reconciliations_total: Counter of reconciliations, by operation and status
- hl_reconciliation_seconds: Histogram of time to a definite (or timed-out) answer

Recording a metric must never break a trading path, so every record_*
function logs and swallows its own failures.

============================================================================
"""

import logging
from typing import Optional

from prometheus_client import Counter, Histogram

# Configure module logger
logger = logging.getLogger(__name__)


# ============================================================================
# PROMETHEUS METRICS DEFINITIONS
# ============================================================================

ACTIONS_SIGNED = Counter(
    "hl_actions_signed_total",
    "Total number of exchange actions signed",
    ["action_type"]
)

ACTIONS_SUBMITTED = Counter(
    "hl_actions_submitted_total",
    "Total number of signed actions submitted, by outcome",
    ["action_type", "outcome"]
)

RECONCILIATIONS = Counter(
    "hl_reconciliations_total",
    "Total number of order reconciliations, by final status",
    ["operation", "status"]
)

# Buckets: 50ms .. 60s
RECONCILIATION_SECONDS = Histogram(
    "hl_reconciliation_seconds",
    "Time from submission to a reconciliation verdict",
    ["operation"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0]
)


# ============================================================================
# METRIC UPDATE FUNCTIONS
# ============================================================================

def record_action_signed(action_type: str, correlation_id: Optional[str] = None) -> None:
    """
    Record a signed envelope.

    Reliability Level: SOVEREIGN TIER
    Side Effects: Increments Prometheus counter
    """
    try:
        ACTIONS_SIGNED.labels(action_type=action_type).inc()
        logger.debug(
            "Metric: action_signed | action_type=%s | correlation_id=%s",
            action_type, correlation_id
        )
    except Exception as e:
        logger.error(
            "[OBS-001] Failed to record action_signed metric | error=%s",
            str(e)
        )


def record_action_submitted(
    action_type: str,
    outcome: str,
    correlation_id: Optional[str] = None
) -> None:
    """
    Record a submission outcome.

    Args:
        action_type: Wire action type (e.g., "order", "cancel")
        outcome: "ok", "rejected", "network_failure" or "unknown_response"
        correlation_id: Optional tracking ID
    """
    try:
        ACTIONS_SUBMITTED.labels(action_type=action_type, outcome=outcome).inc()
        logger.debug(
            "Metric: action_submitted | action_type=%s | outcome=%s | correlation_id=%s",
            action_type, outcome, correlation_id
        )
    except Exception as e:
        logger.error(
            "[OBS-002] Failed to record action_submitted metric | error=%s",
            str(e)
        )


def record_reconciliation(
    operation: str,
    status: str,
    elapsed_seconds: float,
    correlation_id: Optional[str] = None
) -> None:
    """
    Record a reconciliation verdict and its latency.

    Args:
        operation: "place" or "cancel"
        status: "CONFIRMED", "FAILED" or "INDETERMINATE"
        elapsed_seconds: Wall time spent reaching the verdict
        correlation_id: Optional tracking ID
    """
    try:
        RECONCILIATIONS.labels(operation=operation, status=status).inc()
        RECONCILIATION_SECONDS.labels(operation=operation).observe(elapsed_seconds)
        logger.debug(
            "Metric: reconciliation | operation=%s | status=%s | elapsed=%.3fs | "
            "correlation_id=%s",
            operation, status, elapsed_seconds, correlation_id
        )
    except Exception as e:
        logger.error(
            "[OBS-003] Failed to record reconciliation metric | error=%s",
            str(e)
        )
