# ============================================================================
# Hyperliquid Trust Layer v1.0.0
# Error Taxonomy - HL-ERR Compliance
# ============================================================================
#
# Reliability Level: SOVEREIGN TIER (Mission-Critical)
# Purpose: Single exception hierarchy for signing, transport and reconciliation
#
# SOVEREIGN MANDATE:
#   - Every failure carries an error code for audit logging
#   - Venue messages are surfaced verbatim, never reworded
#   - Key material NEVER appears in an exception message
#
# Error Codes:
#   - HL-KEY-001: Malformed private key
#   - HL-ENC-001: Intent cannot be canonically encoded
#   - HL-SIG-001: Signing or signature verification failed
#   - HL-NET-001: Network mismatch between signing and transport
#   - HL-NET-002: Transport failure (outcome may be unknown)
#   - HL-VEN-001: Venue rejected the action
#   - HL-VEN-002: Venue response has an unrecognised shape
#   - HL-REC-003: Outcome could not be confirmed before the deadline
#   - HL-CFG-001: Configuration invalid
#
# ============================================================================

from typing import Any, Optional


class ErrorCode:
    """Error codes used in log lines and exception messages."""
    MALFORMED_KEY = "HL-KEY-001"
    ENCODING = "HL-ENC-001"
    SIGNING = "HL-SIG-001"
    NETWORK_MISMATCH = "HL-NET-001"
    NETWORK_FAILURE = "HL-NET-002"
    VENUE_REJECTION = "HL-VEN-001"
    UNKNOWN_RESPONSE = "HL-VEN-002"
    INDETERMINATE = "HL-REC-003"
    CONFIGURATION = "HL-CFG-001"


class TrustLayerError(Exception):
    """
    Base exception for all trust layer failures.

    Reliability Level: SOVEREIGN TIER
    """

    default_code = "HL-ERR-000"

    def __init__(self, message: str, error_code: Optional[str] = None):
        """
        Initialize error.

        Args:
            message: Human-readable error message (must not contain secrets)
            error_code: Sovereign error code (default: class default)
        """
        self.error_code = error_code or self.default_code
        self.message = message
        super().__init__(f"[{self.error_code}] {message}")


class MalformedKeyError(TrustLayerError):
    """Raised when private key material is not a valid secp256k1 scalar (HL-KEY-001)."""
    default_code = ErrorCode.MALFORMED_KEY


class EncodingError(TrustLayerError):
    """Raised when an intent cannot be encoded canonically (HL-ENC-001)."""
    default_code = ErrorCode.ENCODING


class SigningError(TrustLayerError):
    """Raised when signing fails or a signature does not recover to the signer (HL-SIG-001)."""
    default_code = ErrorCode.SIGNING


class NetworkMismatchError(TrustLayerError):
    """Raised when an envelope signed for one network would be sent to another (HL-NET-001)."""
    default_code = ErrorCode.NETWORK_MISMATCH


class NetworkFailureError(TrustLayerError):
    """
    Raised on timeout, connection failure or an ambiguous HTTP status (HL-NET-002).

    When outcome_unknown is True the request may have reached the venue, so
    a mutating action may or may not have taken effect.
    """
    default_code = ErrorCode.NETWORK_FAILURE

    def __init__(
        self,
        message: str,
        outcome_unknown: bool = True,
        status_code: Optional[int] = None
    ):
        self.outcome_unknown = outcome_unknown
        self.status_code = status_code
        super().__init__(message)


class VenueRejectionError(TrustLayerError):
    """
    Raised when the venue definitively rejected an action (HL-VEN-001).

    The venue's own text is kept in venue_message exactly as received.
    """
    default_code = ErrorCode.VENUE_REJECTION

    def __init__(self, venue_message: str, status_code: Optional[int] = None):
        self.venue_message = venue_message
        self.status_code = status_code
        super().__init__(f"Venue rejected action: {venue_message}")


class UnknownResponseError(TrustLayerError):
    """Raised when a venue response matches no known shape (HL-VEN-002)."""
    default_code = ErrorCode.UNKNOWN_RESPONSE

    def __init__(self, message: str, payload: Any = None):
        self.payload = payload
        super().__init__(message)


class IndeterminateOutcomeError(TrustLayerError):
    """Raised when an action's outcome could not be confirmed in time (HL-REC-003)."""
    default_code = ErrorCode.INDETERMINATE


class ConfigurationError(TrustLayerError):
    """Raised when configuration is invalid; startup fails closed (HL-CFG-001)."""
    default_code = ErrorCode.CONFIGURATION
