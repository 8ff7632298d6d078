# ============================================================================
# Hyperliquid Trust Layer v1.0.0
# Decimal Gateway - HL-ENC Compliance
# ============================================================================
#
# Reliability Level: SOVEREIGN TIER (Mission-Critical)
# Purpose: Canonical decimal strings for signed payloads and Decimal parsing
#          of venue responses
#
# SOVEREIGN MANDATE:
#   - Float contamination is FORBIDDEN in signed payloads
#   - One value has exactly one wire string (no trailing zeros, no exponent)
#   - At most 8 fractional digits; excess precision is an error, never rounded
#
# Error Codes:
#   - HL-ENC-001: Decimal normalization failed
#
# ============================================================================

from decimal import Decimal, InvalidOperation
from typing import Optional, Union, Any
import logging

from trustlayer.errors import EncodingError

logger = logging.getLogger(__name__)


class DecimalGateway:
    """
    Sovereign Tier Decimal Gateway - HL-ENC Compliance.

    Every price and size that enters a signed action passes through
    to_wire(). Every numeric string read back from the venue passes
    through to_decimal().

    Reliability Level: SOVEREIGN TIER
    Input Constraints: str, int or Decimal (float refused)
    Side Effects: Logs HL-ENC-001 on conversion failure

    Example Usage:
        gateway = DecimalGateway()

        gateway.to_wire("50000.0", "limit_price")  # "50000"
        gateway.to_wire(Decimal("0.0010"), "size")  # "0.001"
        gateway.to_decimal("1234.5")                # Decimal("1234.5")
    """

    MAX_WIRE_DECIMALS = 8

    def to_wire(
        self,
        value: Union[str, int, Decimal],
        field_name: str = "value",
        correlation_id: Optional[str] = None
    ) -> str:
        """
        Normalize a positive number to its canonical wire string.

        Reliability Level: SOVEREIGN TIER
        Input Constraints: finite, strictly positive, <= 8 decimal places
        Side Effects: Logs HL-ENC-001 on failure

        Args:
            value: Number to normalize
            field_name: Field label for error messages
            correlation_id: Audit trail identifier

        Returns:
            Fixed-point string without trailing zeros or exponent

        Raises:
            EncodingError: If the value is not representable (HL-ENC-001)
        """
        if isinstance(value, bool) or isinstance(value, float):
            self._fail(value, field_name, "floats and bools are not accepted", correlation_id)
        if not isinstance(value, (str, int, Decimal)):
            self._fail(value, field_name, "unsupported type", correlation_id)

        try:
            decimal_value = Decimal(str(value).strip())
        except (InvalidOperation, ValueError) as e:
            self._fail(value, field_name, f"not a number ({e})", correlation_id)

        if not decimal_value.is_finite():
            self._fail(value, field_name, "must be finite", correlation_id)
        if decimal_value <= 0:
            self._fail(value, field_name, "must be strictly positive", correlation_id)

        normalized = decimal_value.normalize()
        exponent = normalized.as_tuple().exponent
        if isinstance(exponent, int) and -exponent > self.MAX_WIRE_DECIMALS:
            self._fail(
                value, field_name,
                f"more than {self.MAX_WIRE_DECIMALS} decimal places",
                correlation_id
            )

        # format 'f' expands positive exponents: Decimal('1E+2') -> '100'
        return format(normalized, "f")

    def to_decimal(
        self,
        value: Any,
        field_name: str = "value",
        correlation_id: Optional[str] = None
    ) -> Decimal:
        """
        Parse a venue numeric string into Decimal without rounding.

        Raises:
            EncodingError: If the value cannot be parsed (HL-ENC-001)
        """
        if isinstance(value, (bool, float)) or value is None:
            self._fail(value, field_name, "expected a decimal string", correlation_id)
        try:
            return Decimal(str(value))
        except (InvalidOperation, ValueError) as e:
            self._fail(value, field_name, f"not a number ({e})", correlation_id)

    @staticmethod
    def _fail(
        value: Any,
        field_name: str,
        reason: str,
        correlation_id: Optional[str]
    ) -> None:
        logger.error(
            f"[HL-ENC-001] Decimal normalization failed | "
            f"field={field_name} | value={value!r} | type={type(value).__name__} | "
            f"reason={reason} | correlation_id={correlation_id}"
        )
        raise EncodingError(f"{field_name}: cannot encode {value!r}: {reason}")


# ============================================================================
# Module-level convenience functions
# ============================================================================

_default_gateway = DecimalGateway()


def to_wire(value: Union[str, int, Decimal], field_name: str = "value") -> str:
    """Normalize a number using the default gateway."""
    return _default_gateway.to_wire(value, field_name)


def to_decimal(value: Any, field_name: str = "value") -> Decimal:
    """Parse a venue numeric string using the default gateway."""
    return _default_gateway.to_decimal(value, field_name)
