"""
============================================================================
Hyperliquid Trust Layer - Configuration
============================================================================

Reliability Level: L6 Critical (Sovereign Tier)
Traceability: All operations include correlation_id for audit

This module provides configuration management for the trust layer:
- Environment variable parsing with type safety (.env supported)
- Default values for optional configuration
- Fail-closed behavior on invalid config (HL-CFG-001)

The private key is NOT part of this object. PrivateKeyWalletAdapter.
from_environment() reads HL_PRIVATE_KEY into the wallet's zeroable buffer.

ENVIRONMENT VARIABLES:
    - HL_NETWORK: mainnet | testnet (default: mainnet)
    - HL_HTTP_TIMEOUT_SECONDS: Per-request timeout (default: 10)
    - HL_INFO_MAX_RETRIES: Attempts for read-only queries (default: 3)
    - HL_LEVERAGE_MAX_ATTEMPTS: Attempts for updateLeverage (default: 3)
    - HL_RECONCILE_TIMEOUT_SECONDS: Reconciliation deadline (default: 30)
    - HL_RECONCILE_BASE_DELAY_SECONDS: First poll interval (default: 0.25)
    - HL_RECONCILE_MAX_DELAY_SECONDS: Poll interval cap (default: 4)
    - HL_VAULT_ADDRESS: Optional sub-account to trade for

ERROR CODES:
    - HL-CFG-001: Configuration invalid

============================================================================
"""

from typing import Optional, List
from dataclasses import dataclass
import logging
import os

from dotenv import load_dotenv

from trustlayer.errors import ConfigurationError, EncodingError
from trustlayer.network import Network
from trustlayer.signing.action_encoder import normalize_vault_address

# Configure module logger
logger = logging.getLogger(__name__)


# =============================================================================
# Default Values
# =============================================================================

DEFAULT_NETWORK = Network.MAINNET
DEFAULT_HTTP_TIMEOUT_SECONDS = 10.0
DEFAULT_INFO_MAX_RETRIES = 3
DEFAULT_LEVERAGE_MAX_ATTEMPTS = 3
DEFAULT_RECONCILE_TIMEOUT_SECONDS = 30.0
DEFAULT_RECONCILE_BASE_DELAY_SECONDS = 0.25
DEFAULT_RECONCILE_MAX_DELAY_SECONDS = 4.0


# =============================================================================
# TrustLayerConfig Class
# =============================================================================

@dataclass
class TrustLayerConfig:
    """
    Trust layer configuration.

    Reliability Level: L6 Critical (Sovereign Tier)
    Side Effects: Logs configuration on load (no secrets)
    """

    network: Network = DEFAULT_NETWORK
    http_timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS
    info_max_retries: int = DEFAULT_INFO_MAX_RETRIES
    leverage_max_attempts: int = DEFAULT_LEVERAGE_MAX_ATTEMPTS
    reconcile_timeout_seconds: float = DEFAULT_RECONCILE_TIMEOUT_SECONDS
    reconcile_base_delay_seconds: float = DEFAULT_RECONCILE_BASE_DELAY_SECONDS
    reconcile_max_delay_seconds: float = DEFAULT_RECONCILE_MAX_DELAY_SECONDS
    vault_address: Optional[str] = None

    def validate(self) -> None:
        """
        Validate configuration.

        Raises:
            ConfigurationError: If any value is out of range (HL-CFG-001)
        """
        errors: List[str] = []

        if not isinstance(self.network, Network):
            errors.append(f"HL_NETWORK must be a Network, got: {self.network!r}")
        if self.http_timeout_seconds <= 0:
            errors.append(f"HL_HTTP_TIMEOUT_SECONDS must be positive, got: {self.http_timeout_seconds}")
        if self.info_max_retries < 1:
            errors.append(f"HL_INFO_MAX_RETRIES must be >= 1, got: {self.info_max_retries}")
        if self.leverage_max_attempts < 1:
            errors.append(f"HL_LEVERAGE_MAX_ATTEMPTS must be >= 1, got: {self.leverage_max_attempts}")
        if self.reconcile_timeout_seconds <= 0:
            errors.append(
                f"HL_RECONCILE_TIMEOUT_SECONDS must be positive, got: {self.reconcile_timeout_seconds}"
            )
        if self.reconcile_base_delay_seconds <= 0:
            errors.append(
                f"HL_RECONCILE_BASE_DELAY_SECONDS must be positive, got: {self.reconcile_base_delay_seconds}"
            )
        if self.reconcile_max_delay_seconds < self.reconcile_base_delay_seconds:
            errors.append(
                "HL_RECONCILE_MAX_DELAY_SECONDS must be >= HL_RECONCILE_BASE_DELAY_SECONDS"
            )
        if self.vault_address is not None:
            try:
                self.vault_address = normalize_vault_address(self.vault_address)
            except EncodingError as e:
                errors.append(f"HL_VAULT_ADDRESS is invalid: {e.message}")

        if errors:
            error_msg = "Trust layer configuration validation failed: " + "; ".join(errors)
            logger.error(f"[HL-CFG-001] {error_msg}")
            raise ConfigurationError(error_msg)

        logger.info(
            f"[HL-CONFIG] Configuration validated | "
            f"network={self.network.value} | "
            f"http_timeout_seconds={self.http_timeout_seconds} | "
            f"reconcile_timeout_seconds={self.reconcile_timeout_seconds} | "
            f"vault_address={self.vault_address}"
        )

    @classmethod
    def from_environment(cls, validate: bool = True, dotenv: bool = True) -> "TrustLayerConfig":
        """
        Load configuration from environment variables.

        A malformed value raises; it is never replaced by its default.

        Args:
            validate: Whether to validate configuration after loading (default: True)
            dotenv: Whether to load a .env file first (default: True)

        Raises:
            ConfigurationError: If any value cannot be parsed (HL-CFG-001)
        """
        if dotenv:
            load_dotenv()

        network = Network.from_string(os.environ.get("HL_NETWORK", DEFAULT_NETWORK.value))
        vault = os.environ.get("HL_VAULT_ADDRESS", "").strip() or None

        config = cls(
            network=network,
            http_timeout_seconds=_read_number("HL_HTTP_TIMEOUT_SECONDS", DEFAULT_HTTP_TIMEOUT_SECONDS, float),
            info_max_retries=_read_number("HL_INFO_MAX_RETRIES", DEFAULT_INFO_MAX_RETRIES, int),
            leverage_max_attempts=_read_number("HL_LEVERAGE_MAX_ATTEMPTS", DEFAULT_LEVERAGE_MAX_ATTEMPTS, int),
            reconcile_timeout_seconds=_read_number(
                "HL_RECONCILE_TIMEOUT_SECONDS", DEFAULT_RECONCILE_TIMEOUT_SECONDS, float
            ),
            reconcile_base_delay_seconds=_read_number(
                "HL_RECONCILE_BASE_DELAY_SECONDS", DEFAULT_RECONCILE_BASE_DELAY_SECONDS, float
            ),
            reconcile_max_delay_seconds=_read_number(
                "HL_RECONCILE_MAX_DELAY_SECONDS", DEFAULT_RECONCILE_MAX_DELAY_SECONDS, float
            ),
            vault_address=vault,
        )

        logger.info(
            f"[HL-CONFIG] Loading configuration from environment | "
            f"HL_NETWORK={config.network.value} | "
            f"HL_VAULT_ADDRESS={'set' if vault else 'unset'}"
        )

        if validate:
            config.validate()
        return config

    def to_dict(self) -> dict:
        return {
            "network": self.network.value,
            "http_timeout_seconds": self.http_timeout_seconds,
            "info_max_retries": self.info_max_retries,
            "leverage_max_attempts": self.leverage_max_attempts,
            "reconcile_timeout_seconds": self.reconcile_timeout_seconds,
            "reconcile_base_delay_seconds": self.reconcile_base_delay_seconds,
            "reconcile_max_delay_seconds": self.reconcile_max_delay_seconds,
            "vault_address": self.vault_address,
        }


def _read_number(name: str, default, cast):
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        logger.error(f"[HL-CFG-001] Invalid {name} value: {raw!r}")
        raise ConfigurationError(f"{name} must be a number, got: {raw!r}") from None


# =============================================================================
# Module-level singleton
# =============================================================================

_config: Optional[TrustLayerConfig] = None


def get_config() -> TrustLayerConfig:
    """Return the process configuration, loading it on first use."""
    global _config
    if _config is None:
        _config = TrustLayerConfig.from_environment()
    return _config


def reset_config() -> None:
    """Drop the cached configuration (for testing)."""
    global _config
    _config = None
