# ============================================================================
# Hyperliquid Trust Layer v1.0.0
# Network Selection - HL-NET Compliance
# ============================================================================
#
# Reliability Level: SOVEREIGN TIER (Mission-Critical)
# Purpose: One value that selects both the signing domain and the API host
#
# SOVEREIGN MANDATE:
#   - Signing source and base URL are derived from the SAME enum member
#   - Unknown network names fail closed (HL-CFG-001)
#
# ============================================================================

from enum import Enum

from trustlayer.errors import ConfigurationError


MAINNET_API_URL = "https://api.hyperliquid.xyz"
TESTNET_API_URL = "https://api.hyperliquid-testnet.xyz"


class Network(Enum):
    """Venue network. The value doubles as the config string."""
    MAINNET = "mainnet"
    TESTNET = "testnet"

    @property
    def api_url(self) -> str:
        """Base URL for the /info and /exchange endpoints."""
        return MAINNET_API_URL if self is Network.MAINNET else TESTNET_API_URL

    @property
    def signing_source(self) -> str:
        """Value of the Agent.source field in the signed typed data."""
        return "a" if self is Network.MAINNET else "b"

    @classmethod
    def from_string(cls, value: str) -> "Network":
        """
        Parse a network name such as "mainnet" or "TESTNET".

        Raises:
            ConfigurationError: If the name is not a known network
        """
        normalized = (value or "").strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        raise ConfigurationError(
            f"Unknown network '{value}'. Expected one of: "
            f"{', '.join(m.value for m in cls)}"
        )
