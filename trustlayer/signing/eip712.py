# ============================================================================
# Hyperliquid Trust Layer v1.0.0
# L1 Typed-Data Digest - HL-SIG Compliance
# ============================================================================
#
# Reliability Level: SOVEREIGN TIER (Mission-Critical)
# Purpose: Wraps an action hash in the EIP-712 "Agent" message that the
#          venue's verifier reconstructs, and produces the 32-byte digest
#
# SOVEREIGN MANDATE:
#   - Domain is fixed: Exchange / 1 / chainId 1337 / zero contract
#   - Agent.source is "a" on mainnet and "b" on testnet, so a signature
#     for one network never verifies on the other
#   - Digest = keccak256(0x19 0x01 || domainSeparator || hashStruct(Agent))
#
# ============================================================================

from typing import Any, Dict

from eth_account.messages import encode_typed_data

from trustlayer.errors import EncodingError
from trustlayer.network import Network
from trustlayer.signing.keccak import DIGEST_SIZE, keccak256


L1_CHAIN_ID = 1337
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

L1_DOMAIN: Dict[str, Any] = {
    "name": "Exchange",
    "version": "1",
    "chainId": L1_CHAIN_ID,
    "verifyingContract": ZERO_ADDRESS,
}

EIP712_DOMAIN_TYPE = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]

AGENT_TYPE = [
    {"name": "source", "type": "string"},
    {"name": "connectionId", "type": "bytes32"},
]


def build_l1_typed_data(action_hash: bytes, network: Network) -> Dict[str, Any]:
    """
    Build the full EIP-712 message for an L1 action.

    Args:
        action_hash: 32-byte keccak of the encoded action
        network: Network whose signing source is embedded

    Returns:
        Dict accepted by eth_account's encode_typed_data(full_message=...)
    """
    if len(action_hash) != DIGEST_SIZE:
        raise EncodingError(f"action hash must be {DIGEST_SIZE} bytes, got {len(action_hash)}")
    return {
        "domain": dict(L1_DOMAIN),
        "types": {
            "EIP712Domain": EIP712_DOMAIN_TYPE,
            "Agent": AGENT_TYPE,
        },
        "primaryType": "Agent",
        "message": {
            "source": network.signing_source,
            "connectionId": bytes(action_hash),
        },
    }


def l1_signing_digest(action_hash: bytes, network: Network) -> bytes:
    """Return the 32-byte digest a wallet signs for an L1 action."""
    signable = encode_typed_data(full_message=build_l1_typed_data(action_hash, network))
    return keccak256(b"\x19" + signable.version + signable.header + signable.body)
