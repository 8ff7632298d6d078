# ============================================================================
# Hyperliquid Trust Layer v1.0.0
# Signing Module - Hyperliquid L1 Action Authentication
# ============================================================================
#
# Reliability Level: SOVEREIGN TIER (Mission-Critical)
# Purpose: Canonical encoding, Keccak-256 hashing and secp256k1 signing of
#          exchange actions
#
# Components:
#   - keccak256: Original Keccak-256 (not NIST SHA3)
#   - DecimalGateway: Canonical decimal strings for signed payloads
#   - ActionEncoder: Wire actions and the signing preimage
#   - l1_signing_digest: EIP-712 Agent digest with network source
#   - Signer: Low-s recoverable ECDSA
#   - WalletAdapter / PrivateKeyWalletAdapter: Signing capability
#   - NonceSource: Strictly increasing per-address nonces
#
# ============================================================================

from trustlayer.signing.keccak import keccak256, keccak256_hex, verify_keccak_backend
from trustlayer.signing.decimal_gateway import DecimalGateway
from trustlayer.signing.action_encoder import (
    ActionEncoder,
    address_to_bytes,
    normalize_vault_address,
)
from trustlayer.signing.eip712 import build_l1_typed_data, l1_signing_digest
from trustlayer.signing.signer import Signature, Signer, normalize_low_s
from trustlayer.signing.wallet_adapter import WalletAdapter, PrivateKeyWalletAdapter
from trustlayer.signing.nonce import NonceSource

__all__ = [
    # Hash
    'keccak256',
    'keccak256_hex',
    'verify_keccak_backend',
    # Encoding
    'DecimalGateway',
    'ActionEncoder',
    'address_to_bytes',
    'normalize_vault_address',
    'build_l1_typed_data',
    'l1_signing_digest',
    # Signing
    'Signature',
    'Signer',
    'normalize_low_s',
    'WalletAdapter',
    'PrivateKeyWalletAdapter',
    # Nonces
    'NonceSource',
]
