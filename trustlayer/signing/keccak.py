# ============================================================================
# Hyperliquid Trust Layer v1.0.0
# Keccak-256 Hash Primitive - HL-SIG Compliance
# ============================================================================
#
# Reliability Level: SOVEREIGN TIER (Mission-Critical)
# Purpose: The one hash function used for action hashes, typed-data digests
#          and address derivation
#
# SOVEREIGN MANDATE:
#   - Original Keccak padding (0x01), NOT NIST SHA3-256 (0x06)
#   - Backend is checked against a known vector before first use
#   - A wrong backend aborts signing (HL-SIG-001), it never signs
#
# Error Codes:
#   - HL-SIG-001: Keccak backend self-check failed
#
# ============================================================================

import logging
import threading

from eth_utils import keccak as _eth_keccak

from trustlayer.errors import SigningError

logger = logging.getLogger(__name__)


DIGEST_SIZE = 32

# keccak256(b"") with original padding. NIST SHA3-256 of b"" starts a7ffc6f8.
EMPTY_INPUT_DIGEST = bytes.fromhex(
    "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
)

_backend_verified = False
_verify_lock = threading.Lock()


def keccak256(data: bytes) -> bytes:
    """
    Hash bytes with Keccak-256.

    Args:
        data: Arbitrary-length input

    Returns:
        32-byte digest
    """
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise TypeError(f"keccak256 expects bytes, got {type(data).__name__}")
    return _eth_keccak(bytes(data))


def keccak256_hex(data: bytes) -> str:
    """Hash bytes and return the digest as 0x-prefixed lowercase hex."""
    return "0x" + keccak256(data).hex()


def verify_keccak_backend() -> None:
    """
    Confirm the installed backend implements original Keccak.

    Runs once per process. Signing code calls this before producing any
    signature.

    Raises:
        SigningError: If the backend output does not match the known vector
    """
    global _backend_verified
    if _backend_verified:
        return
    with _verify_lock:
        if _backend_verified:
            return
        digest = keccak256(b"")
        if digest != EMPTY_INPUT_DIGEST:
            logger.critical(
                f"[HL-SIG-001] Keccak backend self-check failed | "
                f"got={digest.hex()} | expected={EMPTY_INPUT_DIGEST.hex()}"
            )
            raise SigningError(
                "Keccak-256 backend produced an unexpected digest; refusing to sign"
            )
        _backend_verified = True
        logger.debug("[HL-KEC] Keccak backend verified")
