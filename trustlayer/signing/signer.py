# ============================================================================
# Hyperliquid Trust Layer v1.0.0
# secp256k1 Signer - HL-SIG Compliance
# ============================================================================
#
# Reliability Level: SOVEREIGN TIER (Mission-Critical)
# Purpose: Recoverable ECDSA signatures over 32-byte digests
#
# SOVEREIGN MANDATE:
#   - Deterministic per-message nonce (RFC 6979); never reused across messages
#   - s is always in the lower half of the curve order (low-s)
#   - v is 27 + recovery id, so the venue recovers the signer address
#   - Key bytes are never logged, formatted or stored by this module
#
# Error Codes:
#   - HL-SIG-001: Malformed key/hash, or signature parsing failed
#
# ============================================================================

import logging
from dataclasses import dataclass
from typing import Dict, Union

from eth_keys import keys
from eth_keys.exceptions import BadSignature
from eth_utils import ValidationError

from trustlayer.errors import SigningError
from trustlayer.signing.keccak import DIGEST_SIZE, keccak256, verify_keccak_backend

logger = logging.getLogger(__name__)


SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
SECP256K1_HALF_N = SECP256K1_N // 2
PRIVATE_KEY_BYTES = 32


# ============================================================================
# Signature value
# ============================================================================

@dataclass(frozen=True)
class Signature:
    """
    Recoverable ECDSA signature.

    r and s are integers in [1, n-1] with s <= n/2. v is 27 or 28.
    """
    r: int
    s: int
    v: int

    @property
    def recovery_id(self) -> int:
        return self.v - 27

    def to_wire(self) -> Dict[str, Union[str, int]]:
        """Render as the venue's {"r", "s", "v"} object."""
        return {
            "r": "0x" + self.r.to_bytes(32, "big").hex(),
            "s": "0x" + self.s.to_bytes(32, "big").hex(),
            "v": self.v,
        }

    def to_bytes(self) -> bytes:
        """65-byte r || s || v encoding."""
        return self.r.to_bytes(32, "big") + self.s.to_bytes(32, "big") + bytes([self.v])

    @classmethod
    def from_hex(cls, signature_hex: str) -> "Signature":
        """
        Parse a 65-byte hex signature from an external wallet.

        v of 0/1 is shifted to 27/28. Values above 28 (chain-id encoded)
        are reduced to their parity.

        Raises:
            SigningError: If the input is not 65 bytes of hex
        """
        body = signature_hex[2:] if signature_hex[:2] in ("0x", "0X") else signature_hex
        try:
            raw = bytes.fromhex(body)
        except ValueError:
            raise SigningError("signature is not valid hex") from None
        if len(raw) != 65:
            raise SigningError(f"signature must be 65 bytes, got {len(raw)}")

        r = int.from_bytes(raw[0:32], "big")
        s = int.from_bytes(raw[32:64], "big")
        v = raw[64]
        if v < 27:
            v += 27
        elif v > 28:
            v = 28 if v % 2 == 0 else 27
        if v not in (27, 28):
            raise SigningError(f"unsupported recovery byte {raw[64]}")
        return normalize_low_s(cls(r=r, s=s, v=v))


def normalize_low_s(signature: Signature) -> Signature:
    """Map s to n - s when it is in the upper half, flipping v."""
    if signature.s > SECP256K1_HALF_N:
        return Signature(
            r=signature.r,
            s=SECP256K1_N - signature.s,
            v=55 - signature.v,  # 27 <-> 28
        )
    return signature


def require_private_key_range(private_key: bytes) -> None:
    """
    Check a raw key is 32 bytes and lies in [1, n-1].

    Raises:
        SigningError: Without echoing any key bytes
    """
    if len(private_key) != PRIVATE_KEY_BYTES:
        raise SigningError(f"private key must be {PRIVATE_KEY_BYTES} bytes")
    if not 0 < int.from_bytes(bytes(private_key), "big") < SECP256K1_N:
        raise SigningError("private key is outside the secp256k1 scalar range")


def public_key_to_address(public_key: keys.PublicKey) -> str:
    """Lowercase 0x address: last 20 bytes of keccak256(x || y)."""
    return "0x" + keccak256(public_key.to_bytes())[-20:].hex()


# ============================================================================
# Signer
# ============================================================================

class Signer:
    """
    Stateless secp256k1 signer.

    Holds no key material. Callers pass the 32-byte key for the duration
    of one call.

    Reliability Level: SOVEREIGN TIER
    Thread Safety: Stateless, safe for concurrent use
    Side Effects: None

    Example Usage:
        signer = Signer()
        sig = signer.sign(key_bytes, digest)
        assert signer.recover_address(digest, sig) == address
    """

    def sign(self, private_key: bytes, message_hash: bytes) -> Signature:
        """
        Sign a 32-byte digest.

        Args:
            private_key: 32-byte secp256k1 scalar in [1, n-1]
            message_hash: 32-byte digest

        Returns:
            Low-s Signature with v in {27, 28}

        Raises:
            SigningError: On malformed key or hash length (HL-SIG-001)
        """
        verify_keccak_backend()
        self._require_hash(message_hash)
        require_private_key_range(private_key)

        try:
            key = keys.PrivateKey(bytes(private_key))
            raw = key.sign_msg_hash(bytes(message_hash))
        except ValidationError:
            # eth_keys message text can echo the input; keep it out of logs
            logger.error("[HL-SIG-001] Private key rejected by secp256k1 backend")
            raise SigningError("private key is not a valid secp256k1 scalar") from None

        return normalize_low_s(Signature(r=raw.r, s=raw.s, v=raw.v + 27))

    def public_key(self, private_key: bytes) -> keys.PublicKey:
        require_private_key_range(private_key)
        try:
            return keys.PrivateKey(bytes(private_key)).public_key
        except ValidationError:
            raise SigningError("private key is not a valid secp256k1 scalar") from None

    def recover_address(self, message_hash: bytes, signature: Signature) -> str:
        """
        Recover the signer address from a digest and signature.

        Raises:
            SigningError: If no public key can be recovered
        """
        self._require_hash(message_hash)
        if signature.v not in (27, 28):
            raise SigningError(f"v must be 27 or 28, got {signature.v}")
        try:
            recoverable = keys.Signature(vrs=(signature.recovery_id, signature.r, signature.s))
            public_key = recoverable.recover_public_key_from_msg_hash(bytes(message_hash))
        except (BadSignature, ValidationError) as e:
            raise SigningError(f"signature recovery failed: {e}") from e
        return public_key_to_address(public_key)

    @staticmethod
    def _require_hash(message_hash: bytes) -> None:
        if not isinstance(message_hash, (bytes, bytearray)) or len(message_hash) != DIGEST_SIZE:
            raise SigningError(f"message hash must be {DIGEST_SIZE} bytes")
