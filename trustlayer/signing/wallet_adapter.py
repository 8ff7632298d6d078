# ============================================================================
# Hyperliquid Trust Layer v1.0.0
# Wallet Adapters - HL-KEY Compliance
# ============================================================================
#
# Reliability Level: SOVEREIGN TIER (Mission-Critical)
# Purpose: Capability interface for "give me your address" and "sign this
#          digest", with an in-process private key implementation
#
# SOVEREIGN MANDATE:
#   - Key bytes live in ONE mutable buffer that is zeroed on close()
#   - Key material NEVER appears in repr, logs, exceptions or pickles
#   - Every signature is recovered and checked against the wallet address
#     before it leaves the adapter (HL-SIG-001 on mismatch)
#   - Credentials are loaded from environment ONLY (HL_PRIVATE_KEY)
#
# Error Codes:
#   - HL-KEY-001: Malformed private key
#   - HL-SIG-001: Signature does not recover to the wallet address,
#                 or the wallet is closed
#
# ============================================================================

import logging
import os
import string
import threading
from abc import ABC, abstractmethod
from typing import Optional

from trustlayer.errors import MalformedKeyError, SigningError
from trustlayer.signing.signer import (
    PRIVATE_KEY_BYTES,
    SECP256K1_N,
    Signature,
    Signer,
    public_key_to_address,
)

logger = logging.getLogger(__name__)


_HEX_DIGITS = frozenset(string.hexdigits)


class WalletAdapter(ABC):
    """
    Abstract signing capability.

    Implementations may keep a key in process memory, talk to a hardware
    device, or forward to a remote signer. Callers only ever see the
    address and finished signatures.
    """

    @abstractmethod
    def get_address(self) -> str:
        """Return the lowercase 0x-prefixed account address."""

    @abstractmethod
    def sign_hash(self, message_hash: bytes) -> Signature:
        """Sign a 32-byte digest and return a recoverable signature."""

    def close(self) -> None:
        """Release any held secrets. Default: nothing to release."""

    def __enter__(self) -> "WalletAdapter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def _parse_private_key_hex(private_key_hex: str) -> bytearray:
    """
    Decode hex key text into a bytearray, with or without 0x.

    Error messages describe the problem, never the value.
    """
    if not isinstance(private_key_hex, str):
        raise MalformedKeyError("private key must be provided as a hex string")
    body = private_key_hex.strip()
    if body[:2] in ("0x", "0X"):
        body = body[2:]
    if len(body) != PRIVATE_KEY_BYTES * 2:
        raise MalformedKeyError(
            f"private key must be {PRIVATE_KEY_BYTES * 2} hex characters, got {len(body)}"
        )
    if not _HEX_DIGITS.issuperset(body):
        raise MalformedKeyError("private key contains non-hex characters")

    key = bytearray.fromhex(body)
    scalar = int.from_bytes(key, "big")
    if not 0 < scalar < SECP256K1_N:
        key[:] = bytes(len(key))
        raise MalformedKeyError("private key is outside the secp256k1 scalar range")
    return key


class PrivateKeyWalletAdapter(WalletAdapter):
    """
    Wallet backed by a raw secp256k1 private key held in memory.

    The address is derived once at construction. The adapter is safe to
    share between concurrent signing calls; close() waits for in-flight
    signatures and then zeroes the key.

    Reliability Level: SOVEREIGN TIER
    Input Constraints: 64 hex characters, optional 0x prefix
    Side Effects: Logs address on load (key is [REDACTED])

    Example Usage:
        with PrivateKeyWalletAdapter.from_environment() as wallet:
            address = wallet.get_address()
            signature = wallet.sign_hash(digest)
        # key bytes are zero here
    """

    ENV_PRIVATE_KEY = "HL_PRIVATE_KEY"

    def __init__(
        self,
        private_key_hex: str,
        signer: Optional[Signer] = None,
        correlation_id: Optional[str] = None
    ):
        """
        Initialize wallet from hex key text.

        Raises:
            MalformedKeyError: If the key is not a valid secp256k1 scalar (HL-KEY-001)
        """
        self._signer = signer or Signer()
        self.correlation_id = correlation_id
        self._lock = threading.Lock()
        self._closed = False
        self._key = _parse_private_key_hex(private_key_hex)
        try:
            self._address = public_key_to_address(self._signer.public_key(self._key))
        except SigningError:
            self._wipe()
            raise MalformedKeyError("private key was rejected by the secp256k1 backend") from None

        logger.debug(
            f"[HL-KEY] Wallet loaded | address={self._address} | "
            f"private_key=[REDACTED] | correlation_id={correlation_id}"
        )

    @classmethod
    def from_environment(
        cls,
        env_var: str = ENV_PRIVATE_KEY,
        correlation_id: Optional[str] = None
    ) -> "PrivateKeyWalletAdapter":
        """
        Load the key from an environment variable.

        Raises:
            MalformedKeyError: If the variable is unset or malformed (HL-KEY-001)
        """
        value = os.getenv(env_var)
        if not value:
            logger.error(
                f"[HL-KEY-001] Missing credentials | "
                f"missing={env_var} | correlation_id={correlation_id}"
            )
            raise MalformedKeyError(f"environment variable {env_var} is not set")
        return cls(value, correlation_id=correlation_id)

    @property
    def closed(self) -> bool:
        return self._closed

    def get_address(self) -> str:
        return self._address

    def sign_hash(self, message_hash: bytes) -> Signature:
        """
        Sign a digest and verify the signature recovers to this wallet.

        Raises:
            SigningError: If the wallet is closed, the digest is malformed,
                or recovery yields a different address (HL-SIG-001)
        """
        with self._lock:
            if self._closed:
                raise SigningError("wallet is closed; key material has been released")
            signature = self._signer.sign(self._key, message_hash)

        recovered = self._signer.recover_address(message_hash, signature)
        if recovered != self._address:
            logger.critical(
                f"[HL-SIG-001] Signature recovery mismatch | "
                f"expected={self._address} | recovered={recovered} | "
                f"correlation_id={self.correlation_id}"
            )
            raise SigningError("signature does not recover to the wallet address")
        return signature

    def close(self) -> None:
        """Zero the key buffer. Idempotent."""
        with self._lock:
            if self._closed:
                return
            self._wipe()
            self._closed = True
        logger.debug(
            f"[HL-KEY] Wallet closed | address={self._address} | "
            f"correlation_id={self.correlation_id}"
        )

    def _wipe(self) -> None:
        for i in range(len(self._key)):
            self._key[i] = 0

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"PrivateKeyWalletAdapter(address={self._address}, key=[REDACTED], {state})"

    __str__ = __repr__

    def __reduce__(self):
        raise TypeError("PrivateKeyWalletAdapter cannot be pickled")

    def __del__(self) -> None:
        key = getattr(self, "_key", None)
        if key is not None:
            for i in range(len(key)):
                key[i] = 0
