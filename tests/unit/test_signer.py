"""
Unit Tests for the secp256k1 Signer

Reliability Level: SOVEREIGN TIER

Tests:
- Known key to address derivation
- Low-s and v in {27, 28} on every signature
- Recovery round trip
- Signature.from_hex normalization of v and high s
- Malformed keys and hashes raise SigningError (HL-SIG-001)
"""

import os
import sys

import pytest
from eth_account import Account

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from trustlayer.errors import SigningError
from trustlayer.signing.keccak import keccak256
from trustlayer.signing.signer import (
    SECP256K1_HALF_N,
    SECP256K1_N,
    Signature,
    Signer,
    normalize_low_s,
    public_key_to_address,
)


TEST_KEY = bytes.fromhex("ac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80")
TEST_ADDRESS = "0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266"


@pytest.fixture
def signer():
    return Signer()


class TestAddressDerivation:

    def test_hardhat_account_zero(self, signer):
        assert public_key_to_address(signer.public_key(TEST_KEY)) == TEST_ADDRESS

    def test_matches_eth_account(self, signer):
        key = bytes.fromhex("59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d")
        expected = Account.from_key(key).address.lower()
        assert public_key_to_address(signer.public_key(key)) == expected


class TestSign:

    @pytest.mark.parametrize("message", [b"", b"a", b"order", b"x" * 100, b"\xff" * 7])
    def test_low_s_and_v(self, signer, message):
        signature = signer.sign(TEST_KEY, keccak256(message))
        assert 1 <= signature.r < SECP256K1_N
        assert 1 <= signature.s <= SECP256K1_HALF_N
        assert signature.v in (27, 28)

    def test_deterministic(self, signer):
        digest = keccak256(b"same")
        assert signer.sign(TEST_KEY, digest) == signer.sign(TEST_KEY, digest)

    def test_recovers_signer(self, signer):
        digest = keccak256(b"recover me")
        signature = signer.sign(TEST_KEY, digest)
        assert signer.recover_address(digest, signature) == TEST_ADDRESS

    def test_accepts_bytearray_key(self, signer):
        digest = keccak256(b"buffer")
        assert signer.sign(bytearray(TEST_KEY), digest) == signer.sign(TEST_KEY, digest)

    @pytest.mark.parametrize("digest", [b"", b"\x00" * 31, b"\x00" * 33, "00" * 32])
    def test_malformed_hash(self, signer, digest):
        with pytest.raises(SigningError):
            signer.sign(TEST_KEY, digest)

    @pytest.mark.parametrize("key", [
        b"\x00" * 32,
        SECP256K1_N.to_bytes(32, "big"),
        b"\xff" * 32,
        b"\x01" * 31,
    ])
    def test_out_of_range_key(self, signer, key):
        with pytest.raises(SigningError) as exc_info:
            signer.sign(key, keccak256(b"x"))
        assert key.hex() not in str(exc_info.value)


class TestSignatureWire:

    def test_to_wire_format(self, signer):
        wire = signer.sign(TEST_KEY, keccak256(b"wire")).to_wire()
        assert set(wire) == {"r", "s", "v"}
        assert wire["r"].startswith("0x") and len(wire["r"]) == 66
        assert wire["s"].startswith("0x") and len(wire["s"]) == 66
        assert wire["v"] in (27, 28)

    def test_to_bytes_round_trips_through_from_hex(self, signer):
        signature = signer.sign(TEST_KEY, keccak256(b"bytes"))
        raw = signature.to_bytes()
        assert len(raw) == 65
        assert Signature.from_hex("0x" + raw.hex()) == signature
        assert Signature.from_hex(raw.hex()) == signature


class TestFromHex:

    def _raw(self, signature: Signature, v: int) -> str:
        return (signature.r.to_bytes(32, "big") + signature.s.to_bytes(32, "big") + bytes([v])).hex()

    def test_zero_one_recovery_byte(self, signer):
        signature = signer.sign(TEST_KEY, keccak256(b"v"))
        assert Signature.from_hex(self._raw(signature, signature.v - 27)) == signature

    @pytest.mark.parametrize("v,expected", [(37, 27), (38, 28), (35, 27), (36, 28)])
    def test_chain_id_encoded_v(self, v, expected):
        parsed = Signature.from_hex("11" * 32 + "22" * 32 + "%02x" % v)
        assert parsed.v == expected

    def test_high_s_is_normalized(self, signer):
        digest = keccak256(b"malleable")
        signature = signer.sign(TEST_KEY, digest)
        high = Signature(r=signature.r, s=SECP256K1_N - signature.s, v=55 - signature.v)

        parsed = Signature.from_hex(self._raw(high, high.v))

        assert parsed == signature
        assert signer.recover_address(digest, parsed) == TEST_ADDRESS

    def test_normalize_low_s_leaves_low_s_alone(self, signer):
        signature = signer.sign(TEST_KEY, keccak256(b"low"))
        assert normalize_low_s(signature) is signature

    @pytest.mark.parametrize("value", ["zz" * 65, "11" * 64, "11" * 66, ""])
    def test_malformed_hex(self, value):
        with pytest.raises(SigningError):
            Signature.from_hex(value)


class TestRecover:

    def test_wrong_digest_recovers_other_address(self, signer):
        signature = signer.sign(TEST_KEY, keccak256(b"one"))
        assert signer.recover_address(keccak256(b"two"), signature) != TEST_ADDRESS

    def test_invalid_v(self, signer):
        signature = signer.sign(TEST_KEY, keccak256(b"v"))
        with pytest.raises(SigningError):
            signer.recover_address(keccak256(b"v"), Signature(r=signature.r, s=signature.s, v=29))
