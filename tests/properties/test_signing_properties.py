"""
Property-Based Tests for Signing and Encoding

Reliability Level: SOVEREIGN TIER

Uses Hypothesis to check, for arbitrary inputs:
- Keccak-256 always yields 32 bytes and never equals NIST SHA3-256
- Every signature is low-s, has v in {27, 28} and recovers to its signer
- Distinct intents and distinct nonces encode to distinct bytes
- Decimal normalization is idempotent
- Nonces are strictly increasing under any clock behaviour
"""

import hashlib
import os
import re
import sys
from decimal import Decimal

from hypothesis import HealthCheck, assume, given, settings
from hypothesis import strategies as st

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from trustlayer.intents import OrderIntent, TimeInForce
from trustlayer.network import Network
from trustlayer.signing.action_encoder import ActionEncoder
from trustlayer.signing.decimal_gateway import DecimalGateway
from trustlayer.signing.eip712 import l1_signing_digest
from trustlayer.signing.keccak import keccak256
from trustlayer.signing.nonce import NonceSource
from trustlayer.signing.signer import SECP256K1_HALF_N, SECP256K1_N, Signer, public_key_to_address
from trustlayer.signing.wallet_adapter import PrivateKeyWalletAdapter


ADDRESS_PATTERN = re.compile(r"^0x[0-9a-f]{40}$")

# =============================================================================
# HYPOTHESIS STRATEGIES
# =============================================================================

private_keys = st.integers(min_value=1, max_value=SECP256K1_N - 1)
digests = st.binary(min_size=32, max_size=32)

# Prices and sizes as integer hundredths, so distinct values stay distinct on the wire
intent_fields = st.tuples(
    st.integers(min_value=0, max_value=200),                 # asset
    st.booleans(),                                           # is_buy
    st.integers(min_value=1, max_value=10 ** 9),             # price in cents
    st.integers(min_value=1, max_value=10 ** 7),             # size in hundredths
    st.sampled_from(list(TimeInForce)),
    st.booleans(),                                           # reduce_only
)


def build_intent(fields) -> OrderIntent:
    asset, is_buy, price_cents, size_hundredths, tif, reduce_only = fields
    return OrderIntent(
        asset=asset,
        is_buy=is_buy,
        limit_price=Decimal(price_cents) / 100,
        size=Decimal(size_hundredths) / 100,
        time_in_force=tif,
        reduce_only=reduce_only,
    )


# =============================================================================
# Keccak
# =============================================================================

class TestKeccakProperties:

    @settings(max_examples=100)
    @given(data=st.binary(max_size=512))
    def test_digest_size_and_not_sha3(self, data):
        digest = keccak256(data)
        assert len(digest) == 32
        assert digest != hashlib.sha3_256(data).digest()


# =============================================================================
# Signing
# =============================================================================

class TestSigningProperties:

    @settings(max_examples=50, suppress_health_check=[HealthCheck.too_slow], deadline=None)
    @given(scalar=private_keys, digest=digests)
    def test_sign_recover_round_trip(self, scalar, digest):
        signer = Signer()
        key = scalar.to_bytes(32, "big")
        address = public_key_to_address(signer.public_key(key))

        signature = signer.sign(key, digest)

        assert ADDRESS_PATTERN.match(address)
        assert signature.v in (27, 28)
        assert 1 <= signature.s <= SECP256K1_HALF_N
        assert signer.recover_address(digest, signature) == address

    @settings(max_examples=50, suppress_health_check=[HealthCheck.too_slow], deadline=None)
    @given(scalar=private_keys)
    def test_key_prefix_does_not_change_address(self, scalar):
        key_hex = "%064x" % scalar
        with PrivateKeyWalletAdapter(key_hex) as bare, PrivateKeyWalletAdapter("0x" + key_hex) as prefixed:
            assert bare.get_address() == prefixed.get_address()
            assert key_hex not in repr(bare)

    @settings(max_examples=50, suppress_health_check=[HealthCheck.too_slow], deadline=None)
    @given(scalar=private_keys, action_hash=digests)
    def test_network_separates_signatures(self, scalar, action_hash):
        signer = Signer()
        key = scalar.to_bytes(32, "big")
        address = public_key_to_address(signer.public_key(key))

        mainnet_digest = l1_signing_digest(action_hash, Network.MAINNET)
        testnet_digest = l1_signing_digest(action_hash, Network.TESTNET)
        signature = signer.sign(key, testnet_digest)

        assert signer.recover_address(mainnet_digest, signature) != address


# =============================================================================
# Encoding
# =============================================================================

class TestEncodingProperties:

    NONCE = 1_700_000_000_000

    @settings(max_examples=100)
    @given(a=intent_fields, b=intent_fields)
    def test_distinct_intents_encode_distinctly(self, a, b):
        assume(a != b)
        encoder = ActionEncoder()
        bytes_a = encoder.encode(encoder.order_action([build_intent(a)]), self.NONCE)
        bytes_b = encoder.encode(encoder.order_action([build_intent(b)]), self.NONCE)
        assert bytes_a != bytes_b

    @settings(max_examples=100)
    @given(fields=intent_fields, n1=st.integers(0, 2 ** 64 - 1), n2=st.integers(0, 2 ** 64 - 1))
    def test_distinct_nonces_encode_distinctly(self, fields, n1, n2):
        assume(n1 != n2)
        encoder = ActionEncoder()
        action = encoder.order_action([build_intent(fields)])
        assert encoder.action_hash(action, n1) != encoder.action_hash(action, n2)

    @settings(max_examples=100)
    @given(fields=intent_fields)
    def test_encoding_is_deterministic(self, fields):
        encoder = ActionEncoder()
        action = encoder.order_action([build_intent(fields)])
        assert encoder.encode(action, self.NONCE) == ActionEncoder().encode(
            ActionEncoder().order_action([build_intent(fields)]), self.NONCE
        )


class TestDecimalProperties:

    @settings(max_examples=100)
    @given(value=st.decimals(min_value=Decimal("0.00000001"), max_value=Decimal("1000000000"),
                             places=8, allow_nan=False, allow_infinity=False))
    def test_to_wire_is_idempotent(self, value):
        assume(value > 0)
        gateway = DecimalGateway()
        wire = gateway.to_wire(value)
        assert gateway.to_wire(wire) == wire
        assert Decimal(wire) == value
        assert "E" not in wire and "e" not in wire
        assert not (("." in wire) and wire.endswith("0"))


# =============================================================================
# Nonces
# =============================================================================

class TestNonceProperties:

    @settings(max_examples=100)
    @given(readings=st.lists(st.integers(min_value=0, max_value=2 ** 48), min_size=1, max_size=50))
    def test_strictly_increasing_for_any_clock(self, readings):
        remaining = list(readings)
        source = NonceSource(clock=lambda: remaining.pop(0))

        issued = [source.next_nonce() for _ in readings]

        assert all(b > a for a, b in zip(issued, issued[1:]))
        assert all(n >= r for n, r in zip(issued, readings))
