from dataclasses import replace
from unittest import TestCase

from .crypto import CURVE_ORDER, Field, Point
from .schnorr import (
    KeyPair,
    Signature,
    is_valid_key,
    is_well_formed,
    sign,
    verify,
    verify_coordinates,
)


class TestSchnorr(TestCase):
    def setUp(self):
        self.alice = KeyPair.from_secret(42)
        self.bob = KeyPair.from_secret(43)
        self.message = Field(1000)

    def test_sign_verify(self):
        sig = self.alice.sign(self.message)
        assert verify(self.alice.pk, self.message, sig)

    def test_signing_is_deterministic(self):
        assert sign(self.alice.sk, self.message) == sign(self.alice.sk, self.message)

    def test_reference_keys(self):
        for sk in [1234567, 7654321, 666]:
            kp = KeyPair.from_secret(sk)
            assert is_valid_key(kp.pk)
            assert verify(kp.pk, Field(42), kp.sign(Field(42)))

    def test_signing_without_the_public_key(self):
        assert sign(self.alice.sk, self.message) == self.alice.sign(self.message)

    def test_wrong_message(self):
        sig = self.alice.sign(self.message)
        assert not verify(self.alice.pk, Field(1001), sig)

    def test_wrong_key(self):
        sig = self.alice.sign(self.message)
        assert not verify(self.bob.pk, self.message, sig)

    def test_tampered_s(self):
        sig = self.alice.sign(self.message)
        assert not verify(self.alice.pk, self.message, replace(sig, s=(sig.s + 1) % CURVE_ORDER))

    def test_generated_keys(self):
        kp = KeyPair.generate()
        assert is_valid_key(kp.pk)
        assert verify(kp.pk, self.message, kp.sign(self.message))

    def test_structure(self):
        sig = self.alice.sign(self.message)
        assert is_well_formed(sig)
        assert not is_well_formed(replace(sig, s=CURVE_ORDER))
        assert not is_well_formed(replace(sig, s=-1))
        assert not is_well_formed(replace(sig, r=Point.zero()))
        assert not is_well_formed((sig.r, sig.s))
        assert not is_valid_key(Point.zero())

    def test_limbs_round_trip_through_coordinates(self):
        sig = self.alice.sign(self.message)
        s_lo, s_hi = sig.limbs()
        assert (s_hi.v << 128) + s_lo.v == sig.s

        pk = self.alice.pk
        assert verify_coordinates(sig.r.x, sig.r.y, s_lo, s_hi, pk.x, pk.y, self.message)
        assert not verify_coordinates(
            sig.r.x, sig.r.y, s_lo, s_hi, pk.x, pk.y, self.message + Field(1)
        )
        # off curve R
        assert not verify_coordinates(
            sig.r.x, sig.r.y + Field(1), s_lo, s_hi, pk.x, pk.y, self.message
        )

    def test_oversized_limb_is_rejected(self):
        sig = self.alice.sign(self.message)
        s_lo, s_hi = sig.limbs()
        pk = self.alice.pk
        # s_lo + 2**128 with s_hi - 1 encodes the same s, but s_lo is out of range
        if s_hi.v > 0:
            assert not verify_coordinates(
                sig.r.x,
                sig.r.y,
                Field(s_lo.v + 2**128),
                Field(s_hi.v - 1),
                pk.x,
                pk.y,
                self.message,
            )

    def test_signature_is_a_record(self):
        sig = self.alice.sign(self.message)
        assert isinstance(sig, Signature)
        assert isinstance(sig.r, Point)
