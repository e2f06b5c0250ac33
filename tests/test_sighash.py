# Copyright (C) 2018-2025 The psbt-utils developers
#
# This file is part of psbt-utils
#
# It is subject to the license terms in the LICENSE file found in the top-level
# directory of this distribution.
#
# No part of psbt-utils, including this file, may be copied, modified,
# propagated, or distributed except according to the terms contained in the
# LICENSE file.

import unittest

from psbtutils.psbt import PSBTInput
from psbtutils.sighash import sighash_label, sighash_of

from tests.psbt_test_helpers import PUBKEY_A, PUBKEY_B, SCHNORR_SIG, fake_sig


class TestSighashLabel(unittest.TestCase):
    def test_base_types(self):
        self.assertEqual(sighash_label(0x01), "SIGHASH_ALL")
        self.assertEqual(sighash_label(0x02), "SIGHASH_NONE")
        self.assertEqual(sighash_label(0x03), "SIGHASH_SINGLE")

    def test_anyonecanpay(self):
        self.assertEqual(sighash_label(0x81), "SIGHASH_ALL|ANYONECANPAY")
        self.assertEqual(sighash_label(0x82), "SIGHASH_NONE|ANYONECANPAY")
        self.assertEqual(sighash_label(0x83), "SIGHASH_SINGLE|ANYONECANPAY")

    def test_unknown(self):
        self.assertEqual(sighash_label(0x00), "SIGHASH_UNKNOWN(0)")
        self.assertEqual(sighash_label(0x05), "SIGHASH_UNKNOWN(5)")
        # ANYONECANPAY is not appended to unknown base types
        self.assertEqual(sighash_label(0x84), "SIGHASH_UNKNOWN(84)")

    def test_high_bits_are_ignored_for_known_types(self):
        self.assertEqual(sighash_label(0x41), "SIGHASH_ALL")
        self.assertEqual(sighash_label(0xC1), "SIGHASH_ALL|ANYONECANPAY")


class TestSighashOf(unittest.TestCase):
    def setUp(self):
        self.psbt_input = PSBTInput()

    def test_nothing_known(self):
        self.assertIsNone(sighash_of(self.psbt_input))

    def test_from_partial_signature(self):
        self.psbt_input.partial_sigs[PUBKEY_A] = fake_sig(0xAA, 0x83)
        self.psbt_input.sighash_type = 0x01
        self.assertEqual(sighash_of(self.psbt_input), "SIGHASH_SINGLE|ANYONECANPAY")

    def test_empty_signature_is_skipped(self):
        self.psbt_input.partial_sigs[PUBKEY_A] = b""
        self.psbt_input.partial_sigs[PUBKEY_B] = fake_sig(0xBB, 0x02)
        self.assertEqual(sighash_of(self.psbt_input), "SIGHASH_NONE")

    def test_taproot_key_signature(self):
        self.psbt_input.tap_key_sig = SCHNORR_SIG
        self.assertEqual(sighash_of(self.psbt_input), "SIGHASH_DEFAULT")
        self.psbt_input.tap_key_sig = SCHNORR_SIG + b"\x81"
        self.assertEqual(sighash_of(self.psbt_input), "SIGHASH_ALL|ANYONECANPAY")

    def test_partial_signature_before_taproot(self):
        self.psbt_input.tap_key_sig = SCHNORR_SIG
        self.psbt_input.partial_sigs[PUBKEY_A] = fake_sig(0xAA, 0x02)
        self.assertEqual(sighash_of(self.psbt_input), "SIGHASH_NONE")

    def test_sighash_type_field(self):
        self.psbt_input.sighash_type = 0x03
        self.assertEqual(sighash_of(self.psbt_input), "SIGHASH_SINGLE")


if __name__ == "__main__":
    unittest.main()
