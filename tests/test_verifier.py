"""Unit tests for answer normalization and credential verification."""
import asyncio
import contextlib
import io
import os
import sys
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from pydantic import ValidationError

from stokvis.config import Settings
from stokvis.core.verifier import normalize, verify
from stokvis.models.credential import (
    PlainAnswer,
    ScryptHash,
    UnknownCredential,
    derive_key,
    parse_credential,
    scrypt_maxmem,
)
from stokvis.services.credentials import hash_answer
from stokvis.services.credentials import main as credentials_main


def _verify(stored, raw) -> bool:
    return asyncio.run(verify(stored, raw))


# ---------------------------------------------------------------------------
# normalize
# ---------------------------------------------------------------------------

class TestNormalize(unittest.TestCase):
    def test_trims_lowercases_and_collapses(self):
        self.assertEqual(normalize(" Deventer  Koekbier "), "deventer koekbier")

    def test_empty_and_none(self):
        self.assertEqual(normalize(""), "")
        self.assertEqual(normalize(None), "")

    def test_tabs_and_newlines_collapse(self):
        self.assertEqual(normalize("De\t\nWaag"), "de waag")


# ---------------------------------------------------------------------------
# Credential parsing
# ---------------------------------------------------------------------------

class TestParseCredential(unittest.TestCase):
    def test_plain(self):
        self.assertEqual(parse_credential("plain:de waag"), PlainAnswer("de waag"))

    def test_scrypt(self):
        cred = parse_credential("scrypt:abc:00ff")
        self.assertEqual(cred, ScryptHash(salt="abc", digest=b"\x00\xff"))

    def test_missing(self):
        self.assertIsNone(parse_credential(None))
        self.assertIsNone(parse_credential(""))
        self.assertIsNone(parse_credential("plain:"))

    def test_malformed_scrypt_is_unknown(self):
        for raw in ["scrypt:onlysalt", "scrypt:salt:nothex", "scrypt:a:b:c", "scrypt::00ff"]:
            self.assertEqual(parse_credential(raw), UnknownCredential(raw), raw)

    def test_unrecognised_tag(self):
        self.assertEqual(parse_credential("sha1:xyz"), UnknownCredential("sha1:xyz"))


# ---------------------------------------------------------------------------
# verify
# ---------------------------------------------------------------------------

class TestVerifyPlain(unittest.TestCase):
    def test_normalized_input_matches(self):
        self.assertTrue(_verify("plain:de waag", "De   Waag"))

    def test_wrong_input(self):
        self.assertFalse(_verify("plain:de waag", "dewaag"))

    def test_stored_literal_is_not_normalized(self):
        self.assertFalse(_verify("plain:De Waag", "De Waag"))

    def test_empty_input_never_matches(self):
        self.assertFalse(_verify("plain:de waag", ""))
        self.assertFalse(_verify("plain:de waag", None))

    def test_accepts_parsed_credential(self):
        self.assertTrue(_verify(PlainAnswer("lebuinus"), " LEBUINUS"))


class TestVerifyScrypt(unittest.TestCase):
    def setUp(self):
        self.salt = "5a1t"
        self.stored = f"scrypt:{self.salt}:{derive_key('de brink', self.salt).hex()}"

    def test_correct_answer(self):
        self.assertTrue(_verify(self.stored, "  De BRINK "))

    def test_wrong_answer(self):
        self.assertFalse(_verify(self.stored, "de markt"))

    def test_wrong_salt(self):
        other = f"scrypt:other:{derive_key('de brink', self.salt).hex()}"
        self.assertFalse(_verify(other, "de brink"))

    def test_derivation_is_deterministic(self):
        self.assertEqual(derive_key("de brink", self.salt), derive_key("de brink", self.salt))
        self.assertEqual(len(derive_key("de brink", self.salt)), 32)

    def test_hash_answer_roundtrip(self):
        stored = hash_answer("Deventer  Koekbier")
        self.assertTrue(stored.startswith("scrypt:"))
        self.assertTrue(_verify(stored, "deventer koekbier"))
        self.assertFalse(_verify(stored, "koekbier"))

    def test_hash_answer_fixed_salt(self):
        self.assertEqual(hash_answer("berg", salt="s"), hash_answer("BERG", salt="s"))

    def test_hash_answer_rejects_colon_salt(self):
        with self.assertRaises(ValueError):
            hash_answer("berg", salt="a:b")

    def test_command_prints_credential(self):
        out = io.StringIO()
        with contextlib.redirect_stdout(out):
            code = credentials_main(["Deventer  Koekbier", "--salt", "s1"])
        self.assertEqual(code, 0)
        stored = out.getvalue().strip()
        self.assertEqual(stored, hash_answer("deventer koekbier", salt="s1"))
        self.assertTrue(_verify(stored, "deventer koekbier"))

    def test_command_rejects_colon_salt(self):
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit):
                credentials_main(["berg", "--salt", "a:b"])

    def test_higher_cost_parameters_derive(self):
        key = derive_key("de brink", self.salt, n=65536, r=8, p=1)
        self.assertEqual(len(key), 32)
        stored = f"scrypt:{self.salt}:{key.hex()}"
        self.assertTrue(asyncio.run(verify(stored, "De Brink", n=65536, r=8, p=1)))

    def test_maxmem_covers_work_area(self):
        for n, r, p in [(16384, 8, 1), (65536, 8, 1), (1024, 1, 4)]:
            self.assertGreaterEqual(scrypt_maxmem(n, r, p), 128 * r * (n + 2) + 128 * r * p)


class TestScryptSettings(unittest.TestCase):
    def test_rejects_non_power_of_two(self):
        with self.assertRaises(ValidationError):
            Settings(scrypt_n=1000)

    def test_accepts_power_of_two(self):
        self.assertEqual(Settings(scrypt_n=65536).scrypt_n, 65536)


class TestVerifyFallbacks(unittest.TestCase):
    def test_missing_credential(self):
        self.assertFalse(_verify(None, "anything"))
        self.assertFalse(_verify("", "anything"))
        self.assertFalse(_verify("", ""))

    def test_unknown_tag_compares_raw_value(self):
        self.assertFalse(_verify("unknown-tag:xyz", "xyz"))
        self.assertTrue(_verify("unknown-tag:xyz", "Unknown-Tag:XYZ"))

    def test_untagged_value(self):
        self.assertTrue(_verify("ijssel", "IJssel"))

    def test_malformed_scrypt_falls_back_to_equality(self):
        self.assertTrue(_verify("scrypt:broken", "scrypt:broken"))
        self.assertFalse(_verify("scrypt:broken", "broken"))


if __name__ == "__main__":
    unittest.main(verbosity=2)
