from __future__ import annotations

import base64
import hashlib
import unittest

from utilkit import crypt
from utilkit.constants import DEFAULT_SALT
from utilkit.crypt import (
    _HAS_CRYPTODOME,
    CryptConfig,
    create_secret_key,
    decrypt,
    decrypt_with_key,
    encrypt,
    encrypt_with_key,
    is_password_for_encryption_set,
    set_password_for_encryption,
    set_salt_for_encryption,
)
from utilkit.errors import ConfigurationError, DecryptionError, FormatError

# Keep key derivation cheap; the default count is exercised once below
ITER = 1000


@unittest.skipUnless(_HAS_CRYPTODOME, "PyCryptodomex required")
class EncryptDecryptTests(unittest.TestCase):
    def test_roundtrip(self):
        for message in ["hello world", "", "a" * 1000, "Příliš žluťoučký kůň 🐎", "colon:inside:message"]:
            for password in ["secret123", "", "pässwörd"]:
                envelope = encrypt(message, password, ITER)
                self.assertEqual(decrypt(envelope, password, ITER), message)

    def test_same_message_gives_different_envelopes(self):
        a = encrypt("hello world", "secret123", ITER)
        b = encrypt("hello world", "secret123", ITER)
        self.assertNotEqual(a, b)
        self.assertNotEqual(a.split(":")[0], b.split(":")[0])
        self.assertEqual(decrypt(a, "secret123", ITER), "hello world")
        self.assertEqual(decrypt(b, "secret123", ITER), "hello world")

    def test_envelope_shape(self):
        envelope = encrypt("hello world", "secret123", ITER)
        iv_b64, data_b64 = envelope.split(":")
        self.assertEqual(len(base64.b64decode(iv_b64)), 16)
        data = base64.b64decode(data_b64)
        self.assertEqual(len(data), 16)  # 11 bytes padded to one block

    def test_wrong_password_raises(self):
        envelope = encrypt("hello world, this is a longer message", "p1", ITER)
        with self.assertRaises(DecryptionError):
            decrypt(envelope, "p2", ITER)

    def test_wrong_iterations_or_key_length_raises(self):
        envelope = encrypt("some message text", "pw", ITER)
        with self.assertRaises(DecryptionError):
            decrypt(envelope, "pw", ITER + 1)
        with self.assertRaises(DecryptionError):
            decrypt(envelope, "pw", ITER, 256)

    def test_corrupted_ciphertext_raises(self):
        envelope = encrypt("some message text", "pw", ITER)
        iv_b64, data_b64 = envelope.split(":")
        data = bytearray(base64.b64decode(data_b64))
        data[-1] ^= 0xFF
        tampered = iv_b64 + ":" + base64.b64encode(bytes(data)).decode("ascii")
        with self.assertRaises(DecryptionError):
            decrypt(tampered, "pw", ITER)

    def test_malformed_envelope_raises_format_error(self):
        good = encrypt("x", "pw", ITER)
        iv_b64, data_b64 = good.split(":")
        bad_inputs = [
            "not-a-valid-envelope-no-colon",
            good + ":extra",
            "",
            "!!!:" + data_b64,
            iv_b64 + ":not base64",
            base64.b64encode(b"short").decode() + ":" + data_b64,
            iv_b64 + ":" + base64.b64encode(b"abc").decode(),
            iv_b64 + ":",
        ]
        for envelope in bad_inputs:
            with self.assertRaises(FormatError, msg=envelope):
                decrypt(envelope, "pw", ITER)

    def test_format_error_is_not_decryption_error(self):
        self.assertFalse(issubclass(FormatError, DecryptionError))
        self.assertFalse(issubclass(DecryptionError, FormatError))
        self.assertTrue(issubclass(FormatError, ValueError))

    def test_wire_format_interop(self):
        from Cryptodome.Cipher import AES
        from Cryptodome.Util.Padding import pad

        key = create_secret_key("pw", ITER)
        iv = bytes(range(16))
        ct = AES.new(key.key, AES.MODE_CBC, iv=iv).encrypt(pad("interop ✓".encode("utf-8"), 16))
        envelope = base64.b64encode(iv).decode() + ":" + base64.b64encode(ct).decode()
        self.assertEqual(decrypt_with_key(envelope, key), "interop ✓")
        self.assertEqual(decrypt(envelope, "pw", ITER), "interop ✓")

    def test_encrypt_with_key_roundtrip(self):
        key = create_secret_key("pw", ITER, 256)
        envelope = encrypt_with_key("payload", key)
        self.assertEqual(decrypt_with_key(envelope, key), "payload")

    def test_hello_world_scenario_with_defaults(self):
        envelope = encrypt("hello world", "secret123")
        iv_b64, _ = envelope.split(":")
        self.assertEqual(len(base64.b64decode(iv_b64)), 16)
        self.assertEqual(decrypt(envelope, "secret123"), "hello world")
        with self.assertRaises(DecryptionError):
            decrypt(envelope, "wrong")


@unittest.skipUnless(_HAS_CRYPTODOME, "PyCryptodomex required")
class SecretKeyTests(unittest.TestCase):
    def test_matches_hashlib_pbkdf2(self):
        key = create_secret_key("password", ITER, 128, salt="salt")
        expected = hashlib.pbkdf2_hmac("sha512", b"password", b"salt", ITER, 16)
        self.assertEqual(key.key, expected)
        self.assertEqual(key.algorithm, "AES")

    def test_default_salt_is_used(self):
        key = create_secret_key("pässword", ITER, config=CryptConfig())
        expected = hashlib.pbkdf2_hmac("sha512", "pässword".encode("utf-8"), DEFAULT_SALT.encode("utf-8"), ITER, 16)
        self.assertEqual(key.key, expected)

    def test_deterministic(self):
        a = create_secret_key("pw", ITER, 192, salt="s")
        b = create_secret_key("pw", ITER, 192, salt="s")
        self.assertEqual(a, b)
        self.assertEqual(len(a.key), 24)

    def test_each_argument_changes_key(self):
        base = create_secret_key("pw", ITER, 128, salt="s").key
        self.assertNotEqual(base, create_secret_key("pw2", ITER, 128, salt="s").key)
        self.assertNotEqual(base, create_secret_key("pw", ITER + 1, 128, salt="s").key)
        self.assertNotEqual(base, create_secret_key("pw", ITER, 128, salt="s2").key)
        self.assertNotEqual(base, create_secret_key("pw", ITER, 256, salt="s").key)

    def test_char_sequence_password(self):
        self.assertEqual(
            create_secret_key(list("secret"), ITER, salt="s"),
            create_secret_key("secret", ITER, salt="s"),
        )

    def test_invalid_parameters(self):
        with self.assertRaises(ValueError):
            create_secret_key("pw", 0)
        with self.assertRaises(ConfigurationError):
            create_secret_key("pw", ITER, 100)

    def test_repr_hides_key(self):
        key = create_secret_key("pw", ITER, salt="s")
        self.assertNotIn(key.key.hex(), repr(key))
        self.assertIn("bits=128", repr(key))


@unittest.skipUnless(_HAS_CRYPTODOME, "PyCryptodomex required")
class DefaultCredentialTests(unittest.TestCase):
    def setUp(self):
        cfg = crypt.default_config()
        self._saved = cfg.snapshot()
        self.addCleanup(self._restore)

    def _restore(self):
        cfg = crypt.default_config()
        cfg.password, cfg.salt = self._saved

    def test_default_password_is_used(self):
        set_password_for_encryption("cached-secret")
        envelope = encrypt("message", iteration_count=ITER)
        self.assertEqual(decrypt(envelope, "cached-secret", ITER), "message")
        self.assertEqual(decrypt(envelope, iteration_count=ITER), "message")

    def test_explicit_password_overrides_default(self):
        set_password_for_encryption("cached-secret")
        envelope = encrypt("message", "explicit", ITER)
        with self.assertRaises(DecryptionError):
            decrypt(envelope, iteration_count=ITER)
        self.assertEqual(decrypt(envelope, "explicit", ITER), "message")

    def test_is_password_set(self):
        set_password_for_encryption("")
        self.assertFalse(is_password_for_encryption_set())
        set_password_for_encryption("   ")
        self.assertFalse(is_password_for_encryption_set())
        set_password_for_encryption("x")
        self.assertTrue(is_password_for_encryption_set())

    def test_salt_affects_all_default_derivations(self):
        envelope = encrypt("message", "pw", ITER)
        set_salt_for_encryption("another salt")
        with self.assertRaises(DecryptionError):
            decrypt(envelope, "pw", ITER)
        set_salt_for_encryption(DEFAULT_SALT)
        self.assertEqual(decrypt(envelope, "pw", ITER), "message")

    def test_explicit_config_is_isolated(self):
        tenant = CryptConfig(password="tenant-pw", salt="tenant-salt")
        set_password_for_encryption("global-pw")
        envelope = encrypt("message", iteration_count=ITER, config=tenant)
        self.assertEqual(decrypt(envelope, "tenant-pw", ITER, config=tenant), "message")
        with self.assertRaises(DecryptionError):
            decrypt(envelope, "tenant-pw", ITER)  # global salt differs
        self.assertTrue(is_password_for_encryption_set(config=tenant))
        self.assertFalse(is_password_for_encryption_set(config=CryptConfig()))


if __name__ == "__main__":
    unittest.main()
