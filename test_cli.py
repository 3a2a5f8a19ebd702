from __future__ import annotations

import contextlib
import io
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from utilkit.cli import main
from utilkit.crypt import _HAS_CRYPTODOME

ITER = "1000"


class CLITests(unittest.TestCase):
    def run_cli(self, args, *, expect: int | None = None):
        out, err = io.StringIO(), io.StringIO()
        code = 0
        with contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
            try:
                main(list(args))
            except SystemExit as e:
                code = e.code
        if expect is not None and code != expect:
            raise AssertionError(
                f"CLI exited {code}, expected {expect}\nArgs: {args}\nSTDOUT:\n{out.getvalue()}\nSTDERR:\n{err.getvalue()}"
            )
        return code, out.getvalue(), err.getvalue()

    @unittest.skipUnless(_HAS_CRYPTODOME, "PyCryptodomex required")
    def test_encrypt_decrypt_roundtrip(self):
        _, out, _ = self.run_cli(["encrypt", "hello world", "--password", "pw", "--iterations", ITER], expect=0)
        envelope = out.strip()
        self.assertEqual(envelope.count(":"), 1)
        _, out, _ = self.run_cli(["decrypt", envelope, "--password", "pw", "--iterations", ITER], expect=0)
        self.assertEqual(out.strip(), "hello world")

    @unittest.skipUnless(_HAS_CRYPTODOME, "PyCryptodomex required")
    def test_salt_and_key_length_options(self):
        opts = ["--password", "pw", "--iterations", ITER, "--salt", "pepper", "--key-length", "256"]
        _, out, _ = self.run_cli(["encrypt", "salted"] + opts, expect=0)
        envelope = out.strip()
        _, out, _ = self.run_cli(["decrypt", envelope] + opts, expect=0)
        self.assertEqual(out.strip(), "salted")
        _, _, err = self.run_cli(["decrypt", envelope, "--password", "pw", "--iterations", ITER], expect=2)
        self.assertIn("Decryption failed", err)

    @unittest.skipUnless(_HAS_CRYPTODOME, "PyCryptodomex required")
    def test_password_prompt(self):
        with mock.patch("utilkit.cli._getpass.getpass", return_value="prompted"):
            _, out, _ = self.run_cli(["encrypt", "msg", "--iterations", ITER], expect=0)
            envelope = out.strip()
            _, out, _ = self.run_cli(["decrypt", envelope, "--iterations", ITER], expect=0)
        self.assertEqual(out.strip(), "msg")

    @unittest.skipUnless(_HAS_CRYPTODOME, "PyCryptodomex required")
    def test_error_messages_are_distinct(self):
        _, out, _ = self.run_cli(["encrypt", "secret text here", "--password", "right", "--iterations", ITER], expect=0)
        _, _, err_wrong = self.run_cli(["decrypt", out.strip(), "--password", "wrong", "--iterations", ITER], expect=2)
        _, _, err_corrupt = self.run_cli(["decrypt", "no-delimiter", "--password", "right", "--iterations", ITER], expect=2)
        self.assertIn("Decryption failed", err_wrong)
        self.assertIn("not a valid encrypted message", err_corrupt)

    def test_hash(self):
        with tempfile.TemporaryDirectory() as tmp:
            p = Path(tmp) / "abc.txt"
            p.write_bytes(b"abc")
            _, out, _ = self.run_cli(["hash", str(p)], expect=0)
            self.assertTrue(out.startswith("BA7816BF8F01CFEA414140DE5DAE2223B00361A396177A9CB410FF61F20015AD"))
            _, out, _ = self.run_cli(["hash", str(p), "-a", "MD5"], expect=0)
            self.assertTrue(out.startswith("900150983CD24FB0D6963F7D28E17F72"))
            _, _, err = self.run_cli(["hash", str(p), "-a", "bogus"], expect=2)
            self.assertIn("Unsupported configuration", err)
            _, _, err = self.run_cli(["hash", str(Path(tmp) / "missing")], expect=2)
            self.assertIn("Error:", err)


if __name__ == "__main__":
    unittest.main()
