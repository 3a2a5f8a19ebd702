"""
utilkit — small helpers for everyday Python code.

Features:

- Password-based message encryption: AES-CBC with PKCS#7 padding under a
  PBKDF2-HMAC-SHA512 key, producing printable ``base64(iv):base64(ciphertext)``
  envelopes (``utilkit.crypt``).
- Bounded parallel map/filter over a per-call worker pool with explicit
  fail-fast or collect-errors policies, timeouts and cancellation
  (``utilkit.parallel``).
- Base64, digest, duration, unit and string helpers.

A ``utilkit`` command exposes encrypt, decrypt and hash from the shell.
"""

__version__ = "0.1"

__all__ = [
    "constants",
    "errors",
    "crypt",
    "parallel",
    "codec",
    "hashutil",
    "timeutil",
    "units",
    "strutil",
]
