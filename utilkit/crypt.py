from __future__ import annotations

"""Password-based message encryption.

Messages are encrypted with AES-CBC (PKCS#7 padding) under a key derived by
PBKDF2-HMAC-SHA512 from a password and a salt. The result is a printable
envelope ``base64(iv):base64(ciphertext)``; every call draws a fresh random
IV so encrypting the same message twice yields different envelopes.

Default credentials live in a lock-guarded :class:`CryptConfig`. The
module-level functions use a process-wide instance unless an explicit
``config`` is passed, so call sites can either rely on credentials loaded
once at startup or carry their own per tenant.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple, Union

try:  # pragma: no cover - availability depends on environment
    from Cryptodome.Cipher import AES  # type: ignore
    from Cryptodome.Hash import SHA512  # type: ignore
    from Cryptodome.Protocol.KDF import PBKDF2  # type: ignore
    from Cryptodome.Util.Padding import pad, unpad  # type: ignore
    _HAS_CRYPTODOME = True
except ImportError:  # pragma: no cover - reported at first use
    AES = SHA512 = PBKDF2 = pad = unpad = None  # type: ignore
    _HAS_CRYPTODOME = False

from .codec import base64_decode, base64_encode
from .constants import (
    AES_KEY_LENGTHS,
    DEFAULT_ITERATIONS,
    DEFAULT_KEY_LENGTH,
    DEFAULT_SALT,
    DELIMITER,
    IV_SIZE,
)
from .errors import ConfigurationError, DecryptionError, FormatError


logger = logging.getLogger(__name__)

Password = Union[str, Iterable[str]]


class CryptConfig:
    """Default password and salt shared by encrypt/decrypt calls."""

    def __init__(self, password: str = "", salt: str = DEFAULT_SALT):
        self._lock = threading.Lock()
        self._password = password
        self._salt = salt

    @property
    def password(self) -> str:
        with self._lock:
            return self._password

    @password.setter
    def password(self, value: str) -> None:
        with self._lock:
            self._password = value

    @property
    def salt(self) -> str:
        with self._lock:
            return self._salt

    @salt.setter
    def salt(self, value: str) -> None:
        with self._lock:
            self._salt = value

    def snapshot(self) -> Tuple[str, str]:
        """Return ``(password, salt)`` read under a single lock acquisition."""
        with self._lock:
            return self._password, self._salt


_DEFAULT_CONFIG = CryptConfig()


def default_config() -> CryptConfig:
    return _DEFAULT_CONFIG


@dataclass(frozen=True)
class SecretKey:
    key: bytes
    algorithm: str = "AES"

    def __repr__(self) -> str:  # no key material in reprs
        return f"SecretKey(algorithm={self.algorithm!r}, bits={len(self.key) * 8})"


def _ensure_backend() -> None:
    if not _HAS_CRYPTODOME:
        raise ConfigurationError("PyCryptodomex is required for PBKDF2-HMAC-SHA512 and AES-CBC support")


def set_password_for_encryption(password: str, *, config: Optional[CryptConfig] = None) -> None:
    """Set the default password used by :func:`encrypt` and :func:`decrypt`.

    An empty string means no default password is configured.
    """
    (config or _DEFAULT_CONFIG).password = password


def is_password_for_encryption_set(*, config: Optional[CryptConfig] = None) -> bool:
    return bool((config or _DEFAULT_CONFIG).password.strip())


def set_salt_for_encryption(salt: str, *, config: Optional[CryptConfig] = None) -> None:
    """Replace the salt used for every key derivation that does not pass its own."""
    (config or _DEFAULT_CONFIG).salt = salt


def create_secret_key(
    password: Password,
    iteration_count: int = DEFAULT_ITERATIONS,
    key_length: int = DEFAULT_KEY_LENGTH,
    *,
    salt: Optional[str] = None,
    config: Optional[CryptConfig] = None,
) -> SecretKey:
    """Derive an AES key from ``password`` with PBKDF2-HMAC-SHA512.

    Args:
        password: Password text, or a sequence of single characters.
        iteration_count: PBKDF2 iterations (>= 1).
        key_length: Key length in bits: 128, 192 or 256.
        salt: Salt text; defaults to the configured salt.
        config: Configuration to read the salt from; defaults to the process-wide one.

    Returns:
        A :class:`SecretKey` tagged for AES. Same inputs always give the same key.

    Raises:
        ValueError: If ``iteration_count`` is below 1.
        ConfigurationError: If the key length is not an AES key length or the
            crypto backend is unavailable.
    """
    _ensure_backend()
    if iteration_count < 1:
        raise ValueError("iteration_count must be at least 1")
    if key_length not in AES_KEY_LENGTHS:
        raise ConfigurationError(f"unsupported AES key length: {key_length} bits")
    if not isinstance(password, str):
        password = "".join(password)
    if salt is None:
        salt = (config or _DEFAULT_CONFIG).salt
    logger.debug("Deriving %d-bit key with %d PBKDF2 iterations", key_length, iteration_count)
    key = PBKDF2(
        password.encode("utf-8"),
        salt.encode("utf-8"),
        dkLen=key_length // 8,
        count=iteration_count,
        hmac_hash_module=SHA512,
    )
    return SecretKey(key)


def _resolve_key(
    password: Optional[str],
    iteration_count: int,
    key_length: int,
    config: Optional[CryptConfig],
) -> SecretKey:
    default_password, salt = (config or _DEFAULT_CONFIG).snapshot()
    return create_secret_key(
        default_password if password is None else password,
        iteration_count,
        key_length,
        salt=salt,
    )


def encrypt_with_key(message: str, key: SecretKey) -> str:
    """Encrypt ``message`` with an already derived ``key``."""
    _ensure_backend()
    cipher = AES.new(key.key, AES.MODE_CBC)  # random IV generated by the cipher
    ciphertext = cipher.encrypt(pad(message.encode("utf-8"), AES.block_size))
    return base64_encode(cipher.iv) + DELIMITER + base64_encode(ciphertext)


def encrypt(
    message: str,
    password: Optional[str] = None,
    iteration_count: int = DEFAULT_ITERATIONS,
    key_length: int = DEFAULT_KEY_LENGTH,
    *,
    config: Optional[CryptConfig] = None,
) -> str:
    """Encrypt ``message``; without ``password`` the configured default is used.

    Returns:
        ``base64(iv):base64(ciphertext)``
    """
    return encrypt_with_key(message, _resolve_key(password, iteration_count, key_length, config))


def _split_envelope(envelope: str) -> Tuple[bytes, bytes]:
    parts = envelope.split(DELIMITER)
    if len(parts) != 2:
        raise FormatError(
            f"ciphertext must contain exactly one '{DELIMITER}' separating IV and data, found {len(parts) - 1}"
        )
    iv_b64, data_b64 = parts
    try:
        iv = base64_decode(iv_b64)
        data = base64_decode(data_b64)
    except ValueError as exc:
        raise FormatError(f"ciphertext is not valid Base64: {exc}") from exc
    if len(iv) != IV_SIZE:
        raise FormatError(f"IV must be {IV_SIZE} bytes, got {len(iv)}")
    if not data or len(data) % IV_SIZE:
        raise FormatError(f"ciphertext length {len(data)} is not a positive multiple of {IV_SIZE}")
    return iv, data


def decrypt_with_key(envelope: str, key: SecretKey) -> str:
    """Decrypt an envelope produced by :func:`encrypt_with_key`.

    Raises:
        FormatError: If the envelope is malformed.
        DecryptionError: If the data does not decrypt under ``key``.
    """
    _ensure_backend()
    iv, data = _split_envelope(envelope)
    cipher = AES.new(key.key, AES.MODE_CBC, iv=iv)
    try:
        plaintext = unpad(cipher.decrypt(data), AES.block_size)
    except ValueError as exc:
        raise DecryptionError("decryption failed: wrong password or corrupted data") from exc
    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecryptionError("decryption failed: wrong password or corrupted data") from exc


def decrypt(
    envelope: str,
    password: Optional[str] = None,
    iteration_count: int = DEFAULT_ITERATIONS,
    key_length: int = DEFAULT_KEY_LENGTH,
    *,
    config: Optional[CryptConfig] = None,
) -> str:
    """Decrypt ``envelope``; without ``password`` the configured default is used."""
    # Reject malformed input before paying for key derivation
    _split_envelope(envelope)
    return decrypt_with_key(envelope, _resolve_key(password, iteration_count, key_length, config))


__all__ = [
    "CryptConfig",
    "SecretKey",
    "default_config",
    "set_password_for_encryption",
    "is_password_for_encryption_set",
    "set_salt_for_encryption",
    "create_secret_key",
    "encrypt",
    "encrypt_with_key",
    "decrypt",
    "decrypt_with_key",
    "_HAS_CRYPTODOME",
]
