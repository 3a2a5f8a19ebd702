import os


def _env_int(name: str):
    value = os.getenv(name)
    if not value:
        return None
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return None
    if parsed <= 0:
        return None
    return parsed


# Ciphertext envelope
DELIMITER = ":"
IV_SIZE = 16  # AES block size

# Key derivation (PBKDF2-HMAC-SHA512)
DEFAULT_SALT = "p2KiPkUUqArHHImPK5hvs4GhowWg5zalrRVn7HA8wM81cmVNOkBYD0xKYLc9udc6gXAOhX5xxdnORB1X"
DEFAULT_ITERATIONS = _env_int("UTILKIT_KDF_ITERATIONS") or 1_000_000
DEFAULT_KEY_LENGTH = 128  # bits
AES_KEY_LENGTHS = (128, 192, 256)

# Parallel processing
DEFAULT_TIMEOUT = 24 * 60 * 60.0  # one day, in seconds
CANCEL_POLL_INTERVAL = 0.05

# Streams
BUFFER_SIZE = 8192
