from __future__ import annotations

import sys
import argparse
import getpass as _getpass
from typing import Optional

from utilkit.constants import DEFAULT_ITERATIONS, DEFAULT_KEY_LENGTH, DEFAULT_SALT
from utilkit.crypt import CryptConfig, decrypt, encrypt
from utilkit.hashutil import calculate_file_hash
from utilkit.errors import (
    UtilkitError,
    ConfigurationError,
    DecryptionError,
    FormatError,
)


def _password_or_prompt(password: Optional[str]) -> str:
    if password is not None:
        return password
    return _getpass.getpass("Password: ")


def cmd_encrypt(
    message: str,
    *,
    password: Optional[str] = None,
    iterations: int = DEFAULT_ITERATIONS,
    key_length: int = DEFAULT_KEY_LENGTH,
    salt: Optional[str] = None,
) -> str:
    """Encrypt a message and print the envelope.

    Args:
        message: Plain text to encrypt.
        password: Password; prompted for when None.
        iterations: PBKDF2 iteration count.
        key_length: AES key length in bits.
        salt: Salt overriding the built-in one.

    Returns:
        The printed envelope.
    """
    config = CryptConfig(salt=salt if salt is not None else DEFAULT_SALT)
    envelope = encrypt(message, _password_or_prompt(password), iterations, key_length, config=config)
    print(envelope)
    return envelope


def cmd_decrypt(
    envelope: str,
    *,
    password: Optional[str] = None,
    iterations: int = DEFAULT_ITERATIONS,
    key_length: int = DEFAULT_KEY_LENGTH,
    salt: Optional[str] = None,
) -> str:
    """Decrypt an envelope and print the message."""
    config = CryptConfig(salt=salt if salt is not None else DEFAULT_SALT)
    message = decrypt(envelope, _password_or_prompt(password), iterations, key_length, config=config)
    print(message)
    return message


def cmd_hash(path: str, *, algorithm: str = "SHA-256") -> str:
    digest = calculate_file_hash(path, algorithm)
    print(f"{digest}  {path}")
    return digest


def _add_crypt_options(p: argparse.ArgumentParser) -> None:
    p.add_argument("--password", help="Password (prompted for when omitted)")
    p.add_argument(
        "--iterations",
        type=int,
        default=DEFAULT_ITERATIONS,
        help=f"PBKDF2 iterations (default {DEFAULT_ITERATIONS})",
    )
    p.add_argument(
        "--key-length",
        type=int,
        choices=[128, 192, 256],
        default=DEFAULT_KEY_LENGTH,
        help=f"AES key length in bits (default {DEFAULT_KEY_LENGTH})",
    )
    p.add_argument("--salt", help="Salt for key derivation (default: built-in salt)")


def main(argv: Optional[list[str]] = None) -> None:
    ap = argparse.ArgumentParser(prog="utilkit", description="utilkit helpers")
    sub = ap.add_subparsers(dest="cmd", required=True)

    ap_enc = sub.add_parser("encrypt", help="Encrypt a message with a password")
    ap_enc.add_argument("message", help="Message to encrypt")
    _add_crypt_options(ap_enc)

    ap_dec = sub.add_parser("decrypt", help="Decrypt an IV:CIPHERTEXT envelope")
    ap_dec.add_argument("envelope", help="Envelope produced by 'utilkit encrypt'")
    _add_crypt_options(ap_dec)

    ap_hash = sub.add_parser("hash", help="Print the digest of a file")
    ap_hash.add_argument("path", help="File path")
    ap_hash.add_argument("--algorithm", "-a", default="SHA-256", help="Digest algorithm (default SHA-256)")

    args = ap.parse_args(argv)
    try:
        if args.cmd == "encrypt":
            cmd_encrypt(
                args.message,
                password=args.password,
                iterations=args.iterations,
                key_length=args.key_length,
                salt=args.salt,
            )
        elif args.cmd == "decrypt":
            cmd_decrypt(
                args.envelope,
                password=args.password,
                iterations=args.iterations,
                key_length=args.key_length,
                salt=args.salt,
            )
        elif args.cmd == "hash":
            cmd_hash(args.path, algorithm=args.algorithm)
        else:
            raise RuntimeError("Unknown command")
    except DecryptionError:
        print("Error: Decryption failed. Check the password, salt and iteration count.", file=sys.stderr)
        sys.exit(2)
    except FormatError as e:
        print(f"Error: Input is not a valid encrypted message: {e}", file=sys.stderr)
        sys.exit(2)
    except ConfigurationError as e:
        print(f"Error: Unsupported configuration: {e}", file=sys.stderr)
        sys.exit(2)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    except (UtilkitError, OSError, ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
