from __future__ import annotations

import base64
import binascii
from typing import Union


def base64_encode(data: Union[bytes, bytearray, str], encoding: str = "utf-8") -> str:
    """Encode ``data`` with the standard Base64 alphabet (with padding).

    Text is encoded with ``encoding`` first.
    """
    if isinstance(data, str):
        data = data.encode(encoding)
    return base64.b64encode(bytes(data)).decode("ascii")


def base64_decode(text: Union[str, bytes]) -> bytes:
    # Strict: characters outside the alphabet raise instead of being skipped.
    # Missing trailing padding is accepted.
    missing = -len(text) % 4
    if missing:
        text = text + (b"=" if isinstance(text, bytes) else "=") * missing
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"invalid Base64 input: {exc}") from exc


def base64_decode_text(text: Union[str, bytes], encoding: str = "utf-8") -> str:
    return base64_decode(text).decode(encoding)


__all__ = [
    "base64_encode",
    "base64_decode",
    "base64_decode_text",
]
