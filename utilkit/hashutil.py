from __future__ import annotations

import hashlib
import os
from typing import BinaryIO, Callable, Optional, Union

from .constants import BUFFER_SIZE
from .errors import ConfigurationError


def _new_digest(algorithm: str):
    # Accept Java-style names ("SHA-256", "MD5") as well as hashlib ones
    name = algorithm.replace("-", "").replace("_", "").lower()
    if name.startswith("sha3") and not name.startswith("sha3_"):
        name = "sha3_" + name[4:]
    try:
        return hashlib.new(name)
    except ValueError as exc:
        raise ConfigurationError(f"unsupported digest algorithm: {algorithm}") from exc


def calculate_hash(data: bytes, algorithm: str) -> str:
    """Upper-case hex digest of ``data``."""
    digest = _new_digest(algorithm)
    digest.update(data)
    return digest.hexdigest().upper()


def calculate_stream_hash(stream: BinaryIO, algorithm: str, buffer_size: int = BUFFER_SIZE) -> str:
    """Upper-case hex digest of everything left in ``stream``.

    The stream is read to the end but not closed.
    """
    digest = _new_digest(algorithm)
    while True:
        block = stream.read(buffer_size)
        if not block:
            break
        digest.update(block)
    return digest.hexdigest().upper()


def calculate_file_hash(path: Union[str, os.PathLike], algorithm: str) -> str:
    with open(path, "rb") as fh:
        return calculate_stream_hash(fh, algorithm)


def copy_to(
    source: BinaryIO,
    output: BinaryIO,
    buffer_size: int = BUFFER_SIZE,
    reporter: Optional[Callable[[int], None]] = None,
) -> int:
    """Copy ``source`` into ``output`` in chunks of ``buffer_size``.

    Args:
        source: Readable binary stream.
        output: Writable binary stream.
        buffer_size: Chunk size, at least 1.
        reporter: Called with the running total of copied bytes after each chunk.

    Returns:
        Number of bytes copied.
    """
    if buffer_size < 1:
        raise ValueError("Buffer size must be bigger than 0")
    count = 0
    while True:
        block = source.read(buffer_size)
        if not block:
            break
        output.write(block)
        count += len(block)
        if reporter is not None:
            reporter(count)
    return count
