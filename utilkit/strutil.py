from __future__ import annotations

import re
from typing import Optional, Set
from urllib.parse import SplitResult, quote_plus, unquote_plus, urlsplit

# Characters RFC 3986 never allows unescaped, plus whitespace and controls
_ILLEGAL_URI_CHARS = re.compile(r'[\s<>"{}|\\^`\x00-\x1f\x7f]')
_BAD_PERCENT = re.compile(r"%(?![0-9A-Fa-f]{2})")


def ensure_suffix(value: str, suffix: str, ignore_case: bool = False) -> str:
    """Return ``value`` ending with ``suffix``, appending it only when missing."""
    if ignore_case:
        has = value.lower().endswith(suffix.lower())
    else:
        has = value.endswith(suffix)
    return value if has else value + suffix


def cut_last_words(value: str, max_length: int, ellipsis: str = "...") -> str:
    """Shorten ``value`` to at most ``max_length`` characters, cutting on spaces.

    Whole trailing words are dropped while a space is available; a word longer
    than the limit is cut character by character. When anything was removed,
    ``ellipsis`` is appended, so the result may be ``max_length + len(ellipsis)``
    long. Strings already short enough are returned unchanged.
    """
    if max_length < 0:
        raise ValueError("max_length must not be negative")
    result = value
    while len(result) > max_length:
        cut = result.rfind(" ")
        result = result[:cut] if cut >= 0 else result[:-1]
    if result != value:
        result += ellipsis
    return result


def uri_encode(value: str) -> str:
    """Percent-encode ``value`` as UTF-8 for use inside a URI.

    Letters, digits and ``.-*_`` are kept; a space becomes ``%20``.
    """
    return quote_plus(value, safe="*", encoding="utf-8").replace("+", "%20").replace("~", "%7E")


def uri_decode(value: str) -> str:
    """Reverse :func:`uri_encode`. A ``+`` also decodes to a space.

    Raises:
        ValueError: If ``value`` holds a malformed ``%`` escape.
    """
    m = _BAD_PERCENT.search(value)
    if m:
        raise ValueError(f"Malformed escape pair at index {m.start()}: {value!r}")
    return unquote_plus(value, encoding="utf-8", errors="strict")


def to_set(value: str, separator: str) -> Set[str]:
    """Split on ``separator`` into a set of stripped, non-blank items.

        "a,b,c" -> {"a", "b", "c"}
        "a,,c," -> {"a", "c"}
    """
    return {part.strip() for part in value.split(separator) if part.strip()}


def to_uri(value: str) -> SplitResult:
    """Parse ``value`` as a URI reference.

    Raises:
        ValueError: If ``value`` contains characters not allowed in a URI or
            has a malformed authority.
    """
    m = _ILLEGAL_URI_CHARS.search(value)
    if m:
        raise ValueError(f"Illegal character in URI at index {m.start()}: {value!r}")
    m = _BAD_PERCENT.search(value)
    if m:
        raise ValueError(f"Malformed escape pair in URI at index {m.start()}: {value!r}")
    parts = urlsplit(value)
    parts.port  # raises ValueError on a non-numeric or out-of-range port
    return parts


def to_uri_or_none(value: str) -> Optional[SplitResult]:
    try:
        return to_uri(value)
    except ValueError:
        return None


def file_name_without_extension(name: str) -> str:
    """Drop everything from the last ``.`` on: ``"a.tar.gz"`` -> ``"a.tar"``."""
    idx = name.rfind(".")
    return name if idx < 0 else name[:idx]


def file_extension(name: str) -> str:
    """Extension after the last ``.``, or ``""`` when absent or 5+ characters long."""
    idx = name.rfind(".")
    if idx < 0:
        return ""
    ext = name[idx + 1:]
    return ext if len(ext) < 5 else ""
