from __future__ import annotations

from typing import Union

_KI = ("", "k", "M", "G", "T", "P")


def to_ki(value: Union[int, float], suffix: str = "B", digits_after_comma: int = 2) -> str:
    """Format ``value`` with a binary prefix, e.g. ``2048`` -> ``"2.00kB"``."""
    index = 0
    value = float(value)
    while value > 1024 and index + 1 < len(_KI):
        value /= 1024
        index += 1
    return f"{value:.{digits_after_comma}f}{_KI[index]}{suffix}"
