"""
Helpers for encoding numeric values into strict-JSON friendly payloads.

Strict JSON decoders reject ``NaN`` and ``Infinity`` literals, so non-finite
floats are written as the string tokens ``"NaN"``, ``"Infinity"`` and
``"-Infinity"`` and decoded back into their float values.
"""

from __future__ import annotations

import math
import numbers
from typing import Any, Union

__all__ = [
    "NON_FINITE_TOKENS",
    "EncodedFloat",
    "decode_float",
    "encode_float",
    "is_real_number",
    "to_float",
]

NON_FINITE_TOKENS: dict[str, float] = {
    "Infinity": math.inf,
    "-Infinity": -math.inf,
    "NaN": math.nan,
}

EncodedFloat = Union[float, int, str]


def is_real_number(value: Any) -> bool:
    """
    :param value: Any candidate sample value.
    :return: True for ints and floats (including numpy scalars), False for
        bools and every other type. NaN still counts as a real number here.
    """
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def to_float(value: Union[int, float]) -> float:
    """
    :param value: A real number, possibly an int beyond the float range.
    :return: The value as a float, out of range ints clamp to the infinity
        with their sign.
    """
    try:
        return float(value)
    except OverflowError:
        return math.inf if value > 0 else -math.inf


def encode_float(value: Union[int, float]) -> EncodedFloat:
    """
    :param value: The number to encode.
    :return: The number unchanged if finite, otherwise its string token.
    """
    as_float = to_float(value)
    if math.isnan(as_float):
        return "NaN"
    if as_float == math.inf:
        return "Infinity"
    if as_float == -math.inf:
        return "-Infinity"
    return value


def decode_float(value: EncodedFloat) -> Union[int, float]:
    """
    :param value: A number or one of the non-finite string tokens.
    :return: The decoded number.
    :raises ValueError: If value is a string that is not a known token.
    """
    if isinstance(value, str):
        if value not in NON_FINITE_TOKENS:
            raise ValueError(f"Unrecognized numeric token: {value!r}")
        return NON_FINITE_TOKENS[value]
    return value
