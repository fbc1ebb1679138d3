"""
Units of measurement attached to histograms and scalars.

A :class:`Unit` is a process wide singleton looked up by its token, for
example ``"ms_smallerIsBetter"``. Units compare by identity, so two numerics
share a unit only if they hold the very same object; decoding a token always
returns the registered singleton.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import ClassVar

from numhist.utils.encoding import to_float

__all__ = ["ImprovementDirection", "Unit"]


class ImprovementDirection(str, Enum):
    """
    Which way a change in value counts as an improvement.
    """

    DONT_CARE = "dont_care"
    BIGGER_IS_BETTER = "bigger_is_better"
    SMALLER_IS_BETTER = "smaller_is_better"


_DIRECTION_SUFFIXES = {
    ImprovementDirection.DONT_CARE: "",
    ImprovementDirection.BIGGER_IS_BETTER: "_biggerIsBetter",
    ImprovementDirection.SMALLER_IS_BETTER: "_smallerIsBetter",
}


class Unit:
    """
    A named unit with an improvement direction and a display format.

    :param base_name: Name of the unit without direction suffix, e.g. ``ms``.
    :param improvement_direction: Which direction counts as an improvement.
    :param symbol: Suffix appended when formatting values.
    :param precision: Number of decimals used when formatting values.
    :param scale: Multiplier applied to values before formatting.
    """

    by_name: ClassVar[dict[str, Unit]] = {}

    def __init__(
        self,
        base_name: str,
        improvement_direction: ImprovementDirection,
        symbol: str = "",
        precision: int = 3,
        scale: float = 1.0,
    ):
        self.base_name = base_name
        self.improvement_direction = ImprovementDirection(improvement_direction)
        self.symbol = symbol
        self.precision = precision
        self.scale = scale

    @property
    def name(self) -> str:
        return self.base_name + _DIRECTION_SUFFIXES[self.improvement_direction]

    def format(self, value: float) -> str:
        """
        :param value: The value to render.
        :return: A human readable string such as ``"1,234.500 ms"``.
        """
        value = to_float(value)
        if math.isnan(value) or math.isinf(value):
            text = str(value)
        else:
            text = f"{value * self.scale:,.{self.precision}f}"

        return f"{text} {self.symbol}" if self.symbol else text

    def as_token(self) -> str:
        return self.name

    @classmethod
    def from_token(cls, token: str) -> Unit:
        """
        :param token: A unit name produced by :meth:`as_token`.
        :return: The registered unit singleton.
        :raises ValueError: If no unit is registered under the token.
        """
        unit = cls.by_name.get(token)
        if unit is None:
            raise ValueError(f"Unrecognized unit token: {token!r}")
        return unit

    @classmethod
    def define(
        cls,
        base_name: str,
        symbol: str = "",
        precision: int = 3,
        scale: float = 1.0,
    ) -> Unit:
        """
        Register a unit for every improvement direction.

        :return: The DONT_CARE variant of the new unit.
        :raises ValueError: If the base name is already defined.
        """
        if base_name in cls.by_name:
            raise ValueError(f"Unit {base_name!r} is already defined")

        for direction in ImprovementDirection:
            unit = cls(base_name, direction, symbol, precision, scale)
            cls.by_name[unit.name] = unit

        return cls.by_name[base_name]

    def __repr__(self) -> str:
        return f"Unit({self.name!r})"


# (base_name, symbol, precision[, scale])
DEFAULT_UNIT_DEFINITIONS = [
    ("unitless", "", 3),
    ("count", "", 0),
    ("ms", "ms", 3),
    ("tsMs", "ms", 3),
    ("n%", "%", 1, 100.0),
    ("sizeInBytes", "B", 0),
    ("bytesPerSecond", "B/s", 0),
    ("J", "J", 3),
    ("W", "W", 3),
    ("Hz", "Hz", 3),
    ("sigma", "σ", 3),
]

for _definition in DEFAULT_UNIT_DEFINITIONS:
    Unit.define(*_definition)
