"""
Shared contract for scalars and histograms.

Every numeric carries a :class:`~numhist.units.Unit`, can contribute its raw
sample values to a reconstruction, and serializes into a dictionary tagged by
``type``. Concrete classes register themselves on :class:`NumericBase` under
that tag so :meth:`NumericBase.from_dict` can route a payload to the right
decoder.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from enum import IntEnum
from typing import TYPE_CHECKING, Any

from loguru import logger

from numhist.exceptions import IncompatibleUnitsError
from numhist.units import Unit
from numhist.utils.registry import RegistryMixin

if TYPE_CHECKING:
    from numhist.histogram.histogram import Histogram

__all__ = ["NumericBase", "Significance"]


class Significance(IntEnum):
    """
    Outcome of comparing two histograms for a statistically significant
    difference.
    """

    DONT_CARE = -1
    INSIGNIFICANT = 0
    SIGNIFICANT = 1


class NumericBase(ABC, RegistryMixin["type[NumericBase]"]):
    """
    Abstract base for every numeric value type.

    :param unit: The unit the values are measured in.
    :raises TypeError: If unit is not a Unit instance.
    """

    def __init__(self, unit: Unit):
        if not isinstance(unit, Unit):
            raise TypeError(
                f"Expected provided unit to be an instance of Unit, got {type(unit)}"
            )

        self.unit = unit

    def merge(self, other: NumericBase) -> Histogram:
        """
        Combine two numerics into a new histogram, leaving both unchanged.

        Histograms with identical bin layouts are combined bin for bin.
        Any other pairing is rebuilt from the sample values each side retains.

        :param other: The numeric to merge with.
        :return: A new histogram describing both inputs.
        :raises IncompatibleUnitsError: If the units differ.
        """
        from numhist.histogram.histogram import Histogram

        if self.unit is not other.unit:
            raise IncompatibleUnitsError(
                f"Merging numerics with different units: {self.unit.name} "
                f"and {other.unit.name}"
            )

        if (
            isinstance(self, Histogram)
            and isinstance(other, Histogram)
            and self.can_add_histogram(other)
        ):
            logger.debug("Merging histograms bin for bin with {}", self.unit.name)
            result = self.clone()
            result.add_histogram(other)
            return result

        logger.debug(
            "Rebuilding {} and {} from their sample values",
            type(self).__name__,
            type(other).__name__,
        )
        samples: list[Any] = []
        self.sample_values_into(samples)
        other.sample_values_into(samples)

        return Histogram.build_from_samples(self.unit, samples)

    @abstractmethod
    def sample_values_into(self, samples: list[Any]) -> None:
        """
        Append the raw sample values this numeric retains to ``samples``.
        """
        ...

    @abstractmethod
    def to_dict(self) -> dict[str, Any]:
        """
        :return: The serialized form, including ``unit`` and ``type``.
        """
        ...

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @staticmethod
    def from_dict(data: dict[str, Any]) -> NumericBase:
        """
        Decode a payload produced by ``to_dict`` of any registered numeric.

        :param data: The serialized numeric.
        :return: A Scalar or Histogram depending on ``data["type"]``.
        :raises ValueError: If data is not a mapping or its type is not registered.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected a serialized numeric object, got {type(data)}")

        numeric_type = data.get("type")

        if not NumericBase.is_registered(numeric_type):
            raise ValueError(f"Unrecognized numeric type: {numeric_type!r}")

        return NumericBase.get_registered_object(numeric_type).from_dict(data)

    @staticmethod
    def from_json(text: str) -> NumericBase:
        return NumericBase.from_dict(json.loads(text))
