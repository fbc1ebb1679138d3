"""
Reusable builder for histogram bin layouts.

The bins of a histogram are described by the boundaries between them.
Initially the builder holds a single boundary, which splits the number line
into the underflow and the overflow bin:
::
              min_bin_boundary == max_bin_boundary
                              |
    -MAX <--------------------|--------------------> +MAX
         :     underflow      :      overflow      :

Each further boundary, added in increasing order with ``add_bin_boundary``,
``add_linear_bins`` or ``add_exponential_bins``, appends one central bin:
::
         min_bin_boundary                    max_bin_boundary
              |        |        |      |        |
    -MAX <----|--------|--------|------|--------|----> +MAX
         : un-  : central: central: ... : central: over- :
         : der  :  bin 0 :  bin 1 :     : bin N-1: flow  :

A builder can produce any number of histograms; histograms built from the
same boundaries share the same layout and can be merged bin for bin.
"""

from __future__ import annotations

import math
import sys
from typing import Optional

import numpy as np
from loguru import logger

from numhist.exceptions import BinLayoutError
from numhist.histogram.bin import HistogramBin
from numhist.histogram.histogram import Histogram
from numhist.objects.range import Range
from numhist.units import Unit

__all__ = ["FLOAT_MAX", "HistogramBuilder"]

FLOAT_MAX = sys.float_info.max


class HistogramBuilder:
    """
    :param unit: Unit of the resulting histograms.
    :param min_bin_boundary: The boundary between the underflow bin and the
        first central bin (or the overflow bin if no boundary is added later).
    :raises TypeError: If unit is not a Unit.
    """

    def __init__(self, unit: Unit, min_bin_boundary: float):
        if not isinstance(unit, Unit):
            raise TypeError(
                f"Expected provided unit to be an instance of Unit, got {type(unit)}"
            )

        self.unit = unit
        self._boundaries: list[float] = [min_bin_boundary]

    @property
    def min_bin_boundary(self) -> float:
        return self._boundaries[0]

    @property
    def max_bin_boundary(self) -> float:
        return self._boundaries[-1]

    @property
    def boundaries(self) -> tuple[float, ...]:
        return tuple(self._boundaries)

    def add_bin_boundary(self, next_max_bin_boundary: float) -> HistogramBuilder:
        """
        Append a central bin ``[max_bin_boundary, next_max_bin_boundary]``.

        :raises BinLayoutError: If the boundary is not greater than the current
            max boundary.
        """
        if not next_max_bin_boundary > self.max_bin_boundary:
            raise BinLayoutError(
                "The added max bin boundary must be larger than the current max "
                f"boundary {self.max_bin_boundary}, got {next_max_bin_boundary}"
            )

        self._boundaries.append(next_max_bin_boundary)

        return self

    def add_linear_bins(
        self, next_max_bin_boundary: float, bin_count: int
    ) -> HistogramBuilder:
        """
        Append ``bin_count`` central bins of constant width
        ``W = (next_max_bin_boundary - max_bin_boundary) / bin_count``.
        The last boundary is exactly ``next_max_bin_boundary``.

        :raises BinLayoutError: If bin_count is not positive or the boundary is
            not greater than the current max boundary.
        """
        if bin_count <= 0:
            raise BinLayoutError(f"Bin count must be positive, got {bin_count}")

        current_max = self.max_bin_boundary
        if not next_max_bin_boundary > current_max:
            raise BinLayoutError(
                "The new max bin boundary must be greater than the previous max "
                f"bin boundary {current_max}, got {next_max_bin_boundary}"
            )

        bin_width = (next_max_bin_boundary - current_max) / bin_count

        return self._extend_boundaries(
            [current_max + index * bin_width for index in range(1, bin_count)]
            + [next_max_bin_boundary]
        )

    def add_exponential_bins(
        self, next_max_bin_boundary: float, bin_count: int
    ) -> HistogramBuilder:
        """
        Append ``bin_count`` central bins whose boundaries have a constant
        difference of logarithms
        ``D = ln(next_max_bin_boundary / max_bin_boundary) / bin_count``.
        The last boundary is exactly ``next_max_bin_boundary``.
        Requires the current max boundary to be positive.

        :raises BinLayoutError: If bin_count is not positive, the current max
            boundary is not positive, or the boundary is not greater than it.
        """
        if bin_count <= 0:
            raise BinLayoutError(f"Bin count must be positive, got {bin_count}")

        current_max = self.max_bin_boundary
        if current_max <= 0:
            raise BinLayoutError(
                f"Current max bin boundary must be positive, got {current_max}"
            )
        if not next_max_bin_boundary > current_max:
            raise BinLayoutError(
                "The new max bin boundary must be greater than the previous max "
                f"bin boundary {current_max}, got {next_max_bin_boundary}"
            )

        bin_exponent_width = math.log(next_max_bin_boundary / current_max) / bin_count

        return self._extend_boundaries(
            [
                current_max * math.exp(index * bin_exponent_width)
                for index in range(1, bin_count)
            ]
            + [next_max_bin_boundary]
        )

    def _extend_boundaries(self, boundaries: list[float]) -> HistogramBuilder:
        # validate every boundary before appending any of them
        previous = self.max_bin_boundary
        for boundary in boundaries:
            if not boundary > previous:
                raise BinLayoutError(
                    f"Bin boundaries must be strictly increasing, got {boundary} "
                    f"after {previous}"
                )
            previous = boundary

        self._boundaries.extend(boundaries)

        return self

    def build(self, rng: Optional[np.random.Generator] = None) -> Histogram:
        """
        Create a new, empty histogram with the builder's layout. The builder
        is left unchanged and can be used again.

        :param rng: Generator for the histogram's reservoir sampling.
        """
        central_bins = [
            HistogramBin(Range.from_explicit_range(lower, upper))
            for lower, upper in zip(self._boundaries[:-1], self._boundaries[1:])
        ]
        logger.debug(
            "Building {} histogram with {} central bins over [{}, {}]",
            self.unit.name,
            len(central_bins),
            self.min_bin_boundary,
            self.max_bin_boundary,
        )

        return Histogram(
            self.unit,
            Range.from_explicit_range(self.min_bin_boundary, self.max_bin_boundary),
            underflow_bin=HistogramBin(
                Range.from_explicit_range(-FLOAT_MAX, self.min_bin_boundary)
            ),
            central_bins=central_bins,
            overflow_bin=HistogramBin(
                Range.from_explicit_range(self.max_bin_boundary, FLOAT_MAX)
            ),
            rng=rng,
        )

    @staticmethod
    def create_linear(unit: Unit, bin_range: Range, num_bins: int) -> HistogramBuilder:
        """
        :return: A builder with ``num_bins`` linear bins spanning ``bin_range``.
        :raises BinLayoutError: If the range is empty.
        """
        if bin_range.empty:
            raise BinLayoutError("Range must be non-empty")

        return HistogramBuilder(unit, bin_range.min).add_linear_bins(
            bin_range.max, num_bins
        )

    @staticmethod
    def create_exponential(
        unit: Unit, bin_range: Range, num_bins: int
    ) -> HistogramBuilder:
        """
        :return: A builder with ``num_bins`` exponential bins spanning
            ``bin_range``.
        :raises BinLayoutError: If the range is empty.
        """
        if bin_range.empty:
            raise BinLayoutError("Range must be non-empty")

        return HistogramBuilder(unit, bin_range.min).add_exponential_bins(
            bin_range.max, num_bins
        )
