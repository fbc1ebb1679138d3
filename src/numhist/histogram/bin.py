from __future__ import annotations

from typing import Any, Optional

import numpy as np

from numhist.config import settings
from numhist.exceptions import IncompatibleBinsError
from numhist.histogram.serialization import BinSnapshot
from numhist.objects.diagnostics import Diagnostic
from numhist.objects.range import Range
from numhist.utils.reservoir import (
    merge_sampled_streams,
    uniformly_sample_array,
    uniformly_sample_stream,
)

__all__ = ["HistogramBin"]


class HistogramBin:
    """
    A fixed range of a histogram with the number of values that fell into it
    and a bounded, uniformly sampled set of diagnostics for those values.

    :param bin_range: The range of values the bin covers.
    :param count: Initial number of values in the bin.
    :param diagnostics: Initial diagnostics; the list is copied.
    """

    __slots__ = ("count", "diagnostics", "range")

    def __init__(
        self,
        bin_range: Range,
        count: int = 0,
        diagnostics: Optional[list[Diagnostic]] = None,
    ):
        self.range = bin_range
        self.count = count
        self.diagnostics: list[Diagnostic] = list(diagnostics or [])

    def add(
        self,
        value: float,  # noqa: ARG002
        diagnostic: Optional[Diagnostic] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        self.count += 1

        if diagnostic is not None:
            uniformly_sample_stream(
                self.diagnostics,
                self.count,
                diagnostic,
                settings.histogram.max_diagnostics,
                rng,
            )

    def combine(
        self, other: HistogramBin, rng: Optional[np.random.Generator] = None
    ) -> None:
        """
        Add the values and diagnostics of ``other`` into this bin.

        :raises IncompatibleBinsError: If the ranges differ.
        """
        if self.range != other.range:
            raise IncompatibleBinsError(
                f"Merging incompatible histogram bins {self.range} and {other.range}"
            )

        self.diagnostics = merge_sampled_streams(
            self.diagnostics,
            self.count,
            other.diagnostics,
            other.count,
            settings.histogram.max_diagnostics,
            rng,
        )
        self.count += other.count

    def to_snapshot(self) -> BinSnapshot:
        return BinSnapshot(
            min=self.range.min,
            max=self.range.max,
            count=self.count,
            diagnostics=[diagnostic.to_dict() for diagnostic in self.diagnostics],
        )

    @classmethod
    def from_snapshot(
        cls, snapshot: BinSnapshot, rng: Optional[np.random.Generator] = None
    ) -> HistogramBin:
        return cls(
            Range.from_explicit_range(snapshot.min, snapshot.max),
            count=snapshot.count,
            diagnostics=uniformly_sample_array(
                list(snapshot.diagnostics), settings.histogram.max_diagnostics, rng
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        return self.to_snapshot().to_dict()

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], rng: Optional[np.random.Generator] = None
    ) -> HistogramBin:
        return cls.from_snapshot(BinSnapshot.model_validate(data), rng=rng)

    def __repr__(self) -> str:
        return f"HistogramBin({self.range.min}, {self.range.max}, count={self.count})"
