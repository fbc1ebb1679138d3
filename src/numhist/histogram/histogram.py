"""
Bounded-memory histogram over a stream of numeric samples.

A :class:`Histogram` counts samples into an underflow bin, a sequence of
contiguous central bins and an overflow bin. Alongside the counts it keeps
running statistics, the number of non-numeric (NaN) samples, and reservoirs of
uniformly sampled diagnostics and raw sample values. The sample reservoir is
what allows histograms with different layouts to be merged by reconstruction
and two histograms to be compared with a significance test.
"""

from __future__ import annotations

import bisect
import math
from collections.abc import Iterable, Mapping
from typing import Any, Optional, Union

import numpy as np
from loguru import logger

from numhist.config import settings
from numhist.exceptions import (
    BinLayoutError,
    IncompatibleBinsError,
    IncompatibleUnitsError,
    InvariantViolationError,
    PercentileError,
)
from numhist.histogram.base import NumericBase, Significance
from numhist.histogram.bin import HistogramBin
from numhist.histogram.scalar import Scalar
from numhist.histogram.serialization import HistogramSnapshot
from numhist.histogram.summary import SummaryOptions, percent_to_string
from numhist.objects.diagnostics import Diagnostic
from numhist.objects.range import Range
from numhist.objects.statistics import RunningStats
from numhist.units import ImprovementDirection, Unit
from numhist.utils.encoding import (
    decode_float,
    encode_float,
    is_real_number,
    to_float,
)
from numhist.utils.reservoir import (
    merge_sampled_streams,
    two_sample_test,
    uniformly_sample_array,
    uniformly_sample_stream,
)

__all__ = ["Histogram"]


@NumericBase.register("numeric")
class Histogram(NumericBase):
    """
    A histogram over a fixed bin layout.

    Histograms are normally created with
    :meth:`numhist.histogram.builder.HistogramBuilder.build` or
    :meth:`Histogram.build_from_samples` rather than directly.

    :param unit: The unit of the sample values.
    :param histogram_range: The range spanned by the central bins.
    :param underflow_bin: Bin for values up to the lowest boundary.
    :param central_bins: Contiguous bins covering ``histogram_range``.
    :param overflow_bin: Bin for values from the highest boundary upwards.
    :param rng: Generator used for reservoir sampling, the process wide
        default generator if None.
    :raises BinLayoutError: If the bins are not ascending and contiguous.
    """

    def __init__(
        self,
        unit: Unit,
        histogram_range: Range,
        underflow_bin: HistogramBin,
        central_bins: list[HistogramBin],
        overflow_bin: HistogramBin,
        rng: Optional[np.random.Generator] = None,
    ):
        super().__init__(unit)

        self.range = histogram_range
        self.underflow_bin = underflow_bin
        self.central_bins = list(central_bins)
        self.overflow_bin = overflow_bin
        self.all_bins = [underflow_bin, *self.central_bins, overflow_bin]
        self._validate_layout()

        self.running = RunningStats()
        self.num_nans = 0
        self.nan_diagnostics: list[Diagnostic] = []
        self.summary_options = SummaryOptions()
        self.max_num_sample_values = (
            len(self.all_bins) * settings.histogram.sample_values_per_bin
        )
        self._sample_values: list[float] = []
        self._rng = rng
        self._bin_maxes = [bin_.range.max for bin_ in self.all_bins]
        self._num_values = sum(bin_.count for bin_ in self.all_bins)
        self._max_count = max(bin_.count for bin_ in self.all_bins)

    def _validate_layout(self):
        for lower, upper in zip(self.all_bins[:-1], self.all_bins[1:]):
            if lower.range.max != upper.range.min or not (
                lower.range.min < lower.range.max
            ):
                raise BinLayoutError(
                    f"Histogram bins must be ascending and contiguous, got "
                    f"{lower.range} followed by {upper.range}"
                )

    @property
    def num_values(self) -> int:
        """
        :return: Number of numeric samples, equal to the sum of all bin counts.
        """
        return self._num_values

    @property
    def max_count(self) -> int:
        """
        :return: The largest count of any single bin.
        """
        return self._max_count

    @property
    def average(self) -> Optional[float]:
        return self.running.mean if self.running.count else None

    @property
    def sum(self) -> float:
        return self.running.sum

    @property
    def sample_values(self) -> list[float]:
        return self._sample_values

    def get_bin_for_value(self, value: float) -> HistogramBin:
        """
        :param value: A numeric value.
        :return: The first bin whose upper bound is greater than value, or the
            overflow bin if there is none.
        """
        index = bisect.bisect_right(self._bin_maxes, value)

        if index >= len(self.all_bins):
            return self.overflow_bin

        return self.all_bins[index]

    def add(self, value: Any, diagnostic: Optional[Diagnostic] = None) -> None:
        """
        Record one sample.

        Real numbers are counted into their bin and the running statistics.
        Anything else (NaN, None, strings, bools) is counted as a NaN sample.
        Either way the value is offered to the sample values reservoir, with
        non-numbers stored as NaN.

        :param value: The sample value.
        :param diagnostic: Optional exemplar kept in a bounded reservoir of the
            bin (or of the NaN samples) the value lands in.
        :raises TypeError: If diagnostic is not a Diagnostic.
        """
        if diagnostic is not None and not isinstance(diagnostic, Diagnostic):
            raise TypeError(
                f"Expected diagnostic to be a Diagnostic, got {type(diagnostic)}"
            )

        sample = to_float(value) if is_real_number(value) else math.nan

        if math.isnan(sample):
            self.num_nans += 1
            if diagnostic is not None:
                uniformly_sample_stream(
                    self.nan_diagnostics,
                    self.num_nans,
                    diagnostic,
                    settings.histogram.max_diagnostics,
                    self._rng,
                )
        else:
            bin_ = self.get_bin_for_value(sample)
            bin_.add(sample, diagnostic, self._rng)
            self.running.add(sample)
            self._num_values += 1
            if bin_.count > self._max_count:
                self._max_count = bin_.count

        uniformly_sample_stream(
            self._sample_values,
            self._num_values + self.num_nans,
            sample,
            self.max_num_sample_values,
            self._rng,
        )

    def add_samples(self, samples: Iterable[Any]) -> Histogram:
        """
        Add every sample of an iterable, a sample may be a
        ``(value, diagnostic)`` tuple.

        :return: This histogram, for chaining.
        """
        for sample in samples:
            if isinstance(sample, tuple) and len(sample) == 2:  # noqa: PLR2004
                self.add(sample[0], sample[1])
            else:
                self.add(sample)

        return self

    def sample_values_into(self, samples: list[Any]) -> None:
        samples.extend(self._sample_values)

    def get_approximate_percentile(self, percent: float) -> float:
        """
        Approximate a percentile from the bin counts.

        If the real percentile lies within the central range the result
        deviates from it by at most the width of the bin it falls in.
        Otherwise the nearest boundary of the central range is returned.

        :param percent: The percentile within [0, 1].
        :return: The approximated percentile, 0 if no values were added.
        :raises PercentileError: If percent is outside of [0, 1].
        :raises InvariantViolationError: If the bin counts do not add up to
            the number of values.
        """
        if not 0 <= percent <= 1:
            raise PercentileError(f"Percent must be within [0, 1], got {percent}")

        if self._num_values == 0:
            return 0

        values_to_skip = math.floor((self._num_values - 1) * percent)
        for bin_ in self.all_bins:
            values_to_skip -= bin_.count
            if values_to_skip < 0:
                if bin_ is self.underflow_bin:
                    return bin_.range.max
                if bin_ is self.overflow_bin:
                    return bin_.range.min
                return bin_.range.center

        raise InvariantViolationError(
            f"Bin counts sum to {sum(bin_.count for bin_ in self.all_bins)} "
            f"but the histogram recorded {self._num_values} values"
        )

    def get_interpolated_count_at(self, value: float) -> float:
        """
        Estimate the count at ``value`` by linear interpolation between the
        counts of the two bins whose centers surround it.

        The underflow and overflow bins have no finite center; their counts are
        returned unchanged for values inside them, and their inner boundary is
        used as center when they neighbor the bin containing value.
        """
        bin_ = self.get_bin_for_value(value)
        if bin_ is self.underflow_bin or bin_ is self.overflow_bin:
            return bin_.count

        index = self.all_bins.index(bin_)
        lesser_bin = greater_bin = bin_
        lesser_center = greater_center = bin_.range.center

        if value < bin_.range.center:
            lesser_bin = self.all_bins[index - 1]
            lesser_center = (
                lesser_bin.range.max
                if lesser_bin is self.underflow_bin
                else lesser_bin.range.center
            )
        else:
            greater_bin = self.all_bins[index + 1]
            greater_center = (
                greater_bin.range.min
                if greater_bin is self.overflow_bin
                else greater_bin.range.center
            )

        if greater_center == lesser_center:
            return lesser_bin.count

        position = (value - lesser_center) / (greater_center - lesser_center)

        return lesser_bin.count + position * (greater_bin.count - lesser_bin.count)

    def can_add_histogram(self, other: NumericBase) -> bool:
        """
        :return: True if ``other`` has the same unit and exactly the same bin
            layout, so it can be combined bin for bin.
        """
        if not isinstance(other, Histogram):
            return False
        if self.unit is not other.unit:
            return False
        if self.range != other.range:
            return False
        if len(self.all_bins) != len(other.all_bins):
            return False

        return all(
            mine.range == theirs.range
            for mine, theirs in zip(self.all_bins, other.all_bins)
        )

    def add_histogram(self, other: Histogram) -> None:
        """
        Add the contents of ``other`` into this histogram in place.
        ``other`` is left unchanged.

        The merged sample values reservoir takes the mean of the two
        capacities as its new capacity.

        :raises IncompatibleBinsError: If the layouts or units differ.
        """
        if not self.can_add_histogram(other):
            raise IncompatibleBinsError("Merging incompatible histograms")

        logger.debug(
            "Adding histogram with {} values into histogram with {} values",
            other.num_values,
            self.num_values,
        )

        max_diagnostics = settings.histogram.max_diagnostics
        self.nan_diagnostics = merge_sampled_streams(
            self.nan_diagnostics,
            self.num_nans,
            other.nan_diagnostics,
            other.num_nans,
            max_diagnostics,
            self._rng,
        )

        num_sample_values = int(
            (self.max_num_sample_values + other.max_num_sample_values) / 2
        )
        self._sample_values = merge_sampled_streams(
            self._sample_values,
            self._num_values + self.num_nans,
            other.sample_values,
            other.num_values + other.num_nans,
            num_sample_values,
            self._rng,
        )
        self.max_num_sample_values = num_sample_values

        self.num_nans += other.num_nans
        self.running = self.running.merge(other.running)

        for mine, theirs in zip(self.all_bins, other.all_bins):
            mine.combine(theirs, self._rng)

        self._num_values += other.num_values
        self._max_count = max(bin_.count for bin_ in self.all_bins)

    def get_difference_significance(
        self, other: NumericBase, alpha: Optional[float] = None
    ) -> Significance:
        """
        Test whether the sample values of two histograms differ significantly
        with a two-sided Mann-Whitney U test.

        :param other: The histogram to compare against.
        :param alpha: p-values below this are significant, defaults to
            ``settings.histogram.default_alpha`` (0.05).
        :return: DONT_CARE if the unit has no improvement direction,
            otherwise SIGNIFICANT or INSIGNIFICANT.
        :raises IncompatibleUnitsError: If the units differ.
        :raises TypeError: If other is not a Histogram.
        """
        if self.unit is not other.unit:
            raise IncompatibleUnitsError(
                "Cannot compare numerics with different units: "
                f"{self.unit.name} and {other.unit.name}"
            )

        if self.unit.improvement_direction == ImprovementDirection.DONT_CARE:
            return Significance.DONT_CARE

        if not isinstance(other, Histogram):
            raise TypeError(
                f"Unable to compute a p-value against {type(other).__name__}, "
                "a Histogram is required"
            )

        if alpha is None:
            alpha = settings.histogram.default_alpha

        result = two_sample_test(self._sample_values, other.sample_values)
        logger.debug("Two-sample test p-value {} at alpha {}", result.p, alpha)

        if result.p < alpha:
            return Significance.SIGNIFICANT
        return Significance.INSIGNIFICANT

    def customize_summary_options(
        self, options: Union[Mapping[str, Any], SummaryOptions]
    ) -> None:
        """
        Change which statistics get_summarized_scalars reports. Options that
        are not mentioned keep their current value.

        :param options: Boolean flags ``count``, ``sum``, ``avg`` (or
            ``mean``), ``std`` (or ``stddev``), ``min``, ``max``, ``nans``
            and a list of percentiles ``percentile``.
        """
        if isinstance(options, SummaryOptions):
            options = options.model_dump(exclude_unset=True)

        self.summary_options = self.summary_options.customized(dict(options))

    def get_summarized_scalars(self) -> dict[str, Scalar]:
        """
        :return: One named scalar per enabled summary option, in option order.
            Statistics that are undefined for an empty histogram are left out.
        :raises PercentileError: If a requested percentile is outside [0, 1].
        """
        count_unit = Unit.from_token("count_smallerIsBetter")
        options = self.summary_options
        results: dict[str, Scalar] = {}

        if options.count:
            results["count"] = Scalar(count_unit, self.running.count)
        if options.sum:
            results["sum"] = Scalar(self.unit, self.running.sum)

        if self.running.count:
            if options.avg:
                results["avg"] = Scalar(self.unit, self.running.mean)
            if options.std:
                results["std"] = Scalar(self.unit, self.running.stddev)
            if options.min:
                results["min"] = Scalar(self.unit, self.running.min)
            if options.max:
                results["max"] = Scalar(self.unit, self.running.max)

        if options.nans:
            results["nans"] = Scalar(count_unit, self.num_nans)

        for percent in options.percentile:
            name = f"pct_{percent_to_string(percent)}"
            results[name] = Scalar(self.unit, self.get_approximate_percentile(percent))

        return results

    def clone(self) -> Histogram:
        return Histogram.from_dict(self.to_dict(), rng=self._rng)

    def to_snapshot(self) -> HistogramSnapshot:
        return HistogramSnapshot(
            unit=self.unit.as_token(),
            min=self.range.min,
            max=self.range.max,
            num_nans=self.num_nans,
            nan_diagnostics=[diag.to_dict() for diag in self.nan_diagnostics],
            running=self.running.model_dump(),
            summary_options=self.summary_options.model_dump(),
            sample_values=[encode_float(value) for value in self._sample_values],
            max_num_sample_values=self.max_num_sample_values,
            underflow_bin=self.underflow_bin.to_snapshot(),
            central_bins=[bin_.to_snapshot() for bin_ in self.central_bins],
            overflow_bin=self.overflow_bin.to_snapshot(),
        )

    def to_dict(self) -> dict[str, Any]:
        return self.to_snapshot().to_dict()

    @classmethod
    def from_snapshot(
        cls, snapshot: HistogramSnapshot, rng: Optional[np.random.Generator] = None
    ) -> Histogram:
        histogram = cls(
            Unit.from_token(snapshot.unit),
            Range.from_explicit_range(snapshot.min, snapshot.max),
            underflow_bin=HistogramBin.from_snapshot(snapshot.underflow_bin, rng),
            central_bins=[
                HistogramBin.from_snapshot(bin_, rng) for bin_ in snapshot.central_bins
            ],
            overflow_bin=HistogramBin.from_snapshot(snapshot.overflow_bin, rng),
            rng=rng,
        )

        if snapshot.running is not None:
            histogram.running = snapshot.running.model_copy()
        if snapshot.summary_options:
            histogram.customize_summary_options(snapshot.summary_options)

        histogram.num_nans = snapshot.num_nans
        histogram.nan_diagnostics = uniformly_sample_array(
            list(snapshot.nan_diagnostics), settings.histogram.max_diagnostics, rng
        )
        histogram.max_num_sample_values = snapshot.max_num_sample_values
        histogram._sample_values = uniformly_sample_array(
            [float(decode_float(value)) for value in snapshot.sample_values],
            snapshot.max_num_sample_values,
            rng,
        )

        return histogram

    @classmethod
    def from_dict(  # type: ignore[override]
        cls, data: dict[str, Any], rng: Optional[np.random.Generator] = None
    ) -> Histogram:
        """
        :param data: A payload produced by :meth:`to_dict`.
        :param rng: Generator for the new histogram's reservoir sampling.
        """
        return cls.from_snapshot(HistogramSnapshot.model_validate(data), rng=rng)

    @staticmethod
    def build_from_samples(
        unit: Unit,
        samples: Iterable[Any],
        rng: Optional[np.random.Generator] = None,
    ) -> Histogram:
        """
        Create a histogram with a linear layout fitted to the samples.

        The layout spans the observed range of the finite samples with
        ``ceil(sqrt(len(samples)))`` bins, widened by one unit if it is empty or
        degenerate. Non-numeric samples are counted as NaNs.

        :param unit: The unit of the samples.
        :param samples: Raw sample values; the iterable is copied.
        :param rng: Generator for the new histogram's reservoir sampling.
        """
        from numhist.histogram.builder import HistogramBuilder

        samples = list(samples)
        sample_range = Range()
        for sample in samples:
            if is_real_number(sample) and math.isfinite(to_float(sample)):
                sample_range.add_value(sample)

        # add_linear_bins requires max > min
        if sample_range.empty:
            sample_range.add_value(1)
        if sample_range.min == sample_range.max:
            sample_range.add_value(sample_range.min - 1)

        # optimizes resolution for uniformly distributed samples
        num_bins = max(1, math.ceil(math.sqrt(len(samples))))
        histogram = (
            HistogramBuilder(unit, sample_range.min)
            .add_linear_bins(sample_range.max, num_bins)
            .build(rng=rng)
        )
        histogram.max_num_sample_values = (
            settings.histogram.max_sample_values_from_samples
        )

        for sample in samples:
            histogram.add(sample)

        return histogram

    def __repr__(self) -> str:
        return (
            f"Histogram(unit={self.unit.name!r}, range={self.range!r}, "
            f"bins={len(self.all_bins)}, num_values={self._num_values}, "
            f"num_nans={self.num_nans})"
        )
