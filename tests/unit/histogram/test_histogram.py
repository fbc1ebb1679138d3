import json
import math

import numpy as np
import pytest

from numhist.config import settings
from numhist.exceptions import (
    BinLayoutError,
    IncompatibleBinsError,
    IncompatibleUnitsError,
    InvariantViolationError,
    PercentileError,
)
from numhist.histogram import (
    Histogram,
    HistogramBin,
    HistogramBuilder,
    NumericBase,
    Scalar,
    Significance,
)
from numhist.objects.diagnostics import BreakdownDiagnostic, GenericDiagnostic
from numhist.objects.range import Range
from numhist.units import Unit
from numhist.utils.encoding import encode_float


@pytest.fixture()
def linear_builder(ms_unit) -> HistogramBuilder:
    return HistogramBuilder.create_linear(
        ms_unit, Range.from_explicit_range(0, 10), 5
    )


@pytest.fixture()
def histogram(linear_builder, rng) -> Histogram:
    return linear_builder.build(rng=rng)


class TestHistogramConstruction:
    @pytest.mark.smoke()
    def test_empty_histogram(self, histogram):
        assert histogram.num_values == 0
        assert histogram.num_nans == 0
        assert histogram.max_count == 0
        assert histogram.average is None
        assert histogram.sum == 0
        assert histogram.sample_values == []
        assert len(histogram.all_bins) == 7
        assert (
            histogram.max_num_sample_values
            == 7 * settings.histogram.sample_values_per_bin
        )

    @pytest.mark.sanity()
    def test_non_contiguous_layout(self, ms_unit):
        with pytest.raises(BinLayoutError):
            Histogram(
                ms_unit,
                Range.from_explicit_range(0, 2),
                underflow_bin=HistogramBin(Range.from_explicit_range(-1, 0)),
                central_bins=[
                    HistogramBin(Range.from_explicit_range(0, 1)),
                    HistogramBin(Range.from_explicit_range(1.5, 2)),
                ],
                overflow_bin=HistogramBin(Range.from_explicit_range(2, 3)),
            )

    @pytest.mark.sanity()
    def test_invalid_unit(self):
        with pytest.raises(TypeError):
            HistogramBuilder("ms", 0).build()


class TestHistogramAdd:
    @pytest.mark.smoke()
    @pytest.mark.parametrize(
        ("value", "bin_index"),
        [
            (-5, 0),
            (-0.001, 0),
            (0, 1),
            (1.999, 1),
            (2, 2),
            (9.5, 5),
            (10, 6),
            (1e300, 6),
            (math.inf, 6),
            (-math.inf, 0),
        ],
    )
    def test_get_bin_for_value(self, histogram, value, bin_index):
        assert histogram.get_bin_for_value(value) is histogram.all_bins[bin_index]

    @pytest.mark.smoke()
    def test_add_values(self, histogram):
        for value in [1, 3, 3, 12, -4]:
            histogram.add(value)

        assert histogram.num_values == 5
        assert [bin_.count for bin_ in histogram.all_bins] == [1, 1, 2, 0, 0, 0, 1]
        assert histogram.max_count == 2
        assert histogram.running.count == 5
        assert histogram.running.min == -4
        assert histogram.running.max == 12
        assert histogram.average == pytest.approx(3)
        assert histogram.sum == 15
        assert sorted(histogram.sample_values) == [-4, 1, 3, 3, 12]

    @pytest.mark.smoke()
    @pytest.mark.parametrize("value", [math.nan, None, "abc", True, [1.0]])
    def test_add_non_numbers(self, histogram, value):
        histogram.add(value, GenericDiagnostic(value="bad sample"))

        assert histogram.num_values == 0
        assert histogram.num_nans == 1
        assert histogram.running.count == 0
        assert histogram.nan_diagnostics == [GenericDiagnostic(value="bad sample")]
        assert len(histogram.sample_values) == 1
        assert math.isnan(histogram.sample_values[0])

    @pytest.mark.sanity()
    def test_add_invalid_diagnostic(self, histogram):
        with pytest.raises(TypeError):
            histogram.add(1.0, {"type": "generic"})

        assert histogram.num_values == 0
        assert histogram.sample_values == []

    @pytest.mark.sanity()
    def test_add_samples(self, histogram):
        diagnostic = BreakdownDiagnostic(values={"io": 2.0})
        result = histogram.add_samples([1.0, (5.0, diagnostic), math.nan])

        assert result is histogram
        assert histogram.num_values == 2
        assert histogram.num_nans == 1
        assert histogram.get_bin_for_value(5.0).diagnostics == [diagnostic]

    @pytest.mark.sanity()
    @pytest.mark.parametrize(
        ("value", "bin_index", "sample"),
        [(10**400, 6, math.inf), (-(10**400), 0, -math.inf)],
    )
    def test_add_integers_beyond_float_range(
        self, histogram, value, bin_index, sample
    ):
        histogram.add(value)

        assert histogram.num_values == 1
        assert histogram.num_nans == 0
        assert histogram.all_bins[bin_index].count == 1
        assert histogram.sample_values == [sample]
        assert json.loads(histogram.to_json())["sampleValues"] == [
            encode_float(sample)
        ]

    @pytest.mark.regression()
    def test_sample_values_capped(self, histogram):
        for value in range(5000):
            histogram.add(value % 10)

        assert histogram.num_values == 5000
        assert len(histogram.sample_values) == histogram.max_num_sample_values


class TestHistogramPercentiles:
    @pytest.mark.smoke()
    def test_median(self, histogram):
        histogram.add_samples(range(1, 11))
        assert histogram.get_approximate_percentile(0.5) == 5.0

    @pytest.mark.smoke()
    def test_empty(self, histogram):
        assert histogram.get_approximate_percentile(0.5) == 0

    @pytest.mark.sanity()
    def test_outer_bins(self, histogram):
        histogram.add_samples([-100, -50, 100])
        assert histogram.get_approximate_percentile(0) == 0
        assert histogram.get_approximate_percentile(1) == 10

    @pytest.mark.sanity()
    @pytest.mark.parametrize("percent", [-0.1, 1.01, math.inf])
    def test_invalid_percent(self, histogram, percent):
        with pytest.raises(PercentileError):
            histogram.get_approximate_percentile(percent)

    @pytest.mark.regression()
    def test_within_bin_width(self, ms_unit, rng):
        histogram = HistogramBuilder.create_linear(
            ms_unit, Range.from_explicit_range(0, 100), 100
        ).build(rng=rng)
        values = rng.uniform(0, 100, 2000)
        histogram.add_samples(values.tolist())

        for percent in [0.1, 0.25, 0.5, 0.9, 0.99]:
            exact = float(np.quantile(values, percent))
            assert abs(histogram.get_approximate_percentile(percent) - exact) <= 1.5

    @pytest.mark.regression()
    def test_corrupted_counts(self, histogram):
        histogram.add(5)
        histogram.all_bins[3].count = 0

        with pytest.raises(InvariantViolationError):
            histogram.get_approximate_percentile(0.5)


class TestHistogramInterpolation:
    @pytest.mark.sanity()
    def test_interpolated_count(self, histogram):
        histogram.add_samples([1, 3, 3, 3])

        # bin centers are 1 (count 1) and 3 (count 3)
        assert histogram.get_interpolated_count_at(1) == 1
        assert histogram.get_interpolated_count_at(2) == 2
        assert histogram.get_interpolated_count_at(3) == 3
        assert histogram.get_interpolated_count_at(4) == 1.5

    @pytest.mark.sanity()
    def test_outer_bins(self, histogram):
        histogram.add_samples([-1, -2, 20])

        assert histogram.get_interpolated_count_at(-5) == 2
        assert histogram.get_interpolated_count_at(50) == 1
        # between the underflow boundary (count 2) and the first center (count 0)
        assert histogram.get_interpolated_count_at(0.5) == 1


class TestHistogramMerging:
    @pytest.mark.smoke()
    def test_can_add_histogram(self, linear_builder, ms_unit):
        first = linear_builder.build()
        second = linear_builder.build()
        other_layout = HistogramBuilder.create_linear(
            ms_unit, Range.from_explicit_range(0, 10), 4
        ).build()
        other_unit = HistogramBuilder.create_linear(
            Unit.from_token("ms_biggerIsBetter"), Range.from_explicit_range(0, 10), 5
        ).build()

        assert first.can_add_histogram(first)
        assert first.can_add_histogram(second)
        assert second.can_add_histogram(first)
        assert not first.can_add_histogram(other_layout)
        assert not other_layout.can_add_histogram(first)
        assert not first.can_add_histogram(other_unit)
        assert not first.can_add_histogram(Scalar(ms_unit, 1.0))

    @pytest.mark.smoke()
    def test_add_histogram(self, linear_builder, rng):
        first = linear_builder.build(rng=rng).add_samples([1, 2, 3])
        second = linear_builder.build(rng=rng).add_samples([4, 5, 6, math.nan])

        first.add_histogram(second)

        assert first.num_values == 6
        assert first.num_nans == 1
        assert first.running.mean == pytest.approx(3.5)
        assert first.max_count == 2
        assert [bin_.count for bin_ in first.all_bins] == [0, 1, 2, 2, 1, 0, 0]
        assert len(first.sample_values) == 7
        assert second.num_values == 3

    @pytest.mark.sanity()
    def test_add_histogram_incompatible(self, histogram, ms_unit):
        other = HistogramBuilder.create_linear(
            ms_unit, Range.from_explicit_range(0, 20), 5
        ).build()

        with pytest.raises(IncompatibleBinsError):
            histogram.add_histogram(other)

    @pytest.mark.sanity()
    def test_add_histogram_sample_capacity(self, ms_unit, rng):
        first = HistogramBuilder.create_linear(
            ms_unit, Range.from_explicit_range(0, 10), 5
        ).build(rng=rng)
        second = first.clone()
        first.max_num_sample_values = 10
        second.max_num_sample_values = 31
        first.add_samples(range(10))
        second.add_samples(range(31))

        first.add_histogram(second)

        assert first.max_num_sample_values == 20
        assert len(first.sample_values) == 20

    @pytest.mark.smoke()
    def test_merge_exact(self, linear_builder, rng):
        first = linear_builder.build(rng=rng).add_samples([1, 2, 3])
        second = linear_builder.build(rng=rng).add_samples([4, 5, 6])

        merged = first.merge(second)

        assert isinstance(merged, Histogram)
        assert merged is not first
        assert merged.num_values == 6
        assert merged.can_add_histogram(first)
        assert first.num_values == 3
        assert second.num_values == 3

    @pytest.mark.smoke()
    def test_merge_rebuilds_different_layouts(self, ms_unit, rng):
        first = HistogramBuilder.create_linear(
            ms_unit, Range.from_explicit_range(0, 10), 5
        ).build(rng=rng)
        second = HistogramBuilder.create_exponential(
            ms_unit, Range.from_explicit_range(1, 1000), 3
        ).build(rng=rng)
        first.add_samples([1, 2, 3])
        second.add_samples([100, 200])

        merged = first.merge(second)

        assert merged.num_values == 5
        assert merged.running.min == 1
        assert merged.running.max == 200
        assert merged.max_num_sample_values == (
            settings.histogram.max_sample_values_from_samples
        )

    @pytest.mark.sanity()
    def test_merge_with_scalar(self, histogram, ms_unit):
        histogram.add_samples([1, 2])
        merged = histogram.merge(Scalar(ms_unit, 7.0))

        assert merged.num_values == 3
        assert sorted(merged.sample_values) == [1, 2, 7]

    @pytest.mark.sanity()
    def test_merge_incompatible_units(self, histogram):
        with pytest.raises(IncompatibleUnitsError):
            histogram.merge(Scalar(Unit.from_token("ms"), 1.0))

    @pytest.mark.regression()
    def test_merge_commutative(self, linear_builder, rng):
        first = linear_builder.build(rng=rng).add_samples([1, 1, 7, math.nan])
        second = linear_builder.build(rng=rng).add_samples([3, 9, 9, -2])

        forward = first.merge(second)
        backward = second.merge(first)

        assert [bin_.count for bin_ in forward.all_bins] == [
            bin_.count for bin_ in backward.all_bins
        ]
        assert forward.num_nans == backward.num_nans == 1
        assert forward.running.mean == pytest.approx(backward.running.mean)


class TestHistogramSignificance:
    @pytest.mark.smoke()
    def test_significant(self, rng):
        unit = Unit.from_token("ms_smallerIsBetter")
        first = Histogram.build_from_samples(unit, [1] * 5, rng=rng)
        second = Histogram.build_from_samples(unit, [100] * 5, rng=rng)

        assert first.get_difference_significance(second) == Significance.SIGNIFICANT

    @pytest.mark.smoke()
    def test_insignificant(self, rng):
        unit = Unit.from_token("ms_smallerIsBetter")
        first = Histogram.build_from_samples(unit, [1, 2, 3, 4], rng=rng)
        second = Histogram.build_from_samples(unit, [1, 2, 3, 4], rng=rng)

        assert first.get_difference_significance(second) == Significance.INSIGNIFICANT

    @pytest.mark.smoke()
    def test_dont_care(self, rng):
        unit = Unit.from_token("ms")
        first = Histogram.build_from_samples(unit, [1] * 5, rng=rng)
        second = Histogram.build_from_samples(unit, [100] * 5, rng=rng)

        assert first.get_difference_significance(second) == Significance.DONT_CARE

    @pytest.mark.sanity()
    def test_alpha(self, rng):
        unit = Unit.from_token("ms_smallerIsBetter")
        first = Histogram.build_from_samples(unit, [1] * 5, rng=rng)
        second = Histogram.build_from_samples(unit, [100] * 5, rng=rng)

        assert (
            first.get_difference_significance(second, alpha=1e-6)
            == Significance.INSIGNIFICANT
        )

    @pytest.mark.sanity()
    def test_empty_histograms(self, histogram, linear_builder):
        assert (
            histogram.get_difference_significance(linear_builder.build())
            == Significance.INSIGNIFICANT
        )

    @pytest.mark.sanity()
    def test_invalid_other(self, histogram, ms_unit):
        with pytest.raises(IncompatibleUnitsError):
            histogram.get_difference_significance(
                Histogram.build_from_samples(Unit.from_token("ms"), [1])
            )
        with pytest.raises(TypeError):
            histogram.get_difference_significance(Scalar(ms_unit, 1.0))


class TestHistogramSummary:
    @pytest.mark.smoke()
    def test_default_summary(self, histogram):
        histogram.add_samples([2, 4, 6, math.nan])
        scalars = histogram.get_summarized_scalars()

        assert list(scalars) == ["count", "sum", "avg", "std", "min", "max"]
        assert scalars["count"].value == 3
        assert scalars["count"].unit is Unit.from_token("count_smallerIsBetter")
        assert scalars["sum"].value == 12
        assert scalars["avg"].value == 4
        assert scalars["std"].value == pytest.approx(2.0)
        assert scalars["min"].value == 2
        assert scalars["max"].value == 6
        assert all(
            scalars[name].unit is histogram.unit
            for name in ["sum", "avg", "std", "min", "max"]
        )

    @pytest.mark.smoke()
    def test_customized_summary(self, histogram):
        histogram.add_samples(range(1, 11))
        histogram.add(None)
        histogram.customize_summary_options(
            {"sum": False, "stddev": False, "nans": True, "percentile": [0.5, 0.995]}
        )
        scalars = histogram.get_summarized_scalars()

        assert list(scalars) == [
            "count",
            "avg",
            "min",
            "max",
            "nans",
            "pct_050",
            "pct_099_5",
        ]
        assert scalars["nans"].value == 1
        assert scalars["pct_050"].value == 5.0

    @pytest.mark.sanity()
    def test_empty_summary(self, histogram):
        scalars = histogram.get_summarized_scalars()

        assert list(scalars) == ["count", "sum"]
        assert scalars["count"].value == 0

    @pytest.mark.sanity()
    def test_customize_keeps_other_options(self, histogram):
        histogram.customize_summary_options({"count": False})
        histogram.customize_summary_options({"percentile": [0.9]})

        assert histogram.summary_options.count is False
        assert histogram.summary_options.percentile == [0.9]
        assert histogram.summary_options.sum is True

    @pytest.mark.sanity()
    def test_invalid_percentile(self, histogram):
        histogram.customize_summary_options({"percentile": [1.5]})

        with pytest.raises(PercentileError):
            histogram.get_summarized_scalars()


class TestBuildFromSamples:
    @pytest.mark.smoke()
    def test_layout(self, ms_unit):
        histogram = Histogram.build_from_samples(ms_unit, [1, 2, 3, 4, 5, 6, 7, 8, 9])

        assert histogram.range == Range.from_explicit_range(1, 9)
        assert len(histogram.central_bins) == 3
        assert histogram.num_values == 9
        assert histogram.max_num_sample_values == 1000
        assert sorted(histogram.sample_values) == list(range(1, 10))

    @pytest.mark.sanity()
    def test_empty_samples(self, ms_unit):
        histogram = Histogram.build_from_samples(ms_unit, [])

        assert histogram.range == Range.from_explicit_range(0, 1)
        assert len(histogram.central_bins) == 1
        assert histogram.num_values == 0

    @pytest.mark.sanity()
    def test_degenerate_samples(self, ms_unit):
        histogram = Histogram.build_from_samples(ms_unit, [5, 5, 5, 5])

        assert histogram.range == Range.from_explicit_range(4, 5)
        assert histogram.num_values == 4
        assert histogram.overflow_bin.count == 4

    @pytest.mark.sanity()
    def test_non_numeric_samples(self, ms_unit):
        histogram = Histogram.build_from_samples(
            ms_unit, [1, "x", None, math.nan, math.inf, 3]
        )

        assert histogram.range == Range.from_explicit_range(1, 3)
        assert histogram.num_values == 3
        assert histogram.num_nans == 3
        assert histogram.overflow_bin.count == 2

    @pytest.mark.sanity()
    def test_integers_beyond_float_range(self, ms_unit):
        histogram = Histogram.build_from_samples(ms_unit, [1, 3, 10**400])

        assert histogram.range == Range.from_explicit_range(1, 3)
        assert histogram.num_values == 3
        assert histogram.num_nans == 0
        assert histogram.running.max == math.inf


class TestHistogramSerialization:
    @pytest.mark.smoke()
    def test_to_dict_layout(self, histogram):
        histogram.add(3, GenericDiagnostic(value="trace"))
        data = histogram.to_dict()

        assert data["type"] == "numeric"
        assert data["unit"] == "ms_smallerIsBetter"
        assert data["min"] == 0
        assert data["max"] == 10
        assert data["numNans"] == 0
        assert data["maxNumSampleValues"] == histogram.max_num_sample_values
        assert data["sampleValues"] == [3.0]
        assert len(data["centralBins"]) == 5
        assert data["centralBins"][1]["diagnostics"] == [
            {"type": "generic", "value": "trace"}
        ]
        assert data["underflowBin"]["min"] == -data["overflowBin"]["max"]

    @pytest.mark.smoke()
    def test_round_trip(self, histogram, rng):
        histogram.add_samples([1, 3, 3, (7, GenericDiagnostic(value="slow"))])
        histogram.add(math.nan, BreakdownDiagnostic(values={"parse": 1.0}))
        histogram.customize_summary_options({"percentile": [0.5]})

        restored = NumericBase.from_json(histogram.to_json())

        assert isinstance(restored, Histogram)
        assert restored.unit is histogram.unit
        assert restored.can_add_histogram(histogram)
        assert [bin_.count for bin_ in restored.all_bins] == [
            bin_.count for bin_ in histogram.all_bins
        ]
        assert restored.num_values == histogram.num_values
        assert restored.max_count == histogram.max_count
        assert restored.num_nans == 1
        assert restored.nan_diagnostics == histogram.nan_diagnostics
        assert restored.running == histogram.running
        assert restored.summary_options == histogram.summary_options
        assert restored.get_bin_for_value(7).diagnostics == [
            GenericDiagnostic(value="slow")
        ]
        assert restored.sample_values[:4] == [1, 3, 3, 7]
        assert math.isnan(restored.sample_values[4])
        assert restored.to_dict() == histogram.to_dict()

    @pytest.mark.sanity()
    def test_strict_json(self, histogram):
        histogram.add_samples([math.inf, math.nan])
        text = histogram.to_json()

        # non-finite values must not leak as NaN or Infinity literals
        data = json.loads(
            text, parse_constant=lambda token: pytest.fail(f"found {token}")
        )
        assert data["sampleValues"] == ["Infinity", "NaN"]

    @pytest.mark.sanity()
    def test_clone(self, histogram):
        histogram.add_samples([1, 2])
        clone = histogram.clone()
        clone.add(3)

        assert clone is not histogram
        assert histogram.num_values == 2
        assert clone.num_values == 3
        assert clone.can_add_histogram(histogram)

    @pytest.mark.sanity()
    def test_from_dict_downsamples(self, histogram, rng):
        data = histogram.to_dict()
        data["sampleValues"] = list(range(50))
        data["maxNumSampleValues"] = 10

        restored = Histogram.from_dict(data, rng=rng)
        assert len(restored.sample_values) == 10
        assert restored.sample_values == sorted(restored.sample_values)

    @pytest.mark.sanity()
    def test_from_dict_caps_diagnostics(self, histogram, rng):
        diagnostics = [{"type": "generic", "value": index} for index in range(40)]
        data = histogram.to_dict()
        data["centralBins"][0]["count"] = 40
        data["centralBins"][0]["diagnostics"] = diagnostics
        data["numNans"] = 40
        data["nanDiagnostics"] = diagnostics

        restored = Histogram.from_dict(data, rng=rng)
        capacity = settings.histogram.max_diagnostics
        assert restored.central_bins[0].count == 40
        assert len(restored.central_bins[0].diagnostics) == capacity
        assert len(restored.nan_diagnostics) == capacity

        # later additions keep the reservoirs at capacity
        restored.add(1.0, GenericDiagnostic(value="late"))
        restored.add(None, GenericDiagnostic(value="late"))
        assert len(restored.central_bins[0].diagnostics) == capacity
        assert len(restored.nan_diagnostics) == capacity

    @pytest.mark.sanity()
    def test_from_dict_unknown_type(self):
        with pytest.raises(ValueError, match="Unrecognized numeric type"):
            NumericBase.from_dict({"type": "distribution", "unit": "ms"})


class TestHistogramProperties:
    @pytest.mark.regression()
    def test_every_add_is_counted(self, histogram, rng):
        samples = [*rng.normal(5, 4, 300).tolist(), None, "x", math.nan, math.inf]
        histogram.add_samples(samples)

        assert histogram.num_values + histogram.num_nans == len(samples)
        assert histogram.num_values == sum(bin_.count for bin_ in histogram.all_bins)
        assert histogram.max_count == max(bin_.count for bin_ in histogram.all_bins)

    @pytest.mark.regression()
    def test_percentiles_are_monotone(self, histogram, rng):
        histogram.add_samples(rng.exponential(3, 500).tolist())
        percentiles = [
            histogram.get_approximate_percentile(percent)
            for percent in np.linspace(0, 1, 41)
        ]

        assert percentiles == sorted(percentiles)

    @pytest.mark.regression()
    def test_add_histogram_associative(self, linear_builder, rng):
        def build(samples):
            return linear_builder.build(rng=rng).add_samples(samples)

        left = build([1, 2])
        left.add_histogram(build([3, 11]))
        left.add_histogram(build([-1, 5, 5]))

        inner = build([3, 11])
        inner.add_histogram(build([-1, 5, 5]))
        right = build([1, 2])
        right.add_histogram(inner)

        assert [bin_.count for bin_ in left.all_bins] == [
            bin_.count for bin_ in right.all_bins
        ]
        assert left.num_values == right.num_values == 7
        assert left.running.mean == pytest.approx(right.running.mean)
        assert left.running.variance == pytest.approx(right.running.variance)
        assert sorted(left.sample_values) == sorted(right.sample_values)
