"""Tests for the online weighted moment accumulator."""

import math
import warnings

import numpy as np
import pytest

from weighted_descriptive._warnings import InvalidWeightWarning
from weighted_descriptive.config import DistributionConfig
from weighted_descriptive.exceptions import (
    EmptyDistributionError,
    InsufficientDataError,
    InvalidWeightError,
    NonFiniteValueError,
    ShapeMismatchError,
)
from weighted_descriptive.moments import MomentAccumulator


class TestEmptyAccumulator:
    """Statistics are undefined before the first observation."""

    def test_totals_are_zero(self):
        acc = MomentAccumulator()
        assert acc.count() == 0
        assert acc.weight() == 0.0
        assert len(acc) == 0

    @pytest.mark.parametrize(
        "method",
        [
            "sum",
            "mean",
            "min",
            "max",
            "sample_range",
            "variance",
            "standard_deviation",
            "biased_variance",
            "biased_standard_deviation",
            "effective_sample_size",
            "summary",
        ],
    )
    def test_statistics_raise(self, method):
        """Every derived statistic reports the empty condition instead of returning 0."""
        acc = MomentAccumulator()
        with pytest.raises(EmptyDistributionError):
            getattr(acc, method)()


class TestSingleObservation:
    """One observation defines location but not spread."""

    def test_variance_is_undefined(self):
        acc = MomentAccumulator()
        acc.add([5.0], [2.0])
        with pytest.raises(InsufficientDataError) as exc_info:
            acc.variance()
        assert exc_info.value.required == 2
        assert exc_info.value.available == 1

    def test_insufficient_data_is_empty_distribution(self):
        """Callers catching the empty condition also catch the one-observation case."""
        acc = MomentAccumulator()
        acc.add([5.0])
        with pytest.raises(EmptyDistributionError):
            acc.standard_deviation()

    def test_location_statistics(self):
        acc = MomentAccumulator()
        acc.add([5.0], [2.0])
        assert acc.mean() == 5.0
        assert acc.sum() == 10.0
        assert acc.min() == acc.max() == 5.0
        assert acc.sample_range() == 0.0
        assert acc.biased_variance() == 0.0

    def test_summary_reports_nan_variance(self):
        acc = MomentAccumulator()
        acc.add([5.0])
        summary = acc.summary()
        assert math.isnan(summary["variance"])
        assert math.isnan(summary["std"])
        assert summary["biased_variance"] == 0.0


class TestWeightedMoments:
    """Incremental moments agree with batch numpy computations."""

    def test_mean_matches_numpy(self, random_observations):
        values, weights = random_observations
        acc = MomentAccumulator()
        acc.add(values, weights)
        assert acc.mean() == pytest.approx(np.average(values, weights=weights), rel=1e-12)
        assert acc.sum() == pytest.approx(np.sum(values * weights), rel=1e-12)
        assert acc.weight() == pytest.approx(np.sum(weights), rel=1e-12)

    def test_unbiased_variance_matches_reliability_weights(self, random_observations):
        """``sum_squares / ((1 - H) * W)`` is numpy's aweights covariance."""
        values, weights = random_observations
        acc = MomentAccumulator()
        acc.add(values, weights)
        expected = float(np.cov(values, aweights=weights))
        assert acc.variance() == pytest.approx(expected, rel=1e-10)
        assert acc.standard_deviation() == pytest.approx(math.sqrt(expected), rel=1e-10)

    def test_biased_variance_matches_numpy(self, random_observations):
        values, weights = random_observations
        acc = MomentAccumulator()
        acc.add(values, weights)
        mean = np.average(values, weights=weights)
        expected = np.average((values - mean) ** 2, weights=weights)
        assert acc.biased_variance() == pytest.approx(expected, rel=1e-10)
        assert acc.biased_standard_deviation() == pytest.approx(math.sqrt(expected), rel=1e-10)

    def test_unit_weights_reduce_to_sample_variance(self):
        values = [2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0]
        acc = MomentAccumulator()
        acc.add(values)
        assert acc.weight_homozyg == pytest.approx(1 / len(values))
        assert acc.variance() == pytest.approx(np.var(values, ddof=1))
        assert acc.biased_variance() == pytest.approx(np.var(values))

    def test_weights_are_not_replication(self):
        """Weight 4 on a value is not the same as four unit observations."""
        weighted = MomentAccumulator()
        weighted.add([1, 7], [4, 4])
        replicated = MomentAccumulator()
        replicated.add([1, 1, 1, 1, 7, 7, 7, 7])

        assert weighted.count() == 2
        assert replicated.count() == 8
        assert weighted.mean() == replicated.mean() == 4.0
        assert weighted.variance() == pytest.approx(18.0)
        assert replicated.variance() == pytest.approx(72.0 / 7.0)

    def test_batches_equal_single_call(self, random_observations):
        values, weights = random_observations
        whole = MomentAccumulator()
        whole.add(values, weights)
        split = MomentAccumulator()
        for start in range(0, len(values), 37):
            split.add(values[start : start + 37], weights[start : start + 37])

        assert split.count() == whole.count()
        assert split.mean() == pytest.approx(whole.mean(), rel=1e-12)
        assert split.variance() == pytest.approx(whole.variance(), rel=1e-12)

    def test_large_offset_is_stable(self):
        """Updating around the running mean avoids catastrophic cancellation."""
        acc = MomentAccumulator()
        acc.add(1e9 + np.array([4.0, 7.0, 13.0, 16.0]))
        assert acc.mean() == pytest.approx(1e9 + 10.0)
        assert acc.variance() == pytest.approx(30.0, abs=1e-6)

    def test_min_max_range(self):
        acc = MomentAccumulator()
        acc.add([3.0, -1.5, 8.25], [1.0, 0.5, 2.0])
        assert acc.min() == -1.5
        assert acc.max() == 8.25
        assert acc.sample_range() == pytest.approx(9.75)

    def test_effective_sample_size(self):
        acc = MomentAccumulator()
        acc.add([1.0, 2.0, 3.0, 4.0], [3.0, 3.0, 3.0, 3.0])
        assert acc.effective_sample_size() == pytest.approx(4.0)

        skewed = MomentAccumulator()
        skewed.add([1.0, 2.0], [1.0, 99.0])
        assert skewed.effective_sample_size() == pytest.approx(100.0**2 / (1.0 + 99.0**2))

    def test_summary_keys(self, random_observations):
        values, weights = random_observations
        acc = MomentAccumulator()
        acc.add(values, weights)
        summary = acc.summary()
        for key in [
            "count",
            "weight",
            "sum",
            "mean",
            "variance",
            "std",
            "biased_variance",
            "biased_std",
            "min",
            "max",
            "range",
            "effective_sample_size",
        ]:
            assert key in summary
        assert summary["count"] == 500
        assert summary["variance"] == pytest.approx(acc.variance())


class TestIngestion:
    """Input contract of ``add``."""

    def test_weights_default_to_one(self):
        acc = MomentAccumulator()
        assert acc.add([1.0, 2.0, 3.0]) == 3
        assert acc.weight() == 3.0

    def test_scalar_weight_is_broadcast(self):
        acc = MomentAccumulator()
        acc.add([1.0, 2.0, 3.0], 2.5)
        assert acc.weight() == pytest.approx(7.5)

    def test_non_positive_weights_are_skipped(self):
        acc = MomentAccumulator()
        with warnings.catch_warnings(record=True) as w:
            warnings.simplefilter("always")
            accepted = acc.add([1, 2, 3], [1, 0, -1])

        skipped = [x for x in w if issubclass(x.category, InvalidWeightWarning)]
        assert accepted == 1
        assert len(skipped) == 2
        assert acc.count() == 1
        assert acc.weight() == 1.0
        assert acc.mean() == 1.0

    def test_nan_weight_is_skipped(self):
        acc = MomentAccumulator()
        with pytest.warns(InvalidWeightWarning):
            acc.add([1.0, 2.0], [float("nan"), 1.0])
        assert acc.count() == 1
        assert acc.mean() == 2.0

    def test_length_mismatch_does_not_mutate(self):
        acc = MomentAccumulator()
        acc.add([1.0, 2.0])
        with pytest.raises(ShapeMismatchError) as exc_info:
            acc.add([3.0, 4.0, 5.0], [1.0, 1.0])
        assert exc_info.value.values_shape == (3,)
        assert exc_info.value.weights_shape == (2,)
        assert acc.count() == 2
        assert acc.mean() == 1.5

    def test_two_dimensional_values_rejected(self):
        acc = MomentAccumulator()
        with pytest.raises(ShapeMismatchError):
            acc.add([[1.0, 2.0], [3.0, 4.0]])
        assert acc.count() == 0

    def test_shape_mismatch_is_value_error(self):
        with pytest.raises(ValueError):
            MomentAccumulator().add([1.0], [1.0, 2.0])

    def test_non_finite_values_rejected(self):
        acc = MomentAccumulator()
        with pytest.raises(NonFiniteValueError):
            acc.add([1.0, float("inf")], [1.0, 1.0])
        assert acc.count() == 0

    def test_raise_policy(self):
        acc = MomentAccumulator(DistributionConfig(invalid_weight_policy="raise"))
        with pytest.raises(InvalidWeightError) as exc_info:
            acc.add([1, 2, 3], [1, 0, -1])
        assert exc_info.value.indices == [1, 2]
        assert acc.count() == 0

    def test_silent_skip(self):
        acc = MomentAccumulator(DistributionConfig(warn_on_skipped_weights=False))
        with warnings.catch_warnings():
            warnings.simplefilter("error", InvalidWeightWarning)
            acc.add([1, 2], [1, 0])
        assert acc.count() == 1

    def test_empty_batch(self):
        acc = MomentAccumulator()
        assert acc.add([]) == 0
        assert acc.count() == 0
