"""Weighted empirical distribution engine.

:class:`WeightedDistribution` composes a :class:`MomentAccumulator` and an
:class:`OrderStatisticsIndex` that share the same observations, and exposes
moments, ECDF, survival, right-tail probability, quantile, percentile,
median and mode queries from one object.

Examples:
    Basic usage::

        from weighted_descriptive import WeightedDistribution

        dist = WeightedDistribution()
        dist.add([1, 2, 3, 4], [0.1, 1, 10, 100])
        dist.add([3], [10])

        dist.weight(3)        # 20.0
        dist.weight()         # 121.1
        dist.mode()           # 4.0
        dist.quantile(0.01)   # 3.0
        dist.percentile(1)    # ~2.06, interpolated
        dist.rtp(4)           # ~0.826

Note:
    The engine is a single-writer aggregate. Queries update cached derived
    fields, so concurrent use of one instance must be serialized by the
    caller.
"""

import logging
from typing import Dict, List, Optional

from ._validation import coerce_observations, ingest_options
from .config import DistributionConfig
from .moments import MomentAccumulator
from .order_index import IndexState, OrderStatisticsIndex
from .snapshot import DistributionSnapshot

logger = logging.getLogger(__name__)


class WeightedDistribution:
    """Incremental weighted descriptive statistics with a full empirical distribution.

    The accumulator and the index are private and the accumulator is bound
    to the index, so ``add`` is the only way observations get in.

    Args:
        config: Input-handling and logging configuration. Defaults to
            :class:`DistributionConfig` defaults (skip non-positive weights
            with a warning).
    """

    def __init__(self, config: Optional[DistributionConfig] = None):
        self.config = config if config is not None else DistributionConfig()
        self._moments = MomentAccumulator(self.config)
        self._index = OrderStatisticsIndex(self._moments, self.config)

    @classmethod
    def from_observations(
        cls, values, weights=None, config: Optional[DistributionConfig] = None
    ) -> "WeightedDistribution":
        """Create a distribution and add one batch of observations to it."""
        dist = cls(config)
        dist.add(values, weights)
        return dist

    def add(self, values, weights=None) -> int:
        """Add weighted observations.

        Pairs whose weight is not positive are skipped with an
        :class:`~weighted_descriptive._warnings.InvalidWeightWarning` each
        (or rejected as a whole under ``invalid_weight_policy="raise"``).

        Args:
            values: One-dimensional sequence of observed values.
            weights: Optional parallel sequence of weights, or a scalar.
                Defaults to 1 for every value.

        Returns:
            Number of observations accepted.

        Raises:
            ShapeMismatchError: If values and weights cannot be paired.
            NonFiniteValueError: If a value is NaN or infinite.
            InvalidWeightError: If a weight is not positive under the
                ``"raise"`` policy.
        """
        x, w = coerce_observations(values, weights, **ingest_options(self.config))
        accepted = self._index.ingest(x, w)
        logger.debug("Accepted %d observations (%d total)", accepted, self._moments.count())
        return accepted

    @property
    def state(self) -> IndexState:
        """Lifecycle state of the derived distribution fields."""
        return self._index.state

    def __len__(self) -> int:
        """Return the number of accepted observations."""
        return self._moments.count()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(count={self._moments.count()}, "
            f"unique={len(self._index)}, weight={self._moments.weight()!r})"
        )

    # Moments

    def count(self, value: Optional[float] = None) -> Optional[int]:
        """Return the total observation count, or the count of ``value``.

        Returns ``None`` if ``value`` was never observed.
        """
        return self._index.count(value)

    def weight(self, value: Optional[float] = None) -> Optional[float]:
        """Return the total weight, or the aggregate weight of ``value``.

        Returns ``None`` if ``value`` was never observed.
        """
        return self._index.weight(value)

    def sum(self) -> float:
        return self._moments.sum()

    def mean(self) -> float:
        return self._moments.mean()

    def variance(self) -> float:
        """Return the unbiased weighted variance (needs two observations)."""
        return self._moments.variance()

    def standard_deviation(self) -> float:
        return self._moments.standard_deviation()

    def biased_variance(self) -> float:
        return self._moments.biased_variance()

    def biased_standard_deviation(self) -> float:
        return self._moments.biased_standard_deviation()

    def min(self) -> float:
        return self._moments.min()

    def max(self) -> float:
        return self._moments.max()

    def sample_range(self) -> float:
        return self._moments.sample_range()

    def effective_sample_size(self) -> float:
        """Return Kish's effective sample size of the accepted weights."""
        return self._moments.effective_sample_size()

    # Distribution

    def mode(self) -> float:
        """Return the value carrying the most weight (first to reach it on ties)."""
        return self._index.mode()

    def median(self) -> float:
        return self._index.median()

    def cdf(self, x: float) -> float:
        """Return the fraction of weight at or below ``x``."""
        return self._index.cdf(x)

    def survival(self, x: float) -> float:
        """Return the fraction of weight strictly above ``x``."""
        return self._index.survival(x)

    def rtp(self, x: float) -> float:
        """Return the fraction of weight at or above ``x``."""
        return self._index.rtp(x)

    def quantile(self, p: float) -> float:
        """Return the smallest observed value with CDF at least ``p``."""
        return self._index.quantile(p)

    def quantiles(self, qs: List[float]) -> Dict[str, float]:
        return self._index.quantiles(qs)

    def percentile(self, p: float) -> float:
        """Return the interpolated value at percentile ``p`` in [0, 100]."""
        return self._index.percentile(p)

    def snapshot(self) -> DistributionSnapshot:
        return self._index.snapshot()

    def summary(self) -> Dict[str, float]:
        """Return moments plus median and mode as a flat dictionary.

        Raises:
            EmptyDistributionError: If nothing has been accepted.
        """
        stats = self._moments.summary()
        stats["median"] = self.median()
        stats["mode"] = self.mode()
        stats["unique_values"] = len(self._index)
        return stats
