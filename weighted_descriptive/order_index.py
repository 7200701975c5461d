"""Order-statistics index over weighted observations.

Observations are aggregated by value into :class:`UniqueValueRecord`
entries stored in a :class:`sortedcontainers.SortedDict`, which gives
logarithmic lookup plus ordered traversal, successor/predecessor and range
queries. Distribution fields (CDF, right-tail probability, percentile
anchor) depend on the total weight and are therefore derived lazily: any
accepted observation marks the index dirty, and the next distribution query
recomputes every record in one ascending pass.

For a record with aggregate weight ``w_k`` and cumulative weight ``C`` of
all records up to and including it, out of total weight ``W``:

    cdf_k        = C / W
    rtp_k        = 1 - (C - w_k) / W
    percentile_k = 100 / W * (C - w_k / 2)

The percentile anchor puts each value at the midpoint of its weight mass,
so percentiles between anchors can be interpolated linearly.
"""

from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import Dict, Iterator, List, Optional

import numpy as np
from sortedcontainers import SortedDict

from ._validation import coerce_observations, ingest_options
from .exceptions import EmptyDistributionError, NonFiniteValueError, OutOfRangeArgumentError
from .moments import MomentAccumulator
from .snapshot import DistributionSnapshot

logger = logging.getLogger(__name__)


def format_quantile_key(q: float) -> str:
    """Format a quantile value as a dictionary key using per-mille resolution.

    Args:
        q: Quantile value in range [0, 1].

    Returns:
        Formatted key string, e.g. ``q0250`` for the 25th percentile,
        ``q0005`` for the 0.5th percentile.
    """
    return f"q{round(q * 1000):04d}"


class IndexState(Enum):
    """Whether the derived fields of an index can be trusted."""

    EMPTY = "empty"
    DIRTY = "dirty"
    CLEAN = "clean"


@dataclass
class UniqueValueRecord:
    """Aggregate of every observation sharing one value.

    ``cdf``, ``right_tail_probability`` and ``percentile`` are ``None`` until
    the owning index derives them, and stale while the index is dirty.
    """

    value: float
    weight: float = 0.0
    count: int = 0
    insertion_orders: List[int] = field(default_factory=list)
    weights: List[float] = field(default_factory=list)
    cdf: Optional[float] = None
    right_tail_probability: Optional[float] = None
    percentile: Optional[float] = None

    def append(self, weight: float, order: int) -> float:
        """Record one more observation of this value and return the new aggregate weight."""
        self.weights.append(weight)
        self.insertion_orders.append(order)
        self.weight += weight
        self.count += 1
        return self.weight


class OrderStatisticsIndex:
    """Weight-aggregating ordered map with lazily derived distribution fields.

    The index reports totals from a :class:`MomentAccumulator` bound to it
    and forwards every accepted observation there. A bound accumulator
    refuses direct ``add`` calls, so the two always describe the same
    multiset.

    Args:
        moments: Accumulator to report totals from. Must be empty and not
            bound to another index; a fresh one is created when omitted.
        config: Optional configuration for input handling.

    Examples:
        >>> index = OrderStatisticsIndex()
        >>> index.add([-2, 7, 7, 4, 18, -5], [2, 1, 1, 2, 2, 2])
        6
        >>> index.cdf(7)
        0.8
        >>> index.quantile(0.25)
        -2.0
    """

    def __init__(self, moments: Optional[MomentAccumulator] = None, config=None):
        if moments is None:
            moments = MomentAccumulator(config)
        elif moments.count() != 0:
            raise ValueError("OrderStatisticsIndex requires an empty MomentAccumulator")
        moments.bind(self)
        self._moments = moments
        self._config = config
        self._records: SortedDict = SortedDict()
        self._quantile_map: SortedDict = SortedDict()
        self._percentile_map: SortedDict = SortedDict()
        self._next_order = 1
        self._mode: Optional[float] = None
        self._mode_weight = 0.0
        self._dirty = False
        self._median: Optional[float] = None
        self._percentile_cache: Dict[float, float] = {}

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def add(self, values, weights=None) -> int:
        """Aggregate a batch of weighted observations by value.

        Args:
            values: One-dimensional sequence of observed values.
            weights: Optional parallel sequence of positive weights (or a
                scalar). Defaults to 1 for every value.

        Returns:
            Number of observations accepted.

        Raises:
            ShapeMismatchError: If values and weights cannot be paired.
            NonFiniteValueError: If a value is NaN or infinite.
            InvalidWeightError: If a weight is not positive under the
                ``"raise"`` policy.
        """
        x, w = coerce_observations(values, weights, **ingest_options(self._config))
        return self.ingest(x, w)

    def ingest(self, x: np.ndarray, w: np.ndarray) -> int:
        """Insert arrays returned by ``coerce_observations`` without validating again.

        This is the single feeding path of the index and its accumulator;
        :class:`~weighted_descriptive.distribution.WeightedDistribution`
        validates once and calls it directly.
        """
        if len(x) == 0:
            return 0

        for xi, wi in zip(x.tolist(), w.tolist()):
            record = self._records.get(xi)
            if record is None:
                record = UniqueValueRecord(xi)
                self._records[xi] = record
            new_weight = record.append(wi, self._next_order)
            self._next_order += 1
            # Ties keep the first value to reach the maximum weight
            if new_weight > self._mode_weight:
                self._mode_weight = new_weight
                self._mode = xi

        self._moments.fold(x, w)
        self._invalidate()
        return len(x)

    def _invalidate(self) -> None:
        self._dirty = True
        self._median = None
        self._percentile_cache.clear()

    # ------------------------------------------------------------------
    # Derivation
    # ------------------------------------------------------------------

    @property
    def state(self) -> IndexState:
        """Current position in the empty/dirty/clean lifecycle."""
        if not self._records:
            return IndexState.EMPTY
        return IndexState.DIRTY if self._dirty else IndexState.CLEAN

    def derive(self) -> None:
        """Recompute CDF, right-tail probability and percentile anchors for every value.

        Runs one ascending pass over the records and rebuilds the quantile
        and percentile maps. Normally invoked implicitly by queries.
        """
        records = list(self._records.values())
        quantile_map = SortedDict()
        percentile_map = SortedDict()

        if records:
            weights = np.array([r.weight for r in records], dtype=np.float64)
            cumulative = np.cumsum(weights)
            before = np.concatenate(([0.0], cumulative[:-1]))
            # Same summation order as the cumulative weights, so the last CDF is exactly 1
            total = cumulative[-1]
            cdfs = (cumulative / total).tolist()
            rtps = (1.0 - before / total).tolist()
            percentiles = ((100.0 / total) * (cumulative - weights / 2.0)).tolist()

            for record, cdf, rtp, percentile in zip(records, cdfs, rtps, percentiles):
                record.cdf = cdf
                record.right_tail_probability = rtp
                record.percentile = percentile
                # Keys ascend, so setdefault leaves a colliding anchor on the smaller key
                quantile_map.setdefault(cdf, record.value)
                percentile_map.setdefault(percentile, record.value)

        self._quantile_map = quantile_map
        self._percentile_map = percentile_map
        self._dirty = False
        logger.debug("Derived distribution fields for %d unique values", len(self._records))

    def _ensure_derived(self, statistic: str) -> None:
        if not self._records:
            raise EmptyDistributionError(f"Cannot compute {statistic} of an empty distribution")
        if self._dirty:
            self.derive()

    # ------------------------------------------------------------------
    # Ordered-map surface
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        """Return the number of distinct values."""
        return len(self._records)

    def __contains__(self, value) -> bool:
        return float(value) in self._records

    def __iter__(self) -> Iterator[float]:
        """Iterate over distinct values in ascending order."""
        return iter(self._records)

    def record(self, value: float) -> Optional[UniqueValueRecord]:
        """Return the record for ``value``, or ``None`` if it was never observed."""
        return self._records.get(float(value))

    def minimum(self) -> float:
        """Return the smallest observed value."""
        if not self._records:
            raise EmptyDistributionError("Cannot compute minimum of an empty distribution")
        return self._records.keys()[0]

    def maximum(self) -> float:
        """Return the largest observed value."""
        if not self._records:
            raise EmptyDistributionError("Cannot compute maximum of an empty distribution")
        return self._records.keys()[-1]

    @staticmethod
    def _query_point(x: float) -> float:
        """Return ``x`` as a float, rejecting NaN, which has no place in the order.

        Infinite points are valid and fall below or above every observed value.
        """
        point = float(x)
        if np.isnan(point):
            raise NonFiniteValueError(f"Query point must not be NaN, got {x!r}")
        return point

    def floor_key(self, x: float) -> Optional[float]:
        """Return the greatest observed value ``<= x``, or ``None``."""
        idx = self._records.bisect_right(self._query_point(x))
        if idx == 0:
            return None
        return self._records.keys()[idx - 1]

    def ceiling_key(self, x: float) -> Optional[float]:
        """Return the smallest observed value ``>= x``, or ``None``."""
        idx = self._records.bisect_left(self._query_point(x))
        if idx == len(self._records):
            return None
        return self._records.keys()[idx]

    def predecessor(self, key: float) -> Optional[float]:
        """Return the greatest observed value strictly below ``key``, or ``None``."""
        idx = self._records.bisect_left(self._query_point(key))
        if idx == 0:
            return None
        return self._records.keys()[idx - 1]

    def successor(self, key: float) -> Optional[float]:
        """Return the smallest observed value strictly above ``key``, or ``None``."""
        idx = self._records.bisect_right(self._query_point(key))
        if idx == len(self._records):
            return None
        return self._records.keys()[idx]

    def range_keys(self, lower: Optional[float] = None, upper: Optional[float] = None) -> List[float]:
        """Return observed values in ``[lower, upper]`` in ascending order.

        Either bound may be ``None`` to leave that side open, so
        ``range_keys(upper=x)`` lists every value ``<= x`` and
        ``range_keys(lower=y)`` every value ``>= y``.
        """
        if lower is not None:
            lower = self._query_point(lower)
        if upper is not None:
            upper = self._query_point(upper)
        return list(self._records.irange(lower, upper))

    # ------------------------------------------------------------------
    # Keyed and total queries
    # ------------------------------------------------------------------

    def weight(self, value: Optional[float] = None) -> Optional[float]:
        """Return the aggregate weight of ``value``, or the total weight when omitted.

        Returns ``None`` for a value that was never observed.
        """
        if value is None:
            return self._moments.weight()
        record = self.record(value)
        return None if record is None else record.weight

    def count(self, value: Optional[float] = None) -> Optional[int]:
        """Return the number of observations of ``value``, or of all values when omitted.

        Returns ``None`` for a value that was never observed.
        """
        if value is None:
            return self._moments.count()
        record = self.record(value)
        return None if record is None else record.count

    def mode(self) -> float:
        """Return the value with the largest aggregate weight.

        When several values share the maximum weight, the first to reach it
        is reported.
        """
        if self._mode is None:
            raise EmptyDistributionError("Cannot compute mode of an empty distribution")
        return self._mode

    # ------------------------------------------------------------------
    # Distribution queries
    # ------------------------------------------------------------------

    def cdf(self, x: float) -> float:
        """Return the fraction of total weight at or below ``x``.

        Raises:
            EmptyDistributionError: If nothing has been accepted.
            NonFiniteValueError: If ``x`` is NaN.
        """
        self._ensure_derived("CDF")
        key = self.floor_key(x)
        if key is None:
            return 0.0
        return self._records[key].cdf

    def survival(self, x: float) -> float:
        """Return the fraction of total weight strictly above ``x``."""
        self._ensure_derived("survival function")
        key = self.floor_key(x)
        if key is None:
            return 1.0
        return 1.0 - self._records[key].cdf

    def rtp(self, x: float) -> float:
        """Return the right-tail probability, the fraction of total weight at or above ``x``."""
        self._ensure_derived("right-tail probability")
        key = self.ceiling_key(x)
        if key is None:
            return 0.0
        return self._records[key].right_tail_probability

    def quantile(self, p: float) -> float:
        """Return the smallest observed value whose CDF is at least ``p``.

        Args:
            p: Cumulative probability in [0, 1].

        Raises:
            OutOfRangeArgumentError: If ``p`` is outside [0, 1].
            EmptyDistributionError: If nothing has been observed.
        """
        if not 0.0 <= p <= 1.0:
            raise OutOfRangeArgumentError("quantile", p, (0.0, 1.0))
        self._ensure_derived("quantile")
        idx = self._quantile_map.bisect_left(p)
        return self._quantile_map.peekitem(idx)[1]

    def quantiles(self, qs: List[float]) -> Dict[str, float]:
        """Return several quantiles keyed by :func:`format_quantile_key`."""
        return {format_quantile_key(q): self.quantile(q) for q in sorted(qs)}

    def percentile(self, p: float) -> float:
        """Return the value at percentile ``p`` by interpolating between anchors.

        Below the first anchor the minimum is returned and above the last
        anchor the maximum; between anchors the result is linear in ``p``.

        Args:
            p: Percentile in [0, 100].

        Raises:
            OutOfRangeArgumentError: If ``p`` is outside [0, 100].
            EmptyDistributionError: If nothing has been observed.
        """
        if not 0.0 <= p <= 100.0:
            raise OutOfRangeArgumentError("percentile", p, (0.0, 100.0))
        self._ensure_derived("percentile")

        cached = self._percentile_cache.get(p)
        if cached is not None:
            return cached

        anchors = self._percentile_map
        if p < anchors.keys()[0]:
            result = self.minimum()
        elif p > anchors.keys()[-1]:
            result = self.maximum()
        else:
            p_lo, v_lo = anchors.peekitem(anchors.bisect_right(p) - 1)
            p_hi, v_hi = anchors.peekitem(anchors.bisect_left(p))
            if p_hi == p_lo:
                result = v_lo
            else:
                result = v_lo + (p - p_lo) / (p_hi - p_lo) * (v_hi - v_lo)

        self._percentile_cache[p] = result
        return result

    def median(self) -> float:
        """Return the 50th percentile, cached until the next accepted observation."""
        if self._median is None:
            self._median = self.percentile(50)
        return self._median

    # ------------------------------------------------------------------
    # Bulk read
    # ------------------------------------------------------------------

    def snapshot(self) -> DistributionSnapshot:
        """Return every stored field as aligned arrays.

        Per-value arrays are in ascending value order; per-observation arrays
        are in insertion order. An empty index yields empty arrays.
        """
        if self._dirty:
            self.derive()

        n_obs = self._next_order - 1
        values = np.empty(n_obs, dtype=np.float64)
        weights = np.empty(n_obs, dtype=np.float64)
        records = list(self._records.values())

        for record in records:
            positions = np.asarray(record.insertion_orders, dtype=np.int64) - 1
            values[positions] = record.value
            weights[positions] = record.weights

        return DistributionSnapshot(
            unique_values=np.array([r.value for r in records], dtype=np.float64),
            sum_weights=np.array([r.weight for r in records], dtype=np.float64),
            counts=np.array([r.count for r in records], dtype=np.int64),
            cdfs=np.array([r.cdf for r in records], dtype=np.float64),
            rtps=np.array([r.right_tail_probability for r in records], dtype=np.float64),
            percentiles=np.array([r.percentile for r in records], dtype=np.float64),
            values=values,
            weights=weights,
            insertion_orders=np.arange(1, n_obs + 1, dtype=np.int64),
        )
