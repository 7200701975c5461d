"""Online weighted moments.

Implements West's (1979) incremental update of the weighted mean and the
weighted sum of squared deviations. Alongside the moments the accumulator
carries ``H``, the running normalized sum of squared weights
``sum(w_i**2) / sum(w_i)**2``, which turns the biased weighted variance into
an unbiased one for reliability-style weights:

    variance = sum_squares / ((1 - H) * weight)

For unit weights ``H == 1/n`` and this reduces to the familiar ``n - 1``
correction. ``1/H`` is also Kish's effective sample size.

References:
    West, D. H. D. (1979). "Updating Mean and Variance Estimates: An
    Improved Method." Communications of the ACM 22(9), 532-535.
"""

import logging
import math
from typing import TYPE_CHECKING, Dict, Optional

import numpy as np

from ._validation import coerce_observations, ingest_options
from .exceptions import EmptyDistributionError, InsufficientDataError

if TYPE_CHECKING:
    from .config import DistributionConfig

logger = logging.getLogger(__name__)


class MomentAccumulator:
    """Running weighted count, sum, mean, dispersion, min and max.

    Observations are folded in one at a time through ``add`` (or ``fold`` by
    the index that owns the accumulator); every other method is a read of the
    accumulated state.

    Examples:
        >>> acc = MomentAccumulator()
        >>> acc.add([1.0, 2.0, 4.0], [1.0, 1.0, 2.0])
        3
        >>> acc.mean()
        2.75
    """

    def __init__(self, config: Optional["DistributionConfig"] = None):
        """Initialize an empty accumulator.

        Args:
            config: Optional configuration; only the invalid-weight settings
                are used here.
        """
        self._config = config
        self._count = 0
        self._weight = 0.0
        self._sum = 0.0
        self._mean = 0.0
        self._sum_squares = 0.0
        self._weight_homozyg = 0.0
        self._min: Optional[float] = None
        self._max: Optional[float] = None
        self._owner: Optional[object] = None

    def bind(self, owner: object) -> None:
        """Make ``owner`` the only source of observations for this accumulator.

        An order-statistics index binds the accumulator it reports totals
        from and feeds it through :meth:`fold`; afterwards :meth:`add`
        refuses to mutate, so both keep describing the same observations.

        Raises:
            RuntimeError: If the accumulator is already bound.
        """
        if self._owner is not None:
            raise RuntimeError(
                f"MomentAccumulator is already bound to a {type(self._owner).__name__}"
            )
        self._owner = owner

    @property
    def is_bound(self) -> bool:
        """Whether an index owns this accumulator."""
        return self._owner is not None

    def add(self, values, weights=None) -> int:
        """Fold a batch of weighted observations into the running moments.

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
            RuntimeError: If the accumulator is bound to an index; add
                observations through the index instead.
        """
        if self._owner is not None:
            raise RuntimeError(
                f"MomentAccumulator is fed by its {type(self._owner).__name__}; "
                "add observations there"
            )
        x, w = coerce_observations(values, weights, **ingest_options(self._config))
        self.fold(x, w)
        return len(x)

    def fold(self, x: np.ndarray, w: np.ndarray) -> None:
        """Apply the incremental update to arrays returned by ``coerce_observations``.

        No validation happens here. This is the feeding hook for the owning
        index and for :meth:`add`.
        """
        for xi, wi in zip(x.tolist(), w.tolist()):
            oldmean = self._mean
            oldweight = self._weight
            self._weight += wi
            self._weight_homozyg = (oldweight**2 * self._weight_homozyg + wi**2) / self._weight**2
            self._count += 1
            self._sum += wi * xi
            self._mean += (wi / self._weight) * (xi - oldmean)
            self._sum_squares += (wi / self._weight) * (xi - oldmean) ** 2 * oldweight
            if self._min is None or xi < self._min:
                self._min = xi
            if self._max is None or xi > self._max:
                self._max = xi

    def _require(self, statistic: str, n: int = 1) -> None:
        if self._count == 0:
            raise EmptyDistributionError(f"Cannot compute {statistic} of an empty distribution")
        if self._count < n:
            raise InsufficientDataError(statistic, n, self._count)

    def count(self) -> int:
        """Return the number of accepted observations."""
        return self._count

    def weight(self) -> float:
        """Return the sum of accepted weights."""
        return self._weight

    def sum(self) -> float:
        """Return the weighted sum ``sum(w_i * x_i)``."""
        self._require("sum")
        return self._sum

    def mean(self) -> float:
        """Return the weighted mean."""
        self._require("mean")
        return self._mean

    def min(self) -> float:
        """Return the smallest accepted value."""
        self._require("min")
        return self._min

    def max(self) -> float:
        """Return the largest accepted value."""
        self._require("max")
        return self._max

    def sample_range(self) -> float:
        """Return ``max - min``."""
        self._require("sample range")
        return self._max - self._min

    @property
    def sum_squares(self) -> float:
        """Weighted sum of squared deviations from the running mean."""
        return self._sum_squares

    @property
    def weight_homozyg(self) -> float:
        """Normalized sum of squared weights, the ``H`` statistic."""
        return self._weight_homozyg

    def variance(self) -> float:
        """Return the unbiased weighted variance.

        Returns:
            ``sum_squares / ((1 - H) * weight)``.

        Raises:
            EmptyDistributionError: If nothing has been accepted.
            InsufficientDataError: If fewer than two observations have been
                accepted.
        """
        self._require("variance", 2)
        return self._sum_squares / ((1.0 - self._weight_homozyg) * self._weight)

    def standard_deviation(self) -> float:
        """Return the square root of :meth:`variance`."""
        return math.sqrt(self.variance())

    def biased_variance(self) -> float:
        """Return the weighted variance without bias correction, ``sum_squares / weight``."""
        self._require("biased variance")
        return self._sum_squares / self._weight

    def biased_standard_deviation(self) -> float:
        """Return the square root of :meth:`biased_variance`."""
        return math.sqrt(self.biased_variance())

    def effective_sample_size(self) -> float:
        """Return Kish's effective sample size ``(sum w)**2 / sum(w**2)``, i.e. ``1 / H``."""
        self._require("effective sample size")
        return 1.0 / self._weight_homozyg

    def summary(self) -> Dict[str, float]:
        """Return the accumulated statistics as a flat dictionary.

        Variance and standard deviation are ``nan`` while fewer than two
        observations have been accepted.

        Raises:
            EmptyDistributionError: If nothing has been accepted.
        """
        self._require("summary")
        if self._count > 1:
            variance = self.variance()
            std = math.sqrt(variance)
        else:
            variance = std = float("nan")
        return {
            "count": self._count,
            "weight": self._weight,
            "sum": self._sum,
            "mean": self._mean,
            "variance": variance,
            "std": std,
            "biased_variance": self.biased_variance(),
            "biased_std": self.biased_standard_deviation(),
            "min": self._min,
            "max": self._max,
            "range": self._max - self._min,
            "effective_sample_size": self.effective_sample_size(),
        }

    def __len__(self) -> int:
        """Return the number of accepted observations."""
        return self._count

    def __repr__(self) -> str:
        return f"{type(self).__name__}(count={self._count}, weight={self._weight!r})"
