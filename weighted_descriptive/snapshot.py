"""Bulk read of a weighted distribution."""

from dataclasses import dataclass

import numpy as np
import pandas as pd


@dataclass(frozen=True, eq=False)
class DistributionSnapshot:
    """Every stored field of an order-statistics index at one point in time.

    The first group of arrays is in ascending order of unique value; the
    second group lists every accepted observation in insertion order.

    Attributes:
        unique_values: Distinct observed values, ascending.
        sum_weights: Aggregate weight per unique value.
        counts: Number of observations per unique value.
        cdfs: Empirical CDF at each unique value.
        rtps: Right-tail probability ``P(X >= v)`` at each unique value.
        percentiles: Percentile anchor of each unique value.
        values: Value of every accepted observation.
        weights: Weight of every accepted observation.
        insertion_orders: 1-based insertion number of every accepted observation.
    """

    unique_values: np.ndarray
    sum_weights: np.ndarray
    counts: np.ndarray
    cdfs: np.ndarray
    rtps: np.ndarray
    percentiles: np.ndarray
    values: np.ndarray
    weights: np.ndarray
    insertion_orders: np.ndarray

    def __len__(self) -> int:
        return len(self.unique_values)

    def to_dataframe(self) -> pd.DataFrame:
        """Convert the per-value fields to a pandas DataFrame.

        Returns:
            DataFrame with one row per unique value and columns ``value``,
            ``weight``, ``count``, ``cdf``, ``rtp`` and ``percentile``.
        """
        return pd.DataFrame(
            {
                "value": self.unique_values,
                "weight": self.sum_weights,
                "count": self.counts,
                "cdf": self.cdfs,
                "rtp": self.rtps,
                "percentile": self.percentiles,
            }
        )

    def observations_frame(self) -> pd.DataFrame:
        """Convert the per-observation fields to a pandas DataFrame.

        Returns:
            DataFrame indexed by insertion order with ``value`` and ``weight``
            columns.
        """
        return pd.DataFrame(
            {"value": self.values, "weight": self.weights},
            index=pd.Index(self.insertion_orders, name="order"),
        )
