"""Custom warning classes for the weighted_descriptive package.

These warning classes allow users to programmatically filter, suppress,
or capture warnings using Python's standard ``warnings`` module.

Example:
    Suppress skipped-weight warnings during a bulk load::

        import warnings
        from weighted_descriptive._warnings import InvalidWeightWarning

        warnings.filterwarnings("ignore", category=InvalidWeightWarning)

    Count how many observations were dropped by an ``add`` call::

        with warnings.catch_warnings(record=True) as w:
            warnings.simplefilter("always", InvalidWeightWarning)
            dist.add(values, weights)
            skipped = [x for x in w if issubclass(x.category, InvalidWeightWarning)]
"""


class WeightedStatsWarning(UserWarning):
    """Base class for all weighted_descriptive warnings."""


class InvalidWeightWarning(WeightedStatsWarning):
    """An observation was skipped because its weight was not positive.

    Emitted once per skipped ``(value, weight)`` pair. The remaining pairs
    of the same ``add`` call are still accepted.
    """
