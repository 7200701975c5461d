"""Weighted descriptive statistics and empirical distributions"""

from ._version import __version__

# Use lazy imports to keep ``import weighted_descriptive`` free of numpy/pandas
# until a class is actually used

__all__ = [
    "__version__",
    "DistributionConfig",
    "DistributionSnapshot",
    "EmptyDistributionError",
    "IndexState",
    "InsufficientDataError",
    "InvalidWeightError",
    "InvalidWeightWarning",
    "LoggingConfig",
    "MomentAccumulator",
    "NonFiniteValueError",
    "OrderStatisticsIndex",
    "OutOfRangeArgumentError",
    "ShapeMismatchError",
    "UniqueValueRecord",
    "WeightedDistribution",
    "WeightedStatsError",
    "WeightedStatsWarning",
    "format_quantile_key",
]


def __getattr__(name):
    """Lazy import modules on first attribute access."""
    if name == "WeightedDistribution":
        from .distribution import WeightedDistribution

        return WeightedDistribution
    elif name == "MomentAccumulator":
        from .moments import MomentAccumulator

        return MomentAccumulator
    elif name in ["IndexState", "OrderStatisticsIndex", "UniqueValueRecord", "format_quantile_key"]:
        from .order_index import (
            IndexState,
            OrderStatisticsIndex,
            UniqueValueRecord,
            format_quantile_key,
        )

        return locals()[name]
    elif name == "DistributionSnapshot":
        from .snapshot import DistributionSnapshot

        return DistributionSnapshot
    elif name == "DistributionConfig" or name == "LoggingConfig":
        from .config import DistributionConfig, LoggingConfig

        return locals()[name]
    elif name in [
        "EmptyDistributionError",
        "InsufficientDataError",
        "InvalidWeightError",
        "NonFiniteValueError",
        "OutOfRangeArgumentError",
        "ShapeMismatchError",
        "WeightedStatsError",
    ]:
        from . import exceptions

        return getattr(exceptions, name)
    elif name == "InvalidWeightWarning" or name == "WeightedStatsWarning":
        from ._warnings import InvalidWeightWarning, WeightedStatsWarning

        return locals()[name]
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
