"""Exception hierarchy for weighted distribution ingestion and queries.

All exceptions derive from :class:`WeightedStatsError`. The concrete classes
also derive from :class:`ValueError` so callers that already guard numeric
code with ``except ValueError`` keep working.

Examples:
    Distinguishing an empty engine from a bad argument::

        try:
            value = dist.quantile(p)
        except EmptyDistributionError:
            value = float("nan")
        except OutOfRangeArgumentError as e:
            print(f"bad quantile {e.argument}, expected {e.bounds}")
"""

from typing import List, Sequence, Tuple


class WeightedStatsError(Exception):
    """Base class for all weighted_descriptive errors."""


class ShapeMismatchError(WeightedStatsError, ValueError):
    """Raised when values and weights cannot be paired.

    No observation of the offending call is accepted.

    Attributes:
        values_shape: Shape of the supplied values.
        weights_shape: Shape of the supplied weights, or ``None`` when the
            values themselves were malformed.
    """

    def __init__(self, message: str, values_shape: Tuple[int, ...], weights_shape=None) -> None:
        self.values_shape = values_shape
        self.weights_shape = weights_shape
        super().__init__(message)


class InvalidWeightError(WeightedStatsError, ValueError):
    """Raised for non-positive weights when the skip policy is disabled.

    Attributes:
        indices: Positions of the offending pairs in the input sequences.
    """

    def __init__(self, indices: Sequence[int]) -> None:
        self.indices: List[int] = list(indices)
        shown = ", ".join(str(i) for i in self.indices[:10])
        if len(self.indices) > 10:
            shown += ", ..."
        super().__init__(
            f"{len(self.indices)} "
            f"{'observation has' if len(self.indices) == 1 else 'observations have'} "
            f"a non-positive weight (positions: {shown})"
        )


class NonFiniteValueError(WeightedStatsError, ValueError):
    """Raised when an observed value is NaN or infinite."""


class EmptyDistributionError(WeightedStatsError, ValueError):
    """Raised when a statistic is requested before any observation is accepted."""


class InsufficientDataError(EmptyDistributionError):
    """Raised when a statistic needs more observations than have been accepted.

    Attributes:
        required: Minimum number of observations the statistic needs.
        available: Number of observations accepted so far.
    """

    def __init__(self, statistic: str, required: int, available: int) -> None:
        self.required = required
        self.available = available
        super().__init__(
            f"{statistic} requires at least {required} observations, got {available}"
        )


class OutOfRangeArgumentError(WeightedStatsError, ValueError):
    """Raised when a probability-like argument falls outside its domain.

    Attributes:
        argument: The rejected argument.
        bounds: Inclusive ``(low, high)`` domain of the argument.
    """

    def __init__(self, name: str, argument: float, bounds: Tuple[float, float]) -> None:
        self.argument = argument
        self.bounds = bounds
        super().__init__(
            f"{name} must be between {bounds[0]} and {bounds[1]} inclusive, got {argument}"
        )
