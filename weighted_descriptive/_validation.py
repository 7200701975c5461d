"""Input coercion shared by every ``add`` entry point.

Values and weights arrive as arbitrary sequences; this module turns them
into aligned float arrays and applies the non-positive weight policy before
any accumulator state is touched.
"""

import logging
from typing import Any, Dict, Optional, Tuple
import warnings

import numpy as np

from ._warnings import InvalidWeightWarning
from .exceptions import InvalidWeightError, NonFiniteValueError, ShapeMismatchError

logger = logging.getLogger(__name__)

SKIP = "skip"
RAISE = "raise"


def coerce_observations(
    values,
    weights=None,
    invalid_weight_policy: str = SKIP,
    warn: bool = True,
    stacklevel: int = 3,
) -> Tuple[np.ndarray, np.ndarray]:
    """Pair values with weights and drop the pairs that cannot be accepted.

    Args:
        values: One-dimensional sequence of observed values.
        weights: Optional sequence of weights with the same length as
            ``values``, or a scalar applied to every value. Defaults to 1,
            and ``None`` entries of a list or tuple default to 1 as well.
        invalid_weight_policy: ``"skip"`` or ``"raise"``.
        warn: Emit one :class:`InvalidWeightWarning` per skipped pair.
        stacklevel: Passed to :func:`warnings.warn` so the warning points at
            the caller's ``add`` call.

    Returns:
        Tuple of ``(values, weights)`` float arrays holding only the accepted
        pairs, in input order.

    Raises:
        ShapeMismatchError: If values are not one-dimensional (ragged
            nesting included) or weights do not match them.
        NonFiniteValueError: If any value is NaN or infinite.
        InvalidWeightError: If a weight is not positive and the policy is
            ``"raise"``.
    """
    x = _as_float_array(values, "values")
    if x.ndim != 1:
        logger.debug("Rejected values with shape %s", x.shape)
        raise ShapeMismatchError(
            f"Expected a one-dimensional sequence of values, got shape {x.shape}", x.shape
        )

    w = _coerce_weights(x, weights)

    if not np.all(np.isfinite(x)):
        raise NonFiniteValueError(
            f"Observed values must be finite, got {int(np.sum(~np.isfinite(x)))} NaN/inf values"
        )

    # NaN and inf weights are rejected along with non-positive ones
    invalid = ~(np.isfinite(w) & (w > 0))
    if not np.any(invalid):
        return x, w

    bad = np.flatnonzero(invalid)
    if invalid_weight_policy == RAISE:
        raise InvalidWeightError(bad.tolist())
    if invalid_weight_policy != SKIP:
        raise ValueError(f"Unknown invalid_weight_policy: {invalid_weight_policy!r}")

    if warn:
        for i in bad:
            warnings.warn(
                f"Skipped observation {int(i)} (value={x[i]!r}) with non-positive "
                f"weight {w[i]!r}",
                InvalidWeightWarning,
                stacklevel=stacklevel,
            )
    logger.warning("Skipped %d of %d observations with non-positive weights", len(bad), len(x))

    keep = ~invalid
    return x[keep], w[keep]


def ingest_options(config) -> Dict[str, Any]:
    """Translate a ``DistributionConfig`` into :func:`coerce_observations` keyword arguments."""
    if config is None:
        return {}
    return {
        "invalid_weight_policy": config.invalid_weight_policy,
        "warn": config.warn_on_skipped_weights,
    }


def _as_float_array(data, label: str, values_length: Optional[int] = None) -> np.ndarray:
    """Convert ``data`` to float64, reporting ragged nesting as a shape problem."""
    try:
        return np.asarray(data, dtype=np.float64)
    except ValueError as e:
        ragged = isinstance(data, (list, tuple)) and any(
            np.iterable(item) and not isinstance(item, str) for item in data
        )
        if not ragged:
            raise
        logger.debug("Rejected ragged %s of length %d", label, len(data))
        if values_length is None:
            raise ShapeMismatchError(
                f"Expected a one-dimensional sequence of {label}, got ragged nesting",
                (len(data),),
            ) from e
        raise ShapeMismatchError(
            f"Expected a one-dimensional sequence of {label}, got ragged nesting "
            f"for {values_length} values",
            (values_length,),
            (len(data),),
        ) from e


def _coerce_weights(x: np.ndarray, weights: Optional[object]) -> np.ndarray:
    if weights is None:
        return np.ones(len(x), dtype=np.float64)
    if isinstance(weights, (list, tuple)):
        # Omitted entries default to 1 like an omitted weight sequence
        weights = [1.0 if wi is None else wi for wi in weights]

    w = _as_float_array(weights, "weights", len(x))
    if w.ndim == 0:
        return np.full(len(x), float(w), dtype=np.float64)
    if w.shape != x.shape:
        logger.debug("Rejected weights with shape %s for values %s", w.shape, x.shape)
        raise ShapeMismatchError(
            f"Values and weights must have equal length, got {x.shape} and {w.shape}",
            x.shape,
            w.shape,
        )
    return w
