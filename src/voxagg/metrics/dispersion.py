"""
Measures of inequality for a set of samples.

All measures in this module are defined for strictly positive distributions.
Samples are therefore shifted in place so that their minimum becomes a small
positive number before evaluation. Callers that need the original values must
pass a copy.
"""

import numpy as np


def _shift_to_positive(samples: np.ndarray) -> np.ndarray:
    """Shift *samples* in place so that all values are strictly positive.

    Parameters
    ----------
    samples : np.ndarray
        Sample values. Modified in place when the minimum is not positive.

    Returns
    -------
    np.ndarray
        The same array, shifted when necessary.
    """
    shift = samples.min()
    if shift <= 0:
        if np.issubdtype(samples.dtype, np.integer):
            shift -= 1
        else:
            shift -= 1e-6
        samples -= shift
    return samples


def gini_coefficient(samples: np.ndarray) -> float:
    """Gini coefficient of a sample distribution.

    Parameters
    ----------
    samples : np.ndarray
        Sampled values of the distribution. Shifted to be positive and sorted
        ascending in place.

    Returns
    -------
    float
        Gini coefficient in [0, 1). It is 0 when all values are equal and
        approaches 1 when a single value dominates.

    Notes
    -----
    With zero-based rank ``i`` the coefficient is
    ``sum((2 i - n + 1) x_i) / (n sum(x_i))``.
    """
    n = samples.size
    if n == 0:
        return 0.0
    _shift_to_positive(samples)
    samples.sort()
    ranks = 2.0 * np.arange(n) - n + 1
    return float(np.dot(ranks, samples) / (n * samples.sum()))


def generalized_entropy_index(samples: np.ndarray, alpha: float = 1) -> float:
    """Generalized entropy index GE(alpha).

    Parameters
    ----------
    samples : np.ndarray
        Sampled values of the distribution. Shifted to be positive in place.
    alpha : float, optional
        Weight given to distances between values at different parts of the
        distribution, by default 1. ``alpha=0`` is the mean log deviation,
        ``alpha=1`` the Theil index and ``alpha=2`` half the squared
        coefficient of variation.

    Returns
    -------
    float
        The entropy index. 0 for a constant distribution.

    Raises
    ------
    ValueError
        If *alpha* is negative.
    """
    if alpha < 0:
        raise ValueError("alpha must be non-negative")
    n = samples.size
    if n == 0:
        return 0.0
    _shift_to_positive(samples)
    mean = samples.mean()
    if alpha == 0:
        total = -np.sum(np.log(samples / mean))
    elif alpha == 1:
        ratio = samples / mean
        total = np.sum(ratio * np.log(ratio))
    elif alpha == 2:
        total = (np.sum(np.square(samples)) / (mean * mean) - n) / 2
    else:
        total = (np.sum(np.power(samples / mean, alpha)) - n) / (alpha * (alpha - 1))
    return float(total / n)


def mean_log_deviation(samples: np.ndarray) -> float:
    """Mean log deviation, i.e. GE(0)."""
    return generalized_entropy_index(samples, alpha=0)


def theil_index(samples: np.ndarray) -> float:
    """
    Theil T index.

    Parameters
    ----------
    samples : np.ndarray
        Sampled values of the distribution. Shifted to be positive in place.

    Returns
    -------
    float
        ``mean((x / mu) log(x / mu))``; equal to GE(1).
    """
    if samples.size == 0:
        return 0.0
    _shift_to_positive(samples)
    ratio = samples / samples.mean()
    return float(np.mean(ratio * np.log(ratio)))
