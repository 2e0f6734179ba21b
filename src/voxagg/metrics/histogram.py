"""
Histogram based Shannon entropy.
"""

import numpy as np
from scipy.ndimage import convolve1d
from scipy.stats import entropy

# Cubic B-spline Parzen window evaluated at the bin centres.
PARZEN_KERNEL = np.array([1.0 / 6.0, 2.0 / 3.0, 1.0 / 6.0])


def histogram_counts(values: np.ndarray, bins: int = 64) -> np.ndarray:
    """
    Fixed-width histogram spanning the sample range.

    Parameters
    ----------
    values : array-like
        Sample values without NaNs.
    bins : int
        Number of bins. Default 64.

    Returns
    -------
    np.ndarray
        Bin counts as float64.
    """
    values = np.asarray(values, dtype=np.float64)
    counts, _ = np.histogram(values, bins=bins, range=(values.min(), values.max()))
    return counts.astype(np.float64)


def parzen_smooth(counts: np.ndarray) -> np.ndarray:
    """Smooth histogram bin counts with a Parzen window."""
    return convolve1d(np.asarray(counts, dtype=np.float64), PARZEN_KERNEL, mode="constant", cval=0.0)


def histogram_entropy(values, bins: int = 64, parzen: bool = False) -> float:
    """
    Shannon entropy of the intensity histogram.

    Parameters
    ----------
    values : array-like
        Sample values. NaNs are ignored.
    bins : int
        Number of histogram bins. Default 64.
    parzen : bool
        Smooth the bin counts with a Parzen window before evaluating the
        entropy. Default False.

    Returns
    -------
    float
        Entropy in nats. 0 if all samples are equal or there are none.

    Raises
    ------
    ValueError
        If *bins* is less than one.
    """
    if bins < 1:
        raise ValueError(f"Number of histogram bins must be positive, got {bins}")
    values = np.asarray(values, dtype=np.float64)
    values = values[~np.isnan(values)]
    if values.size == 0:
        return 0.0
    if values.min() >= values.max():
        return 0.0
    counts = histogram_counts(values, bins=bins)
    if parzen:
        counts = parzen_smooth(counts)
    return float(entropy(counts))
