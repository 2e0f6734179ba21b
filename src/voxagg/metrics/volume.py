"""
The catalogue of voxel-wise aggregation functions.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from functools import partial

import numpy as np

from voxagg.metrics.base import Aggregator
from voxagg.metrics.dispersion import generalized_entropy_index, gini_coefficient, theil_index
from voxagg.metrics.histogram import histogram_entropy

AggregationFunction = Callable[[np.ndarray], float]


class AggregationMode(str, Enum):
    """Aggregation functions that can be evaluated at each voxel."""

    MEAN = "mean"
    MEDIAN = "median"
    STDEV = "stdev"
    GINI = "gini"
    THEIL = "theil"
    ENTROPY_INDEX = "entropy-index"
    ENTROPY = "entropy"

    @property
    def is_inequality_measure(self) -> bool:
        """Whether the measure requires strictly positive inputs."""
        return BUILTIN_AGGREGATORS[self].inequality_measure


def mean(values: np.ndarray) -> float:
    """Mean of the non-NaN values."""
    return float(np.nanmean(values))


def median(values: np.ndarray) -> float:
    """Median of the non-NaN values."""
    return float(np.nanmedian(values))


def stdev(values: np.ndarray) -> float:
    """Population standard deviation of the non-NaN values."""
    return float(np.nanstd(values))


BUILTIN_AGGREGATORS: dict[AggregationMode, Aggregator] = {
    AggregationMode.MEAN: Aggregator(name="mean", function=mean, aliases=("mu", "average", "avg")),
    AggregationMode.MEDIAN: Aggregator(name="median", function=median),
    AggregationMode.STDEV: Aggregator(
        name="stdev",
        function=stdev,
        aliases=("stddev", "sdev", "sd", "sigma"),
    ),
    AggregationMode.GINI: Aggregator(
        name="gini",
        function=gini_coefficient,
        aliases=("gini-coefficient",),
        inequality_measure=True,
    ),
    AggregationMode.THEIL: Aggregator(
        name="theil",
        function=theil_index,
        aliases=("theil-index",),
        inequality_measure=True,
    ),
    AggregationMode.ENTROPY_INDEX: Aggregator(
        name="entropy-index",
        function=generalized_entropy_index,
        aliases=("ge", "generalized-entropy-index"),
        inequality_measure=True,
    ),
    AggregationMode.ENTROPY: Aggregator(
        name="entropy",
        function=histogram_entropy,
        aliases=("shannon-entropy",),
    ),
}


def parse_aggregation_mode(value: AggregationMode | str) -> AggregationMode:
    """Return the aggregation mode named by *value*.

    Parameters
    ----------
    value
        A mode or one of its names/aliases (case-insensitive).

    Returns
    -------
    AggregationMode
        The matching mode.

    Raises
    ------
    ValueError
        If *value* does not name a known aggregation function.

    Examples
    --------
    >>> parse_aggregation_mode("SD")
    <AggregationMode.STDEV: 'stdev'>
    >>> parse_aggregation_mode("ge")
    <AggregationMode.ENTROPY_INDEX: 'entropy-index'>
    """
    if isinstance(value, AggregationMode):
        return value
    name = str(value).strip().lower()
    for mode, aggregator in BUILTIN_AGGREGATORS.items():
        if name == aggregator.name or name in aggregator.aliases:
            return mode
    raise ValueError(f"Invalid aggregation mode: {value}")


def make_aggregation_function(
    mode: AggregationMode | str,
    *,
    alpha: float = 0,
    bins: int = 64,
    parzen: bool = False,
) -> AggregationFunction:
    """Bind the parameters of an aggregation function.

    Parameters
    ----------
    mode
        Aggregation mode or its name.
    alpha
        Alpha of the generalized entropy index, by default 0.
    bins
        Number of histogram bins for the Shannon entropy, by default 64.
    parzen
        Use Parzen window smoothing for the Shannon entropy, by default False.

    Returns
    -------
    AggregationFunction
        Callable mapping the values at one voxel to a scalar.

    Raises
    ------
    ValueError
        If *alpha* is negative or *bins* is less than one.
    """
    mode = parse_aggregation_mode(mode)
    function = BUILTIN_AGGREGATORS[mode].function
    if mode is AggregationMode.ENTROPY_INDEX:
        if alpha < 0:
            raise ValueError(f"alpha must be non-negative, got {alpha}")
        return partial(function, alpha=alpha)
    if mode is AggregationMode.ENTROPY:
        if bins < 1:
            raise ValueError(f"Number of histogram bins must be positive, got {bins}")
        return partial(function, bins=bins, parzen=parzen)
    return function
