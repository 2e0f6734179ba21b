"""Aggregation functions evaluated over the input values at each voxel.

Provides the central tendency and spread statistics (mean, median, standard
deviation), measures of inequality (Gini coefficient, Theil index and the
generalized entropy index family) and a histogram based Shannon entropy.
"""

from voxagg.metrics.base import Aggregator
from voxagg.metrics.dispersion import (
    generalized_entropy_index,
    gini_coefficient,
    mean_log_deviation,
    theil_index,
)
from voxagg.metrics.histogram import histogram_entropy
from voxagg.metrics.volume import (
    BUILTIN_AGGREGATORS,
    AggregationMode,
    make_aggregation_function,
    parse_aggregation_mode,
)

__all__ = [
    "BUILTIN_AGGREGATORS",
    "AggregationMode",
    "Aggregator",
    "generalized_entropy_index",
    "gini_coefficient",
    "histogram_entropy",
    "make_aggregation_function",
    "mean_log_deviation",
    "parse_aggregation_mode",
    "theil_index",
]
