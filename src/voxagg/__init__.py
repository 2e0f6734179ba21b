"""Voxel-wise aggregation of co-registered intensity images.

This package evaluates a statistic (mean, median, standard deviation, Gini
coefficient, Theil index, generalized entropy index or Shannon entropy) over
the intensities of several images at every voxel. It provides a Python API
around :func:`aggregate_volumes` and a command line interface.
"""

from voxagg.aggregation import AggregationResult, aggregate_volumes
from voxagg.metrics import AggregationMode
from voxagg.preprocessing import NormalizationMode
from voxagg.utils import Volume, load_volume, save_volume

__all__ = [
    "AggregationMode",
    "AggregationResult",
    "NormalizationMode",
    "Volume",
    "aggregate_volumes",
    "load_volume",
    "save_volume",
]
