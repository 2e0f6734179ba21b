from voxagg.aggregation.pipeline import (
    AggregationResult,
    GeometryMismatchError,
    InsufficientInputsError,
    NoForegroundError,
    aggregate_volumes,
)
from voxagg.aggregation.volume import VoxelAggregator

__all__ = [
    "AggregationResult",
    "GeometryMismatchError",
    "InsufficientInputsError",
    "NoForegroundError",
    "VoxelAggregator",
    "aggregate_volumes",
]
