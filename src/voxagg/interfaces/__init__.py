"""Workflow configuration, execution and output writing."""

from voxagg.interfaces.models import AggregationConfig, AggregationOutput
from voxagg.interfaces.runner import load_config, run_aggregation
from voxagg.interfaces.utils import _parse_log_level, write_aggregation_sidecar

__all__ = [
    "AggregationConfig",
    "AggregationOutput",
    "_parse_log_level",
    "load_config",
    "run_aggregation",
    "write_aggregation_sidecar",
]
