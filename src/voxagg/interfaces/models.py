"""Structured representations of workflow inputs and outputs."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np
import pandas as pd

from voxagg.aggregation.pipeline import AggregationResult
from voxagg.metrics.volume import AggregationMode
from voxagg.preprocessing.normalization import NormalizationMode


@dataclass
class AggregationConfig:
    """Configuration of one aggregation run.

    Collects the options accepted on the command line and in TOML
    configuration files.
    """

    mode: AggregationMode
    inputs: list[Path]
    output: Path
    normalization: NormalizationMode = NormalizationMode.NONE
    padding: float = np.nan
    alpha: float = 0.0
    bins: int = 64
    parzen: bool = False
    intersection: bool = False
    n_jobs: int = 1
    force: bool = False
    write_summary: bool = False
    log_level: int = logging.INFO


@dataclass(frozen=True)
class AggregationOutput:
    """Files written by an aggregation run."""

    result: AggregationResult
    image_path: Path
    sidecar_path: Path
    summary_path: Path | None = None
    summary: pd.DataFrame | None = field(default=None, compare=False)
