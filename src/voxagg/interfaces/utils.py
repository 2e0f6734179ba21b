"""Shared utility functions for interfaces.

This module provides parsing helpers for configuration values and the
provenance sidecar written next to every output image.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path

import pandas as pd

from voxagg.aggregation.pipeline import AggregationResult

logger = logging.getLogger(__name__)

_TRUE_STRINGS: frozenset[str] = frozenset({"yes", "on", "true", "1"})
_FALSE_STRINGS: frozenset[str] = frozenset({"no", "off", "false", "0"})


def _parse_log_level(value: str | int | None) -> int:
    """Return a logging level from common string/int inputs.

    Parameters
    ----------
    value
        The value to parse.

    Returns
    -------
    int
        The logging level.

    Examples
    --------
    >>> _parse_log_level("INFO")
    20
    >>> _parse_log_level("DEBUG")
    10
    >>> _parse_log_level(logging.WARNING)
    30
    >>> _parse_log_level(None)
    20
    """
    if value is None:
        return logging.INFO
    if isinstance(value, int):
        return value
    return getattr(logging, str(value).upper(), logging.INFO)


def _parse_bool(value: str | bool | int | None) -> bool:
    """Return a boolean from ``yes/no/on/off/true/false`` style inputs.

    Raises
    ------
    ValueError
        If *value* is not a recognised boolean string.

    Examples
    --------
    >>> _parse_bool("on")
    True
    >>> _parse_bool("No")
    False
    """
    if value is None:
        return False
    if isinstance(value, (bool, int)):
        return bool(value)
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise ValueError(f"Invalid boolean value: {value}")


def _parse_padding(value: str | float | None) -> float:
    """Return the padding value as a float; missing values mean NaN."""
    if value is None:
        return math.nan
    return float(value)


def _image_stem(path: Path) -> str:
    """Return the file name of *path* without its NIfTI extension."""
    name = path.name
    if name.endswith(".nii.gz"):
        return name[: -len(".nii.gz")]
    return path.stem


def _as_list(value: Iterable[str] | str | None) -> list[str] | None:
    """Normalize configuration values into a list of strings.

    Parameters
    ----------
    value
        The value to normalize.

    Returns
    -------
    list[str] | None
        The normalized list of strings, or None if the input is None.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return [value]
    return list(value)


def summary_table(result: AggregationResult, inputs: Iterable[Path]) -> pd.DataFrame:
    """Tabulate per-input preprocessing statistics.

    Parameters
    ----------
    result
        Result of the aggregation.
    inputs
        Input image files, in the order they were aggregated.

    Returns
    -------
    pd.DataFrame
        One row per input with columns ``input``, ``foreground_voxels``,
        ``scale`` and ``shift``.
    """
    rows = [
        {
            "input": str(path),
            "foreground_voxels": count,
            "scale": scale,
            "shift": shift,
        }
        for path, count, (scale, shift) in zip(inputs, result.foreground_voxels, result.normalization_parameters)
    ]
    return pd.DataFrame(rows, columns=["input", "foreground_voxels", "scale", "shift"])


def write_aggregation_sidecar(
    image_path: Path,
    inputs: Iterable[Path],
    result: AggregationResult,
    padding: float,
    alpha: float | None = None,
    bins: int | None = None,
    parzen: bool | None = None,
    intersection: bool = False,
) -> Path:
    """Write a JSON sidecar file alongside an aggregate image.

    The sidecar captures provenance: which images were aggregated, with
    which function, and what processing parameters were applied.

    Parameters
    ----------
    image_path
        Path to the aggregate NIfTI file. The JSON will share its stem.
    inputs
        Paths of the aggregated input images.
    result
        Result of the aggregation.
    padding
        Padding value of the input images (NaN if unset).
    alpha
        Alpha of the generalized entropy index, if used.
    bins
        Number of histogram bins, if used.
    parzen
        Whether Parzen window smoothing was used, if applicable.
    intersection
        Whether the intersection of the input foregrounds was aggregated.

    Returns
    -------
    Path
        Path to the written JSON sidecar file.
    """
    try:
        from importlib.metadata import version as pkg_version

        software_version = pkg_version("voxagg")
    except Exception:
        software_version = "unknown"

    sidecar: dict = {
        "inputs": [str(path) for path in inputs],
        "aggregation": result.mode.value,
        "normalization": result.normalization.value,
        "padding": None if math.isnan(padding) else padding,
        "alpha": alpha,
        "bins": bins,
        "parzen": parzen,
        "foreground": "intersection" if intersection else "union",
        "foreground_voxels": result.n_foreground,
        "positivity_shift": result.positivity_shift,
        "software_version": software_version,
        "timestamp": datetime.now(tz=timezone.utc).isoformat(),
    }

    json_path = image_path.with_name(_image_stem(image_path) + ".json")
    json_path.write_text(json.dumps(sidecar, indent=2) + "\n")
    logger.debug("Wrote aggregation sidecar to %s", json_path)
    return json_path
