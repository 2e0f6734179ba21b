"""Intensity normalisation of input volumes.

Each volume is rescaled as ``x' = s * x + t`` where the scale ``s`` and shift
``t`` are derived from summary statistics of its own foreground. Background
samples are left untouched.
"""

from __future__ import annotations

import logging
from enum import Enum

import numpy as np

from voxagg.preprocessing.foreground import foreground_mask
from voxagg.utils.image import Volume

logger = logging.getLogger(__name__)

#: Absolute tolerance below which a statistic is treated as zero.
ZERO_TOLERANCE = 1e-12

_TRUE_STRINGS = frozenset({"yes", "on", "true", "1"})
_FALSE_STRINGS = frozenset({"no", "off", "false", "0"})


class NormalizationMode(str, Enum):
    """Input intensity normalisation strategies."""

    NONE = "none"
    MEAN = "mean"
    MEDIAN = "median"
    ZSCORE = "zscore"
    UNIT_RANGE = "unit"


_ALIASES: dict[str, NormalizationMode] = {
    "z-score": NormalizationMode.ZSCORE,
    "unit-range": NormalizationMode.UNIT_RANGE,
}


def _is_zero(value: float) -> bool:
    return abs(value) < ZERO_TOLERANCE


def parse_normalization_mode(value: NormalizationMode | str | bool | None) -> NormalizationMode:
    """Return the normalisation mode named by *value*.

    Boolean-like values select z-score normalisation when true and no
    normalisation when false.

    Raises
    ------
    ValueError
        If *value* does not name a normalisation mode.
    """
    if value is None:
        return NormalizationMode.NONE
    if isinstance(value, NormalizationMode):
        return value
    if isinstance(value, bool):
        return NormalizationMode.ZSCORE if value else NormalizationMode.NONE
    name = str(value).strip().lower()
    if name in _TRUE_STRINGS:
        return NormalizationMode.ZSCORE
    if name in _FALSE_STRINGS:
        return NormalizationMode.NONE
    if name in _ALIASES:
        return _ALIASES[name]
    try:
        return NormalizationMode(name)
    except ValueError:
        raise ValueError(f"Invalid normalization mode: {value}") from None


def normalization_parameters(values: np.ndarray, mode: NormalizationMode) -> tuple[float, float]:
    """Compute the scale and shift that normalise *values*.

    Parameters
    ----------
    values : np.ndarray
        Foreground samples of one volume.
    mode : NormalizationMode
        Normalisation strategy.

    Returns
    -------
    tuple[float, float]
        ``(scale, shift)``. Degenerate distributions (zero mean, median,
        standard deviation or range) fall back to unit scale.
    """
    scale, shift = 1.0, 0.0
    if mode is NormalizationMode.NONE or values.size == 0:
        return scale, shift

    if mode is NormalizationMode.MEAN:
        mean = float(np.mean(values))
        if not _is_zero(mean):
            scale = 1.0 / mean
    elif mode is NormalizationMode.MEDIAN:
        median = float(np.median(values))
        if not _is_zero(median):
            scale = 1.0 / median
    elif mode is NormalizationMode.ZSCORE:
        mean = float(np.mean(values))
        sigma = float(np.std(values))
        if not _is_zero(sigma):
            scale = 1.0 / sigma
            shift = -mean / sigma
        else:
            shift = -mean
    elif mode is NormalizationMode.UNIT_RANGE:
        min_value = float(np.min(values))
        value_range = float(np.max(values)) - min_value
        if not _is_zero(value_range):
            scale = 1.0 / value_range
            shift = -min_value / value_range
        else:
            shift = -min_value
    return scale, shift


def normalize_volume(volume: Volume, mode: NormalizationMode | str = NormalizationMode.ZSCORE) -> tuple[float, float]:
    """Normalise the foreground intensities of *volume* in place.

    Parameters
    ----------
    volume : Volume
        Volume to modify.
    mode : NormalizationMode | str, optional
        Normalisation strategy, by default z-score.

    Returns
    -------
    tuple[float, float]
        The applied ``(scale, shift)``.
    """
    mode = parse_normalization_mode(mode)
    if mode is NormalizationMode.NONE:
        return 1.0, 0.0

    mask = foreground_mask(volume)
    if not mask.any():
        logger.warning("Volume has no foreground voxels; skipping %s normalization", mode.value)
        return 1.0, 0.0

    scale, shift = normalization_parameters(volume.data[mask], mode)
    if scale != 1.0 or shift != 0.0:
        volume.data[mask] = scale * volume.data[mask] + shift
    logger.debug("Applied %s normalization with scale=%g, shift=%g", mode.value, scale, shift)
    return scale, shift
