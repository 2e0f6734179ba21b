"""Foreground/background classification of input volumes."""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np

from voxagg.utils.image import Volume

logger = logging.getLogger(__name__)


def is_foreground(volume: Volume, index: int) -> bool:
    """Return whether the sample at flat *index* is foreground.

    A sample is foreground if it is not NaN and differs from the background
    value of the volume.
    """
    value = volume.data.flat[index]
    return bool(not np.isnan(value) and value != volume.background)


def foreground_mask(volume: Volume) -> np.ndarray:
    """Boolean mask of the foreground samples of *volume*.

    Parameters
    ----------
    volume : Volume
        Input volume.

    Returns
    -------
    np.ndarray
        Boolean array with the shape of the volume. NaN samples are always
        background.
    """
    mask = ~np.isnan(volume.data)
    if not np.isnan(volume.background):
        mask &= volume.data != volume.background
    return mask


def unify_background(volume: Volume, padding: float = np.nan) -> Volume:
    """Mark padding samples as NaN and make NaN the background value.

    Parameters
    ----------
    volume : Volume
        Volume to modify in place.
    padding : float, optional
        Intensity of samples to exclude. Ignored when NaN, by default NaN.

    Returns
    -------
    Volume
        The modified volume.
    """
    if not np.isnan(padding):
        padded = volume.data == padding
        volume.data[padded] = np.nan
        logger.debug("Replaced %d padding samples by NaN", int(padded.sum()))
    volume.background = np.nan
    return volume


def output_foreground_mask(masks: Sequence[np.ndarray], intersection: bool = False) -> np.ndarray:
    """Combine per-volume foreground masks into the output foreground.

    Parameters
    ----------
    masks : Sequence[np.ndarray]
        Foreground masks of the input volumes.
    intersection : bool, optional
        When True a voxel is foreground only if it is foreground in every
        input. Otherwise (default) it is foreground if it is foreground in
        any input.

    Returns
    -------
    np.ndarray
        Boolean output mask.
    """
    stacked = np.stack(masks)
    if intersection:
        return stacked.all(axis=0)
    return stacked.any(axis=0)
