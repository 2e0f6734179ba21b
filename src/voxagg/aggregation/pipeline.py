"""Aggregate co-registered volumes into a single voxel-wise statistic map.

The pipeline runs the following steps in order:

1. validate the inputs (count and geometry);
2. mark padding samples as background (NaN);
3. optionally normalise the foreground intensities of each volume;
4. for measures of inequality, shift all foreground intensities to be >= 1;
5. initialise the output with the background fill value and determine the
   output foreground from the union or intersection of the input foregrounds;
6. evaluate the aggregation function at each foreground voxel;
7. replace remaining NaNs by a value just below the output minimum.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np

from voxagg.aggregation.volume import VoxelAggregator
from voxagg.metrics.volume import AggregationMode, make_aggregation_function, parse_aggregation_mode
from voxagg.preprocessing.foreground import foreground_mask, output_foreground_mask, unify_background
from voxagg.preprocessing.normalization import NormalizationMode, normalize_volume, parse_normalization_mode
from voxagg.utils.image import Volume

logger = logging.getLogger(__name__)

#: Output background value for all modes except the mean.
BACKGROUND_FILL = 1e-3

#: Offset below the output minimum used to replace NaNs.
NAN_FILL_OFFSET = 1e-3


class InsufficientInputsError(ValueError):
    """Raised when fewer than two input volumes are given."""

    def __init__(self, count: int):
        """Initialize the error."""
        super().__init__(f"At least two input volumes are required, got {count}")


class GeometryMismatchError(ValueError):
    """Raised when input volumes are not defined on the same grid."""

    def __init__(self, index: int):
        """Initialize the error."""
        super().__init__(f"Input volume {index} has different attributes than previous input volumes")
        self.index = index


class NoForegroundError(RuntimeError):
    """Raised when no input volume has any foreground voxel."""

    def __init__(self, padding: float):
        """Initialize the error."""
        super().__init__(f"Neither input volume seems to have any foreground given padding value of {padding}")


@dataclass
class AggregationResult:
    """Output of :func:`aggregate_volumes`."""

    output: Volume
    mask: np.ndarray
    mode: AggregationMode
    normalization: NormalizationMode
    normalization_parameters: list[tuple[float, float]] = field(default_factory=list)
    foreground_voxels: list[int] = field(default_factory=list)
    positivity_shift: float | None = None

    @property
    def n_foreground(self) -> int:
        """Number of aggregated output voxels."""
        return int(self.mask.sum())


def _validate_volumes(volumes: Sequence[Volume]) -> None:
    """Check that at least two volumes with identical geometry are given.

    Raises
    ------
    InsufficientInputsError
        If fewer than two volumes are given.
    GeometryMismatchError
        If a volume differs in shape or affine from the first one.
    """
    if len(volumes) < 2:
        raise InsufficientInputsError(len(volumes))
    reference = volumes[0]
    for index, volume in enumerate(volumes[1:], start=1):
        if not reference.same_geometry(volume):
            raise GeometryMismatchError(index)


def _shift_to_positive(volumes: Sequence[Volume], masks: Sequence[np.ndarray], padding: float) -> float:
    """Shift foreground intensities so that the global minimum becomes 1.

    Background samples are set to zero, which becomes the new background value.

    Returns
    -------
    float
        The subtracted offset.

    Raises
    ------
    NoForegroundError
        If none of the volumes has a foreground voxel.
    """
    minima = [float(volume.data[mask].min()) for volume, mask in zip(volumes, masks) if mask.any()]
    if not minima:
        raise NoForegroundError(padding)
    offset = min(minima) - 1.0
    for volume, mask in zip(volumes, masks):
        volume.data[mask] -= offset
        volume.data[~mask] = 0.0
        volume.background = 0.0
    logger.debug("Shifted foreground intensities by %g", -offset)
    return offset


def _replace_nans(output: Volume) -> None:
    """Replace NaN output values by a value just below the output minimum."""
    nans = np.isnan(output.data)
    if not nans.any():
        return
    if nans.all():
        logger.warning("Output has no finite values; filling with zero")
        output.data[...] = 0.0
        return
    fill = float(np.nanmin(output.data)) - NAN_FILL_OFFSET
    output.data[nans] = fill
    logger.debug("Replaced %d NaN output values by %g", int(nans.sum()), fill)


def aggregate_volumes(
    mode: AggregationMode | str,
    volumes: Sequence[Volume],
    *,
    normalization: NormalizationMode | str | None = NormalizationMode.NONE,
    padding: float = np.nan,
    alpha: float = 0,
    bins: int = 64,
    parzen: bool = False,
    intersection: bool = False,
    n_jobs: int = 1,
) -> AggregationResult:
    """Aggregate the input values at each voxel into one output volume.

    Parameters
    ----------
    mode
        Aggregation function or its name (see
        :func:`~voxagg.metrics.volume.parse_aggregation_mode`).
    volumes
        At least two input volumes defined on the same grid. They are copied
        and left unmodified.
    normalization
        Input intensity normalisation, by default none.
    padding
        Input intensity of background voxels, by default NaN (only NaN
        samples are background).
    alpha
        Alpha of the generalized entropy index, by default 0.
    bins
        Number of histogram bins for the Shannon entropy, by default 64.
    parzen
        Use Parzen window histogram smoothing, by default False.
    intersection
        Aggregate only voxels that are foreground in every input. By default
        voxels that are foreground in at least one input are aggregated.
    n_jobs
        Number of worker processes for the voxel-wise aggregation, by default 1.

    Returns
    -------
    AggregationResult
        Output volume and provenance of the run.

    Raises
    ------
    InsufficientInputsError
        If fewer than two volumes are given.
    GeometryMismatchError
        If the volumes do not share the same geometry.
    NoForegroundError
        If a measure of inequality is requested and no volume has foreground.
    ValueError
        If *alpha* is negative, *bins* is less than one or a mode is unknown.
    """
    mode = parse_aggregation_mode(mode)
    normalization = parse_normalization_mode(normalization)
    function = make_aggregation_function(mode, alpha=alpha, bins=bins, parzen=parzen)
    _validate_volumes(volumes)
    logger.info("Aggregating %d volumes of shape %s using %s", len(volumes), volumes[0].shape, mode.value)

    images = [volume.copy() for volume in volumes]
    for image in images:
        unify_background(image, padding)

    parameters: list[tuple[float, float]] = []
    if normalization is not NormalizationMode.NONE:
        logger.info("Normalizing input volumes (%s)", normalization.value)
    for image in images:
        parameters.append(normalize_volume(image, normalization))

    masks = [foreground_mask(image) for image in images]
    counts = [int(mask.sum()) for mask in masks]
    logger.debug("Foreground voxels per input: %s", counts)

    offset = None
    if mode.is_inequality_measure:
        offset = _shift_to_positive(images, masks, padding)

    background = np.nan if mode is AggregationMode.MEAN else BACKGROUND_FILL
    mask = output_foreground_mask(masks, intersection=intersection)
    reference = images[0]
    output = Volume(
        data=np.full(reference.shape, background, dtype=np.float64),
        affine=reference.affine,
        background=background,
        header=reference.header,
    )
    logger.info(
        "No. of foreground voxels = %d, no. of background voxels = %d",
        int(mask.sum()),
        int(mask.size - mask.sum()),
    )

    logger.info("Performing voxel-wise aggregation")
    VoxelAggregator(n_jobs=n_jobs).aggregate(images, output, mask, function)
    _replace_nans(output)

    return AggregationResult(
        output=output,
        mask=mask,
        mode=mode,
        normalization=normalization,
        normalization_parameters=parameters,
        foreground_voxels=counts,
        positivity_shift=offset,
    )
