"""Volume container and NIfTI I/O helpers."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import nibabel as nib
import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class Volume:
    """A scalar image sampled on a regular grid.

    Parameters
    ----------
    data : np.ndarray
        Voxel intensities. Stored as float64.
    affine : np.ndarray
        Voxel-to-world transform. Together with the array shape this defines
        the geometry that all inputs of a run must share.
    background : float
        Intensity that marks background voxels. NaN samples are always
        background regardless of this value.
    header : nib.Nifti1Header | None
        Header of the image the volume was read from, if any.
    """

    data: np.ndarray
    affine: np.ndarray = field(default_factory=lambda: np.eye(4))
    background: float = np.nan
    header: nib.Nifti1Header | None = None

    def __post_init__(self) -> None:
        self.data = np.asarray(self.data, dtype=np.float64)
        self.affine = np.asarray(self.affine, dtype=np.float64)

    @property
    def shape(self) -> tuple[int, ...]:
        """Grid dimensions."""
        return self.data.shape

    @property
    def n_voxels(self) -> int:
        """Total number of voxels."""
        return int(self.data.size)

    def same_geometry(self, other: Volume) -> bool:
        """Return whether *other* is defined on the same grid."""
        return self.shape == other.shape and np.allclose(self.affine, other.affine)

    def copy(self) -> Volume:
        return Volume(
            data=self.data.copy(),
            affine=self.affine.copy(),
            background=self.background,
            header=self.header,
        )


def _load_nifti(img: nib.Nifti1Image | str | Path) -> nib.Nifti1Image:
    """Return *img* as a NIfTI image, loading it from disk when given a path."""
    if isinstance(img, (str, Path)):
        return nib.load(str(img))
    return img


def load_volume(img: nib.Nifti1Image | str | Path) -> Volume:
    """Read a scalar image into a :class:`Volume`.

    Parameters
    ----------
    img : nib.Nifti1Image | str | Path
        Image or path to an image readable by nibabel.

    Returns
    -------
    Volume
        Float64 copy of the image data with its affine and header.

    Raises
    ------
    ValueError
        If the image has more than three spatial dimensions and a non-singleton
        fourth axis (vector-valued voxels are not supported).
    """
    nifti = _load_nifti(img)
    data = np.asarray(nifti.get_fdata(), dtype=np.float64)
    if data.ndim > 3:
        if any(size != 1 for size in data.shape[3:]):
            raise ValueError(f"Expected a scalar image, got shape {data.shape}")
        data = data.reshape(data.shape[:3])
    logger.debug("Loaded volume with shape %s", data.shape)
    return Volume(data=data, affine=nifti.affine, header=nifti.header)


def save_volume(volume: Volume, path: str | Path, dtype: np.dtype | type = np.float32) -> Path:
    """Write *volume* as a NIfTI image.

    Parameters
    ----------
    volume : Volume
        Volume to write.
    path : str | Path
        Destination file name (``.nii`` or ``.nii.gz``).
    dtype : np.dtype | type, optional
        On-disk data type, by default float32.

    Returns
    -------
    Path
        The written file.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    header = volume.header.copy() if volume.header is not None else None
    img = nib.Nifti1Image(volume.data.astype(dtype), volume.affine, header=header)
    img.set_data_dtype(dtype)
    nib.save(img, str(path))
    logger.debug("Wrote volume to %s", path)
    return path
