"""Utility functions for image loading and processing.

Internal utilities for working with NIfTI images and file I/O.
"""

from voxagg.utils.image import Volume, _load_nifti, load_volume, save_volume

__all__ = ["Volume", "_load_nifti", "load_volume", "save_volume"]
