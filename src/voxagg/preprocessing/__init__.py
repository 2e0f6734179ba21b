"""Per-volume preprocessing: background classification and normalisation."""

from voxagg.preprocessing.foreground import (
    foreground_mask,
    is_foreground,
    output_foreground_mask,
    unify_background,
)
from voxagg.preprocessing.normalization import (
    NormalizationMode,
    normalize_volume,
    parse_normalization_mode,
)

__all__ = [
    "NormalizationMode",
    "foreground_mask",
    "is_foreground",
    "normalize_volume",
    "output_foreground_mask",
    "parse_normalization_mode",
    "unify_background",
]
