from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True)
class Aggregator:
    """Container for a voxel-wise aggregation function."""

    name: str
    function: Callable[..., float]
    aliases: tuple[str, ...] = ()
    inequality_measure: bool = False
