from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import ProcessPoolExecutor, as_completed

import numpy as np

from voxagg.utils.image import Volume

logger = logging.getLogger(__name__)

AggregationFunction = Callable[[np.ndarray], float]


def _aggregate_chunk(
    columns: np.ndarray,
    mask: np.ndarray,
    function: AggregationFunction,
    start: int,
    stop: int,
) -> tuple[int, int, np.ndarray]:
    """Aggregate the foreground voxels of one chunk.

    Parameters
    ----------
    columns : np.ndarray
        Input values of the chunk, one row per input volume and one column
        per voxel.
    mask : np.ndarray
        Foreground mask of the chunk.
    function : AggregationFunction
        Maps the input values at one voxel to the output value.
    start, stop : int
        Flat index range of the chunk in the output volume.

    Returns
    -------
    tuple[int, int, np.ndarray]
        ``(start, stop, values)``, where *values* holds the aggregate of each
        voxel and NaN outside *mask*.
    """
    buffer = np.empty(columns.shape[0], dtype=columns.dtype)
    values = np.full(stop - start, np.nan)
    for vox in np.flatnonzero(mask):
        buffer[:] = columns[:, vox]
        values[vox] = function(buffer)
    return start, stop, values


class VoxelAggregator:
    """Evaluate an aggregation function over the input values at each voxel.

    The flat voxel range is split into contiguous chunks. With ``n_jobs > 1``
    the chunks are processed by a pool of worker processes, so the aggregation
    function must be picklable (a module level function or a
    :func:`functools.partial` of one). Each task owns one buffer holding the
    values of the current voxel; aggregation functions are free to modify it.
    """

    def __init__(self, n_jobs: int = 1, chunk_size: int | None = None) -> None:
        """
        Initialize a voxel aggregator

        Parameters
        ----------
        n_jobs : int, optional
            Number of worker processes, by default 1
        chunk_size : int | None, optional
            Number of voxels per task. By default the voxel range is split
            into four chunks per worker.
        """
        if n_jobs < 1:
            raise ValueError(f"n_jobs must be at least 1, got {n_jobs}")
        if chunk_size is not None and chunk_size < 1:
            raise ValueError(f"chunk_size must be at least 1, got {chunk_size}")
        self.n_jobs = int(n_jobs)
        self.chunk_size = chunk_size

    def _chunks(self, n_voxels: int) -> list[tuple[int, int]]:
        """Partition ``range(n_voxels)`` into contiguous ``(start, stop)`` pairs."""
        if n_voxels == 0:
            return []
        size = self.chunk_size or max(1, -(-n_voxels // (4 * self.n_jobs)))
        return [(start, min(start + size, n_voxels)) for start in range(0, n_voxels, size)]

    def aggregate(
        self,
        volumes: Sequence[Volume],
        output: Volume,
        mask: np.ndarray,
        function: AggregationFunction,
    ) -> int:
        """Write the aggregate of the input values at every foreground voxel.

        Parameters
        ----------
        volumes : Sequence[Volume]
            Input volumes sharing the geometry of *output*.
        output : Volume
            Output volume. Voxels outside *mask* are left untouched.
        mask : np.ndarray
            Boolean output foreground mask.
        function : AggregationFunction
            Maps the input values at one voxel to the output value.

        Returns
        -------
        int
            Number of voxels written.
        """
        flat_mask = np.asarray(mask, dtype=bool).reshape(-1)
        if flat_mask.size != output.n_voxels:
            raise ValueError("Output mask does not match the output volume.")
        columns = np.stack([volume.data.reshape(-1) for volume in volumes])
        flat_output = output.data.reshape(-1)

        # chunks without foreground are not dispatched
        chunks = [(start, stop) for start, stop in self._chunks(output.n_voxels) if flat_mask[start:stop].any()]
        logger.debug(
            "Aggregating %d voxels in %d chunks using %d processes",
            int(flat_mask.sum()),
            len(chunks),
            self.n_jobs,
        )

        def _store(start: int, stop: int, values: np.ndarray) -> None:
            chunk_mask = flat_mask[start:stop]
            flat_output[start:stop][chunk_mask] = values[chunk_mask]

        if self.n_jobs == 1 or len(chunks) <= 1:
            for start, stop in chunks:
                _store(*_aggregate_chunk(columns[:, start:stop], flat_mask[start:stop], function, start, stop))
        else:
            with ProcessPoolExecutor(max_workers=self.n_jobs) as executor:
                futures = [
                    executor.submit(
                        _aggregate_chunk,
                        columns[:, start:stop],
                        flat_mask[start:stop],
                        function,
                        start,
                        stop,
                    )
                    for start, stop in chunks
                ]
                for future in as_completed(futures):
                    _store(*future.result())

        # reshape(-1) may have returned a copy for non-contiguous data
        if not np.shares_memory(flat_output, output.data):
            output.data[...] = flat_output.reshape(output.shape)
        return int(flat_mask.sum())
