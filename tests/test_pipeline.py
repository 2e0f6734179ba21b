"""Tests for voxagg.aggregation.pipeline."""

from __future__ import annotations

import numpy as np
import pytest

from voxagg import AggregationMode, NormalizationMode, Volume, aggregate_volumes
from voxagg.aggregation.pipeline import (
    BACKGROUND_FILL,
    GeometryMismatchError,
    InsufficientInputsError,
    NoForegroundError,
)
from voxagg.metrics.dispersion import gini_coefficient


def _volume(values, affine: np.ndarray | None = None) -> Volume:
    data = np.asarray(values, dtype=np.float64)
    return Volume(data=data, affine=np.eye(4) if affine is None else affine)


@pytest.fixture
def identical_pair() -> list[Volume]:
    return [_volume([[1.0, 2.0], [3.0, 4.0]]), _volume([[1.0, 2.0], [3.0, 4.0]])]


class TestEndToEnd:
    """Small end-to-end runs with known outputs."""

    def test_mean_of_identical_volumes(self, identical_pair: list[Volume]) -> None:
        result = aggregate_volumes("mean", identical_pair)
        np.testing.assert_allclose(result.output.data, [[1.0, 2.0], [3.0, 4.0]])
        assert result.mode is AggregationMode.MEAN

    def test_stdev_of_identical_volumes(self, identical_pair: list[Volume]) -> None:
        result = aggregate_volumes(AggregationMode.STDEV, identical_pair)
        np.testing.assert_allclose(result.output.data, np.zeros((2, 2)))

    def test_median(self) -> None:
        volumes = [_volume([1.0, 5.0]), _volume([2.0, 6.0]), _volume([9.0, 0.0])]
        result = aggregate_volumes("median", volumes)
        np.testing.assert_allclose(result.output.data, [2.0, 5.0])

    def test_gini_of_constant_volumes(self) -> None:
        volumes = [_volume(np.full((2, 2), 10.0)), _volume(np.full((2, 2), 10.0))]
        result = aggregate_volumes("gini", volumes)
        np.testing.assert_allclose(result.output.data, np.zeros((2, 2)), atol=1e-12)

    def test_entropy_of_identical_volumes(self, identical_pair: list[Volume]) -> None:
        result = aggregate_volumes("entropy", identical_pair, parzen=True)
        np.testing.assert_array_equal(result.output.data, np.zeros((2, 2)))

    def test_entropy_of_distinct_values(self) -> None:
        result = aggregate_volumes("entropy", [_volume([0.0, 1.0]), _volume([1.0, 1.0])])
        np.testing.assert_allclose(result.output.data, [np.log(2), 0.0])

    def test_theil_matches_entropy_index_alpha_one(self) -> None:
        rng = np.random.default_rng(11)
        volumes = [_volume(rng.normal(0.0, 3.0, size=(3, 3, 3))) for _ in range(5)]
        theil = aggregate_volumes("theil", volumes)
        ge1 = aggregate_volumes("ge", volumes, alpha=1)
        np.testing.assert_allclose(theil.output.data, ge1.output.data, rtol=1e-12)

    def test_inputs_are_not_modified(self, identical_pair: list[Volume]) -> None:
        originals = [volume.data.copy() for volume in identical_pair]
        aggregate_volumes("gini", identical_pair, normalization="zscore", padding=1.0)
        for volume, original in zip(identical_pair, originals):
            np.testing.assert_array_equal(volume.data, original)
            assert np.isnan(volume.background)

    def test_output_geometry(self) -> None:
        affine = np.diag([2.0, 2.0, 2.0, 1.0])
        volumes = [_volume(np.ones((2, 3, 4)), affine), _volume(np.ones((2, 3, 4)), affine)]
        result = aggregate_volumes("mean", volumes)
        assert result.output.shape == (2, 3, 4)
        np.testing.assert_array_equal(result.output.affine, affine)

    def test_parallel_matches_sequential(self) -> None:
        rng = np.random.default_rng(5)
        volumes = [_volume(rng.uniform(-5.0, 5.0, size=(6, 5, 4))) for _ in range(3)]
        sequential = aggregate_volumes("gini", volumes)
        parallel = aggregate_volumes("gini", volumes, n_jobs=4)
        np.testing.assert_array_equal(sequential.output.data, parallel.output.data)


class TestNormalization:
    """Input normalization as part of the pipeline."""

    def test_zscore_inputs(self) -> None:
        volumes = [_volume([1.0, 2.0, 3.0, 4.0]), _volume([2.0, 4.0, 6.0, 8.0])]
        result = aggregate_volumes("mean", volumes, normalization=NormalizationMode.ZSCORE)
        expected = (np.array([1.0, 2.0, 3.0, 4.0]) - 2.5) / np.sqrt(1.25)
        np.testing.assert_allclose(result.output.data, expected)
        assert result.normalization is NormalizationMode.ZSCORE
        assert len(result.normalization_parameters) == 2

    def test_mean_normalization_removes_global_scale(self) -> None:
        volumes = [_volume([1.0, 3.0]), _volume([10.0, 30.0])]
        result = aggregate_volumes("stdev", volumes, normalization="mean")
        np.testing.assert_allclose(result.output.data, [0.0, 0.0], atol=1e-12)


class TestBackgroundPolicy:
    """Union versus intersection of the input foregrounds."""

    def test_union_aggregates_partially_covered_voxels(self) -> None:
        volumes = [_volume([[0.0, 2.0], [3.0, 4.0]]), _volume([[5.0, 6.0], [7.0, 8.0]])]
        result = aggregate_volumes("mean", volumes, padding=0.0)
        np.testing.assert_allclose(result.output.data, [[5.0, 4.0], [5.0, 6.0]])
        assert result.mask.all()

    def test_intersection_fills_partially_covered_voxels(self) -> None:
        volumes = [_volume([[0.0, 2.0], [3.0, 4.0]]), _volume([[5.0, 6.0], [7.0, 8.0]])]
        result = aggregate_volumes("median", volumes, padding=0.0, intersection=True)
        np.testing.assert_allclose(result.output.data, [[BACKGROUND_FILL, 4.0], [5.0, 6.0]])
        np.testing.assert_array_equal(result.mask, [[False, True], [True, True]])
        assert result.n_foreground == 3

    def test_intersection_mean_replaces_nan_below_minimum(self) -> None:
        volumes = [_volume([0.0, 2.0, 3.0]), _volume([5.0, 6.0, 7.0])]
        result = aggregate_volumes("mean", volumes, padding=0.0, intersection=True)
        np.testing.assert_allclose(result.output.data, [4.0 - 1e-3, 4.0, 5.0])

    def test_union_background_everywhere_in_voxel(self) -> None:
        volumes = [_volume([0.0, 2.0]), _volume([0.0, 4.0])]
        result = aggregate_volumes("mean", volumes, padding=0.0)
        assert np.isfinite(result.output.data).all()
        np.testing.assert_allclose(result.output.data, [3.0 - 1e-3, 3.0])

    def test_non_mean_background_fill(self) -> None:
        volumes = [_volume([0.0, 2.0]), _volume([0.0, 4.0])]
        result = aggregate_volumes("stdev", volumes, padding=0.0)
        np.testing.assert_allclose(result.output.data, [BACKGROUND_FILL, 1.0])

    def test_nan_inputs_are_background(self) -> None:
        volumes = [_volume([np.nan, 2.0]), _volume([4.0, 4.0])]
        result = aggregate_volumes("mean", volumes)
        np.testing.assert_allclose(result.output.data, [4.0, 3.0])

    def test_all_background_mean_is_zero_filled(self) -> None:
        volumes = [_volume([1.0, 1.0]), _volume([1.0, 1.0])]
        result = aggregate_volumes("mean", volumes, padding=1.0)
        np.testing.assert_array_equal(result.output.data, [0.0, 0.0])
        assert result.n_foreground == 0
        assert result.foreground_voxels == [0, 0]


class TestPositivityShift:
    """Shift applied before measures of inequality."""

    def test_shift_makes_global_minimum_one(self) -> None:
        volumes = [_volume([-5.0, 0.0, 5.0, 10.0]), _volume([-5.0, 0.0, 5.0, 10.0])]
        result = aggregate_volumes("gini", volumes)
        assert result.positivity_shift == pytest.approx(-6.0)
        np.testing.assert_allclose(result.output.data, np.zeros(4), atol=1e-12)

    def test_no_shift_for_other_modes(self, identical_pair: list[Volume]) -> None:
        assert aggregate_volumes("mean", identical_pair).positivity_shift is None

    def test_background_becomes_zero_sample(self) -> None:
        volumes = [_volume([0.0, 3.0]), _volume([4.0, 3.0])]
        result = aggregate_volumes("gini", volumes, padding=0.0)
        # global minimum is 3, so voxel 0 sees [0, 2] and voxel 1 sees [1, 1]
        assert result.positivity_shift == pytest.approx(2.0)
        assert result.output.data[0] == pytest.approx(gini_coefficient(np.array([0.0, 2.0])))
        assert result.output.data[1] == pytest.approx(0.0, abs=1e-12)

    def test_no_foreground_raises(self) -> None:
        volumes = [_volume([7.0, 7.0]), _volume([7.0, 7.0])]
        with pytest.raises(NoForegroundError, match="padding value of 7.0"):
            aggregate_volumes("theil", volumes, padding=7.0)


class TestPreconditions:
    """Fatal precondition violations."""

    def test_single_volume(self) -> None:
        with pytest.raises(InsufficientInputsError, match="two"):
            aggregate_volumes("mean", [_volume([1.0])])

    def test_shape_mismatch(self) -> None:
        with pytest.raises(GeometryMismatchError) as exc_info:
            aggregate_volumes("mean", [_volume([1.0, 2.0]), _volume([1.0, 2.0]), _volume([1.0])])
        assert exc_info.value.index == 2

    def test_affine_mismatch(self) -> None:
        shifted = np.eye(4)
        shifted[0, 3] = 10.0
        with pytest.raises(GeometryMismatchError):
            aggregate_volumes("mean", [_volume([1.0]), _volume([1.0], affine=shifted)])

    def test_negative_alpha(self, identical_pair: list[Volume]) -> None:
        with pytest.raises(ValueError, match="alpha"):
            aggregate_volumes("entropy-index", identical_pair, alpha=-1)

    def test_invalid_mode(self, identical_pair: list[Volume]) -> None:
        with pytest.raises(ValueError, match="Invalid aggregation mode"):
            aggregate_volumes("mode", identical_pair)
