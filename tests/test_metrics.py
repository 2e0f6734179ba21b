"""Tests for voxagg.metrics.volume module."""

from __future__ import annotations

import numpy as np
import pytest

from voxagg.metrics import BUILTIN_AGGREGATORS, Aggregator
from voxagg.metrics.dispersion import theil_index
from voxagg.metrics.volume import (
    AggregationMode,
    make_aggregation_function,
    mean,
    median,
    parse_aggregation_mode,
    stdev,
)


class TestParseAggregationMode:
    """Tests for parse_aggregation_mode function."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("mean", AggregationMode.MEAN),
            ("mu", AggregationMode.MEAN),
            ("Average", AggregationMode.MEAN),
            ("avg", AggregationMode.MEAN),
            ("median", AggregationMode.MEDIAN),
            ("sd", AggregationMode.STDEV),
            ("stddev", AggregationMode.STDEV),
            ("stdev", AggregationMode.STDEV),
            ("sdev", AggregationMode.STDEV),
            ("SIGMA", AggregationMode.STDEV),
            ("gini", AggregationMode.GINI),
            ("gini-coefficient", AggregationMode.GINI),
            ("theil", AggregationMode.THEIL),
            ("theil-index", AggregationMode.THEIL),
            ("ge", AggregationMode.ENTROPY_INDEX),
            ("entropy-index", AggregationMode.ENTROPY_INDEX),
            ("generalized-entropy-index", AggregationMode.ENTROPY_INDEX),
            ("entropy", AggregationMode.ENTROPY),
            ("shannon-entropy", AggregationMode.ENTROPY),
        ],
    )
    def test_names_and_aliases(self, name: str, expected: AggregationMode) -> None:
        assert parse_aggregation_mode(name) is expected

    def test_mode_passthrough(self) -> None:
        assert parse_aggregation_mode(AggregationMode.GINI) is AggregationMode.GINI

    def test_unknown_mode_raises(self) -> None:
        with pytest.raises(ValueError, match="Invalid aggregation mode"):
            parse_aggregation_mode("maximum")


class TestAggregationCatalogue:
    """Tests for the builtin aggregator catalogue."""

    def test_every_mode_is_registered(self) -> None:
        assert set(BUILTIN_AGGREGATORS) == set(AggregationMode)
        assert all(isinstance(agg, Aggregator) for agg in BUILTIN_AGGREGATORS.values())

    def test_inequality_measures(self) -> None:
        inequality = {mode for mode in AggregationMode if mode.is_inequality_measure}
        assert inequality == {AggregationMode.GINI, AggregationMode.THEIL, AggregationMode.ENTROPY_INDEX}

    def test_aliases_are_unique(self) -> None:
        names = [agg.name for agg in BUILTIN_AGGREGATORS.values()]
        names += [alias for agg in BUILTIN_AGGREGATORS.values() for alias in agg.aliases]
        assert len(names) == len(set(names))


class TestCentralTendency:
    """Tests for the NaN-aware mean, median and standard deviation."""

    def test_mean_ignores_nan(self) -> None:
        assert mean(np.array([1.0, np.nan, 3.0])) == pytest.approx(2.0)

    def test_median_ignores_nan(self) -> None:
        assert median(np.array([1.0, np.nan, 3.0, 10.0])) == pytest.approx(3.0)

    def test_stdev_is_population_standard_deviation(self) -> None:
        assert stdev(np.array([1.0, 3.0])) == pytest.approx(1.0)
        assert stdev(np.array([2.0, 2.0, np.nan])) == 0.0


class TestMakeAggregationFunction:
    """Tests for make_aggregation_function."""

    def test_returns_builtin_function(self) -> None:
        assert make_aggregation_function("median") is median

    def test_binds_alpha(self) -> None:
        values = np.array([1.0, 2.0, 3.0, 10.0])
        ge1 = make_aggregation_function("ge", alpha=1)
        assert ge1(values.copy()) == pytest.approx(theil_index(values.copy()))

    def test_default_alpha_is_mean_log_deviation(self) -> None:
        values = np.array([1.0, 2.0, 3.0, 10.0])
        expected = -np.mean(np.log(values / values.mean()))
        assert make_aggregation_function(AggregationMode.ENTROPY_INDEX)(values) == pytest.approx(expected)

    def test_binds_bins_and_parzen(self) -> None:
        function = make_aggregation_function("entropy", bins=4, parzen=False)
        assert function(np.array([0.5, 1.5, 2.5, 3.5])) == pytest.approx(np.log(4))

    def test_negative_alpha_raises(self) -> None:
        with pytest.raises(ValueError, match="alpha"):
            make_aggregation_function("ge", alpha=-0.5)

    def test_invalid_bins_raise(self) -> None:
        with pytest.raises(ValueError, match="bins"):
            make_aggregation_function("entropy", bins=0)

    def test_other_modes_ignore_alpha(self) -> None:
        make_aggregation_function("gini", alpha=-1)
