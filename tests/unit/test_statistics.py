"""
Unit tests for statistics.py module.

Tests quantile conventions, per-period and terminal statistics.
"""


import numpy as np
import pandas as pd
import pytest

from finmc.exceptions import DegenerateEnsembleError, NumericAnomalyError, ValidationError
from finmc.statistics import (
    DistributionAggregator,
    PeriodStatistics,
    TerminalStatistics,
    quantile,
)


@pytest.fixture
def small_paths():
    """Hand-checkable ensemble: 4 simulations x 2 months."""
    return np.array([
        [1.0, 10.0],
        [2.0, 20.0],
        [3.0, 30.0],
        [4.0, 40.0],
    ])


# ============================================================================
# QUANTILE TESTS
# ============================================================================

class TestQuantile:
    """Test linear-interpolation quantile."""

    def test_interpolates_at_rank(self):
        """Rank (n-1)q = 0.75 between 1 and 2."""
        assert quantile([4.0, 1.0, 3.0, 2.0], 0.25) == pytest.approx(1.75)
        assert quantile([4.0, 1.0, 3.0, 2.0], 0.5) == pytest.approx(2.5)
        assert quantile([4.0, 1.0, 3.0, 2.0], 0.75) == pytest.approx(3.25)

    def test_extremes(self):
        assert quantile([5.0, -1.0, 2.0], 0.0) == -1.0
        assert quantile([5.0, -1.0, 2.0], 1.0) == 5.0

    def test_single_sample(self):
        assert quantile([7.0], 0.25) == quantile([7.0], 0.75) == 7.0

    def test_empty_raises(self):
        with pytest.raises(DegenerateEnsembleError):
            quantile([], 0.5)

    def test_level_out_of_range(self):
        with pytest.raises(ValidationError) as exc_info:
            quantile([1.0, 2.0], 1.5)
        assert exc_info.value.field == "q"


# ============================================================================
# AGGREGATOR TESTS
# ============================================================================

class TestDistributionAggregatorInstantiation:

    def test_default_levels(self, aggregator):
        assert aggregator.quantiles == (0.25, 0.5, 0.75)

    def test_extra_levels_sorted(self):
        agg = DistributionAggregator(quantiles=(0.95, 0.5, 0.25, 0.75, 0.05))
        assert agg.quantiles == (0.05, 0.25, 0.5, 0.75, 0.95)

    def test_missing_quartile_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            DistributionAggregator(quantiles=(0.1, 0.5, 0.9))
        assert exc_info.value.field == "quantiles"

    def test_out_of_range_level_rejected(self):
        with pytest.raises(ValidationError):
            DistributionAggregator(quantiles=(0.25, 0.5, 0.75, 1.2))


class TestPeriodStatistics:
    """Test DistributionAggregator.period_statistics()."""

    def test_hand_computed(self, aggregator, small_paths):
        stats = aggregator.period_statistics(small_paths)

        np.testing.assert_allclose(stats.q1, [1.75, 17.5])
        np.testing.assert_allclose(stats.median, [2.5, 25.0])
        np.testing.assert_allclose(stats.q3, [3.25, 32.5])
        assert stats.extra == {}

    def test_ordering(self, aggregator, paths):
        stats = aggregator.period_statistics(paths)
        assert np.all(stats.q1 <= stats.median)
        assert np.all(stats.median <= stats.q3)
        assert stats.n_periods == paths.shape[1]

    def test_single_simulation_collapses(self, aggregator):
        stats = aggregator.period_statistics(np.array([[100.0, 105.0, 98.0]]))
        np.testing.assert_array_equal(stats.q1, stats.median)
        np.testing.assert_array_equal(stats.q3, stats.median)
        np.testing.assert_array_equal(stats.median, [100.0, 105.0, 98.0])

    def test_input_not_mutated(self, aggregator):
        paths = np.array([[3.0, 1.0], [1.0, 3.0], [2.0, 2.0]])
        before = paths.copy()
        aggregator.period_statistics(paths)
        np.testing.assert_array_equal(paths, before)

    def test_extra_levels(self, small_paths):
        agg = DistributionAggregator(quantiles=(0.05, 0.25, 0.5, 0.75, 0.95))
        stats = agg.period_statistics(small_paths)

        assert sorted(stats.extra) == ["0.05", "0.95"]
        np.testing.assert_allclose(stats.extra["0.05"], [1.15, 11.5])
        np.testing.assert_allclose(stats.extra["0.95"], [3.85, 38.5])

    @pytest.mark.parametrize("shape", [(0, 5), (5, 0), (0, 0)])
    def test_empty_ensemble_raises(self, aggregator, shape):
        with pytest.raises(DegenerateEnsembleError):
            aggregator.period_statistics(np.zeros(shape))

    def test_one_dimensional_raises(self, aggregator):
        with pytest.raises(ValidationError) as exc_info:
            aggregator.period_statistics(np.ones(5))
        assert exc_info.value.field == "paths"

    def test_to_frame(self, aggregator, small_paths):
        frame = aggregator.period_statistics(small_paths).to_frame(invested=np.array([1.0, 2.0]))

        assert isinstance(frame, pd.DataFrame)
        assert list(frame.columns) == ["q1", "median", "q3", "invested"]
        assert list(frame.index) == [1, 2]
        assert frame.loc[2, "median"] == pytest.approx(25.0)

    def test_to_frame_calendar_index(self, aggregator, small_paths, start_date):
        frame = aggregator.period_statistics(small_paths).to_frame(start=start_date)
        assert frame.index[0] == pd.Timestamp(start_date)
        assert "invested" not in frame.columns

    def test_to_frame_bad_invested_shape(self, aggregator, small_paths):
        with pytest.raises(ValidationError):
            aggregator.period_statistics(small_paths).to_frame(invested=np.ones(3))

    def test_dict_round_trip(self, small_paths):
        agg = DistributionAggregator(quantiles=(0.25, 0.5, 0.75, 0.9))
        stats = agg.period_statistics(small_paths)
        restored = PeriodStatistics.from_dict(stats.to_dict())

        np.testing.assert_allclose(restored.median, stats.median)
        np.testing.assert_allclose(restored.extra["0.9"], stats.extra["0.9"])


class TestTerminalStatistics:
    """Test DistributionAggregator.terminal_statistics()."""

    def test_hand_computed(self, aggregator, small_paths):
        stats = aggregator.terminal_statistics(small_paths, invested_total=25.0)

        assert stats.q1 == pytest.approx(17.5)
        assert stats.median == pytest.approx(25.0)
        assert stats.q3 == pytest.approx(32.5)
        assert stats.minimum == 10.0
        assert stats.maximum == 40.0
        assert stats.mean == pytest.approx(25.0)
        assert stats.invested == 25.0
        assert stats.shortfall_probability == pytest.approx(0.5)

    def test_shortfall_is_strict(self, aggregator, small_paths):
        """A final value equal to the invested total is not a shortfall."""
        stats = aggregator.terminal_statistics(small_paths, invested_total=20.0)
        assert stats.shortfall_probability == pytest.approx(0.25)

    def test_shortfall_bounds(self, aggregator, paths, invested_cum):
        stats = aggregator.terminal_statistics(paths, invested_total=invested_cum[-1])
        assert 0.0 <= stats.shortfall_probability <= 1.0
        assert stats.minimum <= stats.q1 <= stats.median <= stats.q3 <= stats.maximum

    def test_shortfall_pct(self):
        stats = TerminalStatistics(1, 1, 1, 1, 1, 1, 1, shortfall_probability=0.123456)
        assert stats.shortfall_pct == 12.35

    def test_summarize(self, aggregator, paths, invested_cum):
        period, terminal = aggregator.summarize(paths, invested_cum)

        assert terminal.median == pytest.approx(period.median[-1])
        assert terminal.invested == invested_cum[-1]

    def test_summarize_shape_mismatch(self, aggregator, paths):
        with pytest.raises(ValidationError) as exc_info:
            aggregator.summarize(paths, np.ones(3))
        assert exc_info.value.field == "invested_cum"

    def test_negative_invested_raises(self, aggregator, small_paths):
        with pytest.raises(ValidationError):
            aggregator.terminal_statistics(small_paths, invested_total=-1.0)

    def test_empty_raises(self, aggregator):
        with pytest.raises(DegenerateEnsembleError):
            aggregator.terminal_statistics(np.zeros((0, 3)), invested_total=1.0)

    @pytest.mark.parametrize("bad", [np.nan, np.inf, -np.inf])
    def test_non_finite_ensemble_raises(self, aggregator, bad):
        """A NaN row must not be silently counted as not-a-shortfall."""
        paths = np.array([[1.0, bad], [2.0, 5.0], [3.0, 6.0]])

        with pytest.raises(NumericAnomalyError):
            aggregator.terminal_statistics(paths, invested_total=5.5)
        with pytest.raises(NumericAnomalyError):
            aggregator.period_statistics(paths)

    def test_dict_round_trip(self, aggregator, small_paths):
        stats = aggregator.terminal_statistics(small_paths, invested_total=25.0)
        assert TerminalStatistics.from_dict(stats.to_dict()) == stats


class TestTerminalHistogram:

    def test_counts_sum_to_n(self, aggregator, paths):
        counts, edges = aggregator.terminal_histogram(paths)

        assert counts.shape == (50,)
        assert edges.shape == (51,)
        assert counts.sum() == paths.shape[0]

    def test_custom_bins(self, aggregator, small_paths):
        counts, edges = aggregator.terminal_histogram(small_paths, bins=3)
        assert edges[0] == 10.0
        assert edges[-1] == 40.0
        assert counts.sum() == 4

    def test_numpy_integer_bins(self, aggregator, small_paths):
        counts, edges = aggregator.terminal_histogram(small_paths, bins=np.int64(5))
        assert counts.shape == (5,)
        assert counts.sum() == 4

    @pytest.mark.parametrize("bins", [0, -1, 2.5, True])
    def test_invalid_bins(self, aggregator, small_paths, bins):
        with pytest.raises(ValidationError):
            aggregator.terminal_histogram(small_paths, bins=bins)


class TestIdempotence:

    def test_reaggregation_identical(self, aggregator, paths, invested_cum):
        before = paths.copy()
        first = aggregator.summarize(paths, invested_cum)
        second = aggregator.summarize(paths, invested_cum)

        np.testing.assert_array_equal(first[0].median, second[0].median)
        np.testing.assert_array_equal(first[0].q1, second[0].q1)
        assert first[1] == second[1]
        np.testing.assert_array_equal(paths, before)
