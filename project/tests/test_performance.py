# tests/test_performance.py
# -----------------------------------------------------------------------
# Unit tests for macro_engine/performance.py
#
# Returns/volatility/drawdowns are in percent; daily returns are
# decimal fractions.
# -----------------------------------------------------------------------

import math
import numpy as np
import pandas as pd
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from macro_engine.performance import (
    BenchmarkComparison,
    DrawdownStats,
    StreakStats,
    TradeStats,
    annualize_return,
    calmar_ratio,
    compare_to_benchmark,
    drawdown_series,
    max_drawdown,
    money_weighted_return,
    sharpe_ratio,
    sortino_ratio,
    streaks,
    time_weighted_return,
    trade_statistics,
    volatility,
    xirr,
)

SQRT_252 = math.sqrt(252)


class TestTimeWeightedReturn:
    def test_compounds(self):
        # 1.1 × 0.9 = 0.99
        assert time_weighted_return([0.10, -0.10]) == pytest.approx(-1.0)

    def test_single_day(self):
        assert time_weighted_return([0.05]) == pytest.approx(5.0)

    def test_empty(self):
        assert time_weighted_return([]) == 0.0
        assert time_weighted_return(None) == 0.0

    def test_series_input(self):
        assert time_weighted_return(pd.Series([0.01] * 3)) == pytest.approx((1.01 ** 3 - 1) * 100)


class TestAnnualizeReturn:
    def test_one_year_unchanged(self):
        assert annualize_return(10.0, 365) == pytest.approx(10.0)

    def test_two_years(self):
        assert annualize_return(21.0, 730) == pytest.approx(10.0)

    def test_zero_days(self):
        assert annualize_return(50.0, 0) == 0.0

    def test_loss_beyond_total_is_nan(self):
        assert math.isnan(annualize_return(-150.0, 730))

    def test_total_loss_is_nan(self):
        assert math.isnan(annualize_return(-100.0, 365))


class TestMaxDrawdown:
    def test_peak_to_trough(self):
        dd = max_drawdown([100, 120, 90, 110])
        assert dd.max_drawdown_pct == pytest.approx(25.0)
        assert dd.max_drawdown_usd == pytest.approx(30.0)
        assert dd.current_drawdown_pct == pytest.approx(100 * 10 / 120)

    def test_first_worst_drawdown_wins(self):
        dd = max_drawdown([100, 50, 100, 50])
        assert dd.max_drawdown_pct == pytest.approx(50.0)
        assert dd.max_drawdown_usd == pytest.approx(50.0)

    def test_monotonic_rise(self):
        assert max_drawdown([1, 2, 3, 4]) == DrawdownStats(0.0, 0.0, 0.0)

    def test_empty(self):
        assert max_drawdown([]) == DrawdownStats()

    def test_recovered_curve_has_no_current_drawdown(self):
        assert max_drawdown([100, 80, 130]).current_drawdown_pct == 0.0

    def test_zero_peak_does_not_raise(self):
        dd = max_drawdown([0, 0, 0])
        assert dd.max_drawdown_pct == 0.0
        assert dd.current_drawdown_pct == 0.0

    def test_repeated_index_labels(self):
        curve = pd.Series([100, 50, 100, 50], index=["a", "a", "b", "b"])
        dd = max_drawdown(curve)
        assert dd.max_drawdown_pct == pytest.approx(50.0)
        assert dd.max_drawdown_usd == pytest.approx(50.0)
        assert dd.current_drawdown_pct == pytest.approx(50.0)

    def test_repeated_dates(self):
        dates = pd.to_datetime(["2025-01-02", "2025-01-02", "2025-01-03"])
        dd = max_drawdown(pd.Series([200.0, 150.0, 180.0], index=dates))
        assert dd.max_drawdown_pct == pytest.approx(25.0)
        assert dd.max_drawdown_usd == pytest.approx(50.0)


class TestDrawdownSeries:
    def test_values(self):
        assert drawdown_series([100, 50, 100, 75]).tolist() == pytest.approx([0.0, -50.0, 0.0, -25.0])

    def test_same_length(self):
        assert len(drawdown_series(np.linspace(1, 2, 30))) == 30


class TestVolatility:
    def test_population_std_annualized(self):
        assert volatility([0.01, -0.01]) == pytest.approx(0.01 * SQRT_252 * 100)

    def test_constant_returns(self):
        assert volatility([0.002] * 10) == pytest.approx(0.0, abs=1e-12)

    def test_empty(self):
        assert volatility([]) == 0.0


class TestSharpeRatio:
    def test_formula(self):
        assert sharpe_ratio(14.5, 10.0) == pytest.approx(1.0)

    def test_custom_risk_free(self):
        assert sharpe_ratio(12.0, 4.0, risk_free_rate=0.0) == pytest.approx(3.0)

    def test_zero_volatility(self):
        assert sharpe_ratio(20.0, 0.0) == 0.0


class TestSortinoRatio:
    def test_downside_only(self):
        downside = 0.01 * SQRT_252 * 100
        assert sortino_ratio(14.5, [0.02, -0.01, 0.03]) == pytest.approx(10.0 / downside)

    def test_no_losing_days_returns_annualized_return(self):
        assert sortino_ratio(12.0, [0.01, 0.02]) == 12.0

    def test_empty(self):
        assert sortino_ratio(12.0, []) == 0.0


class TestCalmarRatio:
    def test_formula(self):
        assert calmar_ratio(20.0, 10.0) == pytest.approx(2.0)

    def test_zero_drawdown(self):
        assert calmar_ratio(20.0, 0.0) == 0.0


# ═══════════════════════════════════════════════════════════════════════
# Money-weighted return
# ═══════════════════════════════════════════════════════════════════════

class TestXirr:
    def test_single_deposit_one_year(self):
        rate = xirr(["2023-01-01", "2024-01-01"], [-1000.0, 1100.0])
        # 365 days over a 365.25-day year
        assert rate == pytest.approx(1.1 ** (365.25 / 365) - 1, rel=1e-6)

    def test_needs_two_flows(self):
        assert math.isnan(xirr(["2024-01-01"], [-1000.0]))

    def test_no_sign_change_is_nan(self):
        assert math.isnan(xirr(["2023-01-01", "2024-01-01"], [-1000.0, -50.0]))


class TestMoneyWeightedReturn:
    def test_matches_xirr_in_percent(self):
        flows = [("2023-01-01", 1000.0)]
        result = money_weighted_return(flows, 1100.0, now="2024-01-01")
        assert result == pytest.approx((1.1 ** (365.25 / 365) - 1) * 100, rel=1e-6)

    def test_late_deposit_raises_rate(self):
        # Same gain, but half the money was only invested for half the year.
        early = money_weighted_return([("2023-01-01", 2000.0)], 2200.0, now="2024-01-01")
        late = money_weighted_return(
            [("2023-01-01", 1000.0), ("2023-07-02", 1000.0)], 2200.0, now="2024-01-01"
        )
        assert late > early

    def test_withdrawal_is_credited(self):
        flows = [("2023-01-01", 1000.0), ("2023-07-02", -500.0)]
        assert money_weighted_return(flows, 600.0, now="2024-01-01") > 0

    def test_empty(self):
        assert money_weighted_return([], 1000.0) == 0.0
        assert money_weighted_return(None, 1000.0) == 0.0


# ═══════════════════════════════════════════════════════════════════════
# Trade statistics
# ═══════════════════════════════════════════════════════════════════════

class TestTradeStatistics:
    def test_mixed_trades(self):
        stats = trade_statistics([100.0, -50.0, 200.0, -25.0, None])
        assert stats.total_trades == 4
        assert stats.winning_trades == 2
        assert stats.losing_trades == 2
        assert stats.win_rate == pytest.approx(50.0)
        assert stats.average_win_usd == pytest.approx(150.0)
        assert stats.average_loss_usd == pytest.approx(37.5)
        assert stats.largest_win_usd == pytest.approx(200.0)
        assert stats.largest_loss_usd == pytest.approx(50.0)
        assert stats.profit_factor == pytest.approx(4.0)
        assert stats.expectancy == pytest.approx(56.25)
        assert stats.avg_win_loss_ratio == pytest.approx(4.0)

    def test_break_even_counts_toward_total_only(self):
        stats = trade_statistics([10.0, 0.0])
        assert stats.total_trades == 2
        assert stats.winning_trades == 1
        assert stats.losing_trades == 0
        assert stats.win_rate == pytest.approx(50.0)

    def test_no_losses_gives_zero_profit_factor(self):
        stats = trade_statistics([10.0, 20.0])
        assert stats.profit_factor == 0.0
        assert stats.avg_win_loss_ratio == 0.0

    def test_empty(self):
        assert trade_statistics([]) == TradeStats()
        assert trade_statistics([None, None]) == TradeStats()


class TestStreaks:
    def test_runs(self):
        result = streaks([1, 2, -1, 3, 4, 5, -2, -3])
        assert result == StreakStats(current_streak=-2, longest_winning_streak=3, longest_losing_streak=2)

    def test_break_even_does_not_reset(self):
        assert streaks([1, 0, 1]).longest_winning_streak == 2

    def test_open_trades_ignored(self):
        assert streaks([-1, None, -1]).current_streak == -2

    def test_empty(self):
        assert streaks([]) == StreakStats()


# ═══════════════════════════════════════════════════════════════════════
# Benchmark comparison
# ═══════════════════════════════════════════════════════════════════════

class TestCompareToBenchmark:
    def test_identical_series(self):
        r = [0.01, -0.02, 0.03]
        result = compare_to_benchmark(r, r)
        assert result.beta == pytest.approx(1.0)
        assert result.portfolio_return == pytest.approx(0.02)
        assert result.tracking_error == pytest.approx(0.0, abs=1e-12)
        assert result.alpha == pytest.approx(0.0, abs=1e-12)
        assert result.information_ratio == 0.0

    def test_double_leverage_beta(self):
        bench = [0.01, -0.02, 0.03, 0.00]
        result = compare_to_benchmark([2 * b for b in bench], bench)
        assert result.beta == pytest.approx(2.0)

    def test_alpha_formula(self):
        p = [0.02, 0.015, 0.03]
        b = [0.01, 0.00, 0.02]
        result = compare_to_benchmark(p, b)
        rf = 0.045
        expected = sum(p) - (rf + result.beta * (sum(b) - rf))
        assert result.alpha == pytest.approx(expected)
        assert result.information_ratio == pytest.approx(expected / result.tracking_error)

    def test_flat_benchmark_beta_one(self):
        assert compare_to_benchmark([0.01, 0.02], [0.0, 0.0]).beta == 1.0

    def test_truncates_to_shorter(self):
        result = compare_to_benchmark([0.01, 0.02, 0.5], [0.01, 0.02])
        assert result.portfolio_return == pytest.approx(0.03)

    def test_empty(self):
        assert compare_to_benchmark([], [0.01]) == BenchmarkComparison()
