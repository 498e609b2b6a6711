# tests/test_smoothing.py
# -----------------------------------------------------------------------
# Unit tests for macro_engine/smoothing.py
# -----------------------------------------------------------------------

import math
import numpy as np
import pandas as pd
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from macro_engine.smoothing import (
    exponential_moving_average,
    moving_average,
    trend_bands,
)


# ═══════════════════════════════════════════════════════════════════════
# moving_average
# ═══════════════════════════════════════════════════════════════════════

class TestMovingAverage:
    def test_trailing_window(self):
        result = moving_average([1, 2, 3, 4], 2)
        assert math.isnan(result.iloc[0])
        assert result.iloc[1:].tolist() == pytest.approx([1.5, 2.5, 3.5])

    def test_same_length_as_input(self):
        assert len(moving_average(list(range(50)), 7)) == 50

    def test_leading_positions_are_nan(self):
        result = moving_average([10, 20, 30, 40, 50], 3)
        assert result.iloc[:2].isna().all()
        assert result.iloc[2:].tolist() == pytest.approx([20.0, 30.0, 40.0])

    def test_period_one_is_identity(self):
        assert moving_average([3, 1, 4], 1).tolist() == pytest.approx([3.0, 1.0, 4.0])

    def test_period_longer_than_series(self):
        assert moving_average([1, 2, 3], 5).isna().all()

    def test_non_positive_period_treated_as_one(self):
        assert moving_average([3, 1, 4], 0).tolist() == pytest.approx([3.0, 1.0, 4.0])
        assert moving_average([3, 1, 4], -2).tolist() == pytest.approx([3.0, 1.0, 4.0])

    def test_empty_input(self):
        assert moving_average([], 3).empty
        assert moving_average(None, 3).empty

    def test_non_numeric_items_become_nan(self):
        result = moving_average(["x", 2, 4], 2)
        assert result.iloc[:2].isna().all()
        assert result.iloc[2] == pytest.approx(3.0)

    def test_preserves_series_index(self):
        idx = pd.date_range("2024-01-01", periods=4, freq="D")
        result = moving_average(pd.Series([1.0, 2.0, 3.0, 4.0], index=idx), 2)
        assert result.index.equals(idx)

    def test_no_look_ahead(self):
        base = moving_average([1, 2, 3, 4, 5], 3)
        spiked = moving_average([1, 2, 3, 4, 500], 3)
        assert base.iloc[:4].equals(spiked.iloc[:4])


# ═══════════════════════════════════════════════════════════════════════
# exponential_moving_average
# ═══════════════════════════════════════════════════════════════════════

class TestExponentialMovingAverage:
    def test_constant_input_has_no_drift(self):
        assert exponential_moving_average([5, 5, 5, 5], 3).tolist() == pytest.approx([5, 5, 5, 5])

    def test_seeded_with_first_value(self):
        assert exponential_moving_average([7, 100, 3], 10).iloc[0] == 7

    def test_recursive_formula(self):
        # period 3 -> multiplier 0.5
        result = exponential_moving_average([1, 2, 3], 3)
        assert result.tolist() == pytest.approx([1.0, 1.5, 2.25])

    def test_matches_hand_rolled_recursion(self):
        data = [10.0, 11.5, 9.0, 14.0, 13.0, 12.5]
        k = 2 / (4 + 1)
        ema = [data[0]]
        for x in data[1:]:
            ema.append((x - ema[-1]) * k + ema[-1])
        assert exponential_moving_average(data, 4).tolist() == pytest.approx(ema, rel=1e-12)

    def test_no_warm_up_nan(self):
        result = exponential_moving_average([1, 2, 3, 4, 5], 4)
        assert result.notna().all()
        assert len(result) == 5

    def test_differs_from_moving_average_at_start(self):
        data = [1, 2, 3, 4]
        assert math.isnan(moving_average(data, 3).iloc[0])
        assert exponential_moving_average(data, 3).iloc[0] == 1

    def test_empty_input(self):
        assert exponential_moving_average([], 5).empty
        assert exponential_moving_average(None, 5).empty

    def test_single_value(self):
        assert exponential_moving_average([42.0], 21).tolist() == [42.0]

    def test_nan_gap_continues_recursion(self):
        # k = 0.5: 1 -> (gap) -> 0.5 × 3 + 0.5 × 1
        result = exponential_moving_average([1, np.nan, 3], 3)
        assert result.iloc[0] == pytest.approx(1.0)
        assert result.iloc[2] == pytest.approx(2.0)

    def test_nan_gap_matches_skip_nan_recursion(self):
        values = [10.0, 12.0, np.nan, np.nan, 9.0, 11.0]
        k = 2 / (4 + 1)
        ema = values[0]
        for x in values[1:]:
            if not math.isnan(x):
                ema = (x - ema) * k + ema
        assert exponential_moving_average(values, 4).iloc[-1] == pytest.approx(ema)


# ═══════════════════════════════════════════════════════════════════════
# trend_bands
# ═══════════════════════════════════════════════════════════════════════

class TestTrendBands:
    def test_columns(self):
        df = trend_bands(np.linspace(100, 300, 250))
        assert list(df.columns) == ["price", "ma20", "ma200", "ema21"]
        assert len(df) == 250

    def test_long_history_uses_full_windows(self):
        prices = np.arange(1, 251, dtype=float)
        df = trend_bands(prices)
        assert df["ma200"].iloc[:199].isna().all()
        assert df["ma200"].iloc[-1] == pytest.approx(np.mean(prices[-200:]))
        assert df["ma20"].iloc[-1] == pytest.approx(np.mean(prices[-20:]))

    def test_short_history_shrinks_windows(self):
        df = trend_bands([10, 20, 30, 40, 50])
        assert df["ma20"].iloc[-1] == pytest.approx(30.0)
        assert df["ma200"].iloc[-1] == pytest.approx(30.0)
        assert df["ema21"].notna().all()

    def test_empty(self):
        assert trend_bands([]).empty
