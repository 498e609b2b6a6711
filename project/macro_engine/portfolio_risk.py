# portfolio_risk.py
# ------------------------------------------------------------------
# Historical-simulation tail risk and return correlation.
#
#   VaR(c)  = |r_sorted[floor((1 - c) × n)]| × portfolio value
#   ES(c)   = |mean(r_sorted[:floor((1 - c) × n)])| × portfolio value
#
# Returns are decimal daily returns; VaR and ES are in USD.
# A tail with no observations makes ES the single worst return.
# ------------------------------------------------------------------

import math

import numpy as np

from macro_engine.calculations import to_numeric_series

DEFAULT_CONFIDENCE_LEVEL: float = 0.95


def _sorted_returns(returns) -> np.ndarray:
    return np.sort(to_numeric_series(returns).dropna().to_numpy())


def _tail_size(n: int, confidence_level: float) -> int:
    if not 0 < confidence_level < 1:
        raise ValueError(
            f"confidence_level must lie strictly between 0 and 1, got {confidence_level!r}."
        )
    return int(math.floor((1.0 - confidence_level) * n))


def value_at_risk(returns, portfolio_value, confidence_level=DEFAULT_CONFIDENCE_LEVEL) -> float:
    """
    One-day historical Value at Risk in USD.

    Raises:
        ValueError: If confidence_level is not in (0, 1).
    """
    r = _sorted_returns(returns)
    index = _tail_size(r.size, confidence_level)
    if r.size == 0:
        return 0.0
    return float(abs(r[index] * portfolio_value))


def expected_shortfall(returns, portfolio_value, confidence_level=DEFAULT_CONFIDENCE_LEVEL) -> float:
    """Average loss on the days worse than VaR (CVaR), in USD."""
    r = _sorted_returns(returns)
    cutoff = _tail_size(r.size, confidence_level)
    if r.size == 0:
        return 0.0
    tail = r[:max(1, cutoff)]
    return float(abs(tail.mean() * portfolio_value))


def correlation(series1, series2) -> float:
    """
    Pearson correlation in [-1, 1].

    Mismatched lengths, empty input or a constant series give 0.
    """
    a = to_numeric_series(series1).to_numpy()
    b = to_numeric_series(series2).to_numpy()
    if a.size != b.size or a.size == 0:
        return 0.0
    da = a - a.mean()
    db = b - b.mean()
    denominator = math.sqrt(float(np.sum(da * da) * np.sum(db * db)))
    if denominator == 0 or math.isnan(denominator):
        return 0.0
    return float(np.sum(da * db) / denominator)
