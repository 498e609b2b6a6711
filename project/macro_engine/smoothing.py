# smoothing.py
# ------------------------------------------------------------------
# Trend smoothing over a chronological price series.
#
# The two transforms differ on purpose at the start of the series:
#   moving_average             -> NaN until `period` values are available
#   exponential_moving_average -> seeded with the first value, no warm-up
# ------------------------------------------------------------------

import pandas as pd

from macro_engine.calculations import to_numeric_series


def _period(period) -> int:
    try:
        return max(1, int(period))
    except (TypeError, ValueError):
        return 1


def moving_average(series, period) -> pd.Series:
    """
    Simple moving average over a trailing, inclusive window.

    Same length as the input; the first period-1 positions are NaN.
    Empty input returns an empty series.
    """
    prices = to_numeric_series(series)
    return prices.rolling(window=_period(period), min_periods=_period(period)).mean()


def exponential_moving_average(series, period) -> pd.Series:
    """
    EMA with multiplier 2 / (period + 1), seeded with the first value:

        ema[0] = x[0]
        ema[i] = (x[i] - ema[i-1]) × k + ema[i-1]

    NaN gaps are skipped: the next valid value continues the recursion
    from the last valid EMA, and a gap position repeats that EMA.
    """
    prices = to_numeric_series(series)
    if prices.empty:
        return prices
    # adjust=False gives exactly the recursive form above.
    return prices.ewm(span=_period(period), adjust=False, ignore_na=True).mean()


def trend_bands(prices) -> pd.DataFrame:
    """
    Price plus the 20/200-period MAs and 21-period EMA used for trend
    charts. Short histories shrink each window to the series length.
    """
    prices = to_numeric_series(prices)
    n = len(prices)
    return pd.DataFrame({
        "price": prices,
        "ma20": moving_average(prices, min(20, n)),
        "ma200": moving_average(prices, min(200, n)),
        "ema21": exponential_moving_average(prices, min(21, n)),
    })
