# calculations.py
# -----------------------------
# Numeric and date helpers shared by the scoring modules.
import math

import numpy as np
import pandas as pd

_ONE_DAY = pd.Timedelta(days=1)


def safe_divide(a, b, default=np.nan):
    try:
        if b is None or b == 0 or np.isnan(b):
            return default
        if a is None or np.isnan(a):
            return default
    except TypeError:
        return default
    return a / b


def clamp(value, low, high):
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer with halves rounding up.

    Python's round() uses banker's rounding (round(2.5) == 2); scores
    need 2.5 -> 3 so that boundary values land in the upper bucket.
    """
    return int(math.floor(value + 0.5))


def to_utc_timestamp(value=None) -> pd.Timestamp:
    """
    Normalize a datetime-like value to a tz-naive UTC pd.Timestamp.

    None means "now". Aware values are converted to UTC first; naive
    values are assumed to already be UTC.
    """
    if value is None:
        ts = pd.Timestamp.now(tz="UTC")
    else:
        ts = pd.Timestamp(value)
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts


def whole_days_between(start, end) -> int:
    """floor((end - start) / 1 day); negative when end precedes start."""
    return int((to_utc_timestamp(end) - to_utc_timestamp(start)) // _ONE_DAY)


def to_numeric_series(values) -> pd.Series:
    """
    Coerce list-likes (or None) to a float pd.Series.

    Items that cannot be parsed become NaN; an existing Series keeps its
    index.
    """
    if values is None:
        return pd.Series([], dtype=float)
    series = pd.Series(values, dtype=object) if not isinstance(values, pd.Series) else values
    return pd.to_numeric(series, errors="coerce").astype(float)
