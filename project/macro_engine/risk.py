# risk.py
# ------------------------------------------------------------------
# Risk score and market phase.
#
#   deviation       = (price - fair) / fair
#   deviation_score = clamp(round((deviation + 1) × 50), 0, 100)
#   risk_score      = clamp(round(0.6 × deviation_score + 0.4 × cycle%), 0, 100)
#
# Phase rules are evaluated in order, first match wins:
#   risk < 30 and cycle < 40  -> Accumulation
#   risk < 60 and cycle < 70  -> Expansion
#   risk >= 60                -> Euphoria
#   otherwise                 -> Recession
# Moderate risk (30-59) late in the cycle (>= 70%) therefore lands in
# Recession.
# ------------------------------------------------------------------

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum

import pandas as pd

from macro_engine.calculations import (
    clamp,
    round_half_up,
    safe_divide,
    to_numeric_series,
    to_utc_timestamp,
)
from macro_engine.constants import (
    ACCUMULATION_MAX_CYCLE,
    ACCUMULATION_MAX_RISK,
    CYCLE_WEIGHT,
    DEVIATION_WEIGHT,
    EUPHORIA_MIN_RISK,
    EXPANSION_MAX_CYCLE,
    EXPANSION_MAX_RISK,
    NEUTRAL_DEVIATION_SCORE,
    RISK_LEVEL_ELEVATED_MAX,
    RISK_LEVEL_LOW_MAX,
    RISK_LEVEL_MODERATE_MAX,
    Asset,
)
from macro_engine.cycle import CycleProgress, cycle_progress
from macro_engine.fair_value import FairValueBands, bands, fair_value

_logger = logging.getLogger(__name__)


class MarketPhase(str, Enum):
    ACCUMULATION = "Accumulation"
    EXPANSION = "Expansion"
    EUPHORIA = "Euphoria"
    RECESSION = "Recession"


class RiskLevel(str, Enum):
    LOW = "LOW"
    MODERATE = "MODERATE"
    ELEVATED = "ELEVATED"
    HIGH = "HIGH"


@dataclass(frozen=True)
class MacroSnapshot:
    """Every pipeline output for one asset at one instant."""

    asset: Asset
    as_of: pd.Timestamp
    current_price: float
    fair_value: float
    bands: FairValueBands
    deviation: float
    deviation_score: int
    cycle: CycleProgress
    risk_score: int
    phase: MarketPhase
    risk_level: RiskLevel


def _as_float(value) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def deviation_ratio(current_price, fair) -> float:
    """Signed (price - fair) / fair. NaN when either side is unusable."""
    return safe_divide(_as_float(current_price) - _as_float(fair), _as_float(fair))


def deviation_score(deviation) -> int:
    """
    Map a deviation ratio onto [0, 100].

    -100% -> 0, fair value -> 50, +100% -> 100; saturates outside that
    range. An undefined deviation scores neutral.
    """
    deviation = _as_float(deviation)
    if math.isnan(deviation):
        _logger.debug("Undefined deviation; using neutral score %d", NEUTRAL_DEVIATION_SCORE)
        return NEUTRAL_DEVIATION_SCORE
    if math.isinf(deviation):
        return 100 if deviation > 0 else 0
    return clamp(round_half_up((deviation + 1) * 50), 0, 100)


def combine_scores(dev_score, cycle_percent) -> int:
    """Weighted blend of the deviation and cycle components, in [0, 100]."""
    blended = DEVIATION_WEIGHT * dev_score + CYCLE_WEIGHT * cycle_percent
    return clamp(round_half_up(blended), 0, 100)


def risk_score(asset, current_price, now=None) -> int:
    """
    0-100 risk score for an asset at the given price.

    Fair value and cycle progress are both evaluated at the same
    instant (`now`, default: current UTC time).
    """
    now = to_utc_timestamp(now)
    dev = deviation_ratio(current_price, fair_value(asset, now))
    return combine_scores(deviation_score(dev), cycle_progress(now).percent_complete)


def phase(risk_score, cycle_percent) -> MarketPhase:
    if risk_score < ACCUMULATION_MAX_RISK and cycle_percent < ACCUMULATION_MAX_CYCLE:
        return MarketPhase.ACCUMULATION
    if risk_score < EXPANSION_MAX_RISK and cycle_percent < EXPANSION_MAX_CYCLE:
        return MarketPhase.EXPANSION
    if risk_score >= EUPHORIA_MIN_RISK:
        return MarketPhase.EUPHORIA
    return MarketPhase.RECESSION


def risk_level(score) -> RiskLevel:
    """Qualitative bucket for any 0-100 score."""
    if score < RISK_LEVEL_LOW_MAX:
        return RiskLevel.LOW
    if score < RISK_LEVEL_MODERATE_MAX:
        return RiskLevel.MODERATE
    if score < RISK_LEVEL_ELEVATED_MAX:
        return RiskLevel.ELEVATED
    return RiskLevel.HIGH


def macro_snapshot(asset, current_price, now=None) -> MacroSnapshot:
    """Run the full fair-value / cycle / risk / phase pipeline once."""
    now = to_utc_timestamp(now)
    ladder = bands(asset, now)
    cycle = cycle_progress(now)
    dev = deviation_ratio(current_price, ladder.fair)
    dev_score = deviation_score(dev)
    score = combine_scores(dev_score, cycle.percent_complete)
    return MacroSnapshot(
        asset=Asset.parse(asset),
        as_of=now,
        current_price=_as_float(current_price),
        fair_value=ladder.fair,
        bands=ladder,
        deviation=dev,
        deviation_score=dev_score,
        cycle=cycle,
        risk_score=score,
        phase=phase(score, cycle.percent_complete),
        risk_level=risk_level(score),
    )


def risk_history(asset, prices) -> pd.Series:
    """
    Risk score for every point of a price series.

    With a DatetimeIndex each point is scored at its own timestamp;
    otherwise every point is scored against the current clock.
    """
    prices = to_numeric_series(prices)
    if prices.empty:
        return pd.Series([], index=prices.index, dtype=int)

    if isinstance(prices.index, pd.DatetimeIndex):
        instants = [to_utc_timestamp(ts) for ts in prices.index]
    else:
        instants = [to_utc_timestamp(None)] * len(prices)

    scores = [risk_score(asset, price, ts) for price, ts in zip(prices.to_numpy(), instants)]
    return pd.Series(scores, index=prices.index, dtype=int, name="risk")
