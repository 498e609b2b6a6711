# economic_risk.py
# ──────────────────────────────────────────────────────────────────────────────
# Composite Macro-Economic Risk Score
# ──────────────────────────────────────────────────────────────────────────────
#
# Each indicator reading is mapped linearly onto a 0–100 risk scale between a
# "calm" and a "stressed" threshold (inverted where a higher reading means
# less risk). Indicators are averaged within their category and categories
# are combined by fixed weights:
#
#   Credit 25% · Liquidity 20% · Market 20% · Monetary 15%
#   Systemic 10% · Real Estate 10%
#
# Missing readings
# ----------------
#  - An indicator with no usable reading is skipped (logged at WARNING).
#  - A category left with no readings is dropped and the remaining weights
#    are renormalized so they still sum to 1.
#  - If nothing at all is usable, ValueError is raised.
# ──────────────────────────────────────────────────────────────────────────────

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, List, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from macro_engine.calculations import clamp, round_half_up, safe_divide
from macro_engine.risk import RiskLevel, risk_level

_logger = logging.getLogger(__name__)

# Risk assigned to any inverted (negative) 10Y–2Y yield curve.
INVERTED_CURVE_RISK: float = 80.0


# ─────────────────────────────────────────────────────────────────────────────
# Data structures
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class IndicatorSpec:
    key: str
    name: str
    low: float
    high: float
    inverted: bool = False
    unit: str = ""
    # Optional custom scorer; replaces the linear low/high mapping.
    scorer: Optional[Callable[[float], float]] = None

    def score(self, value: float) -> float:
        if self.scorer is not None:
            return self.scorer(value)
        return normalize_indicator(value, self.low, self.high, self.inverted)


@dataclass(frozen=True)
class CategorySpec:
    name: str
    weight: float
    indicators: Tuple[IndicatorSpec, ...]


@dataclass
class IndicatorScore:
    key: str
    name: str
    value: float
    risk: float
    unit: str = ""


@dataclass
class CategoryScore:
    name: str
    weight: float
    score: float = np.nan
    indicators: List[IndicatorScore] = field(default_factory=list)


@dataclass
class EconomicRiskResult:
    score: int
    level: RiskLevel
    categories: List[CategoryScore] = field(default_factory=list)

    def to_frame(self) -> pd.DataFrame:
        """One row per scored indicator, tagged with its category."""
        rows = [
            {
                "Category": cat.name,
                "Weight": cat.weight,
                "Indicator": ind.name,
                "Value": ind.value,
                "Unit": ind.unit,
                "Risk": ind.risk,
            }
            for cat in self.categories
            for ind in cat.indicators
        ]
        return pd.DataFrame(rows, columns=["Category", "Weight", "Indicator", "Value", "Unit", "Risk"])


# ─────────────────────────────────────────────────────────────────────────────
# Scoring
# ─────────────────────────────────────────────────────────────────────────────

def normalize_indicator(value, low, high, inverted: bool = False) -> float:
    """
    Linear map of [low, high] onto [0, 100], clamped.

    Returns NaN for a non-finite reading or a degenerate (low == high)
    range.
    """
    try:
        value = float(value)
    except (TypeError, ValueError):
        return np.nan
    if not math.isfinite(value):
        return np.nan
    fraction = safe_divide(value - low, high - low)
    if math.isnan(fraction):
        return np.nan
    normalized = clamp(fraction * 100.0, 0.0, 100.0)
    return 100.0 - normalized if inverted else normalized


def _yield_curve_risk(spread: float) -> float:
    if spread < 0:
        return INVERTED_CURVE_RISK
    return normalize_indicator(abs(spread), 0.0, 2.0, inverted=True)


ECONOMIC_RISK_CATEGORIES: Tuple[CategorySpec, ...] = (
    CategorySpec("Credit Risk", 0.25, (
        IndicatorSpec("bbb_aaa_spread", "BBB-AAA Spread", 1.0, 5.0, unit="bps"),
        IndicatorSpec("consumer_delinquency", "Consumer Delinquency", 1.5, 6.0, unit="%"),
        IndicatorSpec("corp_debt_to_gdp", "Corp Debt/GDP", 40.0, 60.0, unit="%"),
    )),
    CategorySpec("Liquidity Risk", 0.20, (
        IndicatorSpec("ted_spread", "TED Spread", 0.1, 2.0, unit="bps"),
        IndicatorSpec("bank_liquidity", "Bank Liquidity", 60.0, 100.0, inverted=True, unit="%"),
        IndicatorSpec("commercial_paper", "Commercial Paper", 800.0, 1500.0, inverted=True, unit="$B"),
    )),
    CategorySpec("Market Risk", 0.20, (
        IndicatorSpec("vix", "VIX", 10.0, 50.0),
        IndicatorSpec("sp500_pe", "S&P 500 P/E", 15.0, 30.0, unit="x"),
        IndicatorSpec("put_call_ratio", "Put/Call Ratio", 0.5, 2.0),
    )),
    CategorySpec("Monetary Risk", 0.15, (
        IndicatorSpec("yield_curve_10y2y", "Yield Curve (10Y-2Y)", 0.0, 2.0,
                      inverted=True, unit="%", scorer=_yield_curve_risk),
        IndicatorSpec("real_yield", "Real Yield", -1.0, 4.0, unit="%"),
        IndicatorSpec("inflation_rate", "Inflation Rate", 2.0, 6.0, unit="%"),
    )),
    CategorySpec("Systemic Risk", 0.10, (
        IndicatorSpec("unemployment_rate", "Unemployment Rate", 3.0, 7.0, unit="%"),
        IndicatorSpec("financial_stress_index", "Financial Stress Index", -0.5, 2.0),
        IndicatorSpec("bank_failures", "Bank Failures", 0.0, 5.0),
    )),
    CategorySpec("Real Estate Risk", 0.10, (
        IndicatorSpec("mortgage_rate", "Mortgage Rate", 3.0, 8.0, unit="%"),
        IndicatorSpec("housing_affordability", "Housing Affordability", 70.0, 110.0, inverted=True),
        IndicatorSpec("mortgage_delinquency", "Mortgage Delinquency", 1.0, 5.0, unit="%"),
    )),
)


def indicator_keys() -> List[str]:
    """Every indicator key calculate_economic_risk() looks for."""
    return [ind.key for cat in ECONOMIC_RISK_CATEGORIES for ind in cat.indicators]


def _reading(indicators: Mapping, key: str) -> float:
    raw = indicators.get(key) if hasattr(indicators, "get") else None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return np.nan
    return value if math.isfinite(value) else np.nan


def score_category(spec: CategorySpec, indicators: Mapping) -> CategoryScore:
    """Average the risk of every usable indicator in one category."""
    result = CategoryScore(name=spec.name, weight=spec.weight)
    for ind in spec.indicators:
        value = _reading(indicators, ind.key)
        risk = np.nan if math.isnan(value) else ind.score(value)
        if math.isnan(risk):
            _logger.warning("Skipping %s (%s): no usable reading", ind.name, ind.key)
            continue
        result.indicators.append(IndicatorScore(ind.key, ind.name, value, risk, ind.unit))
    if result.indicators:
        result.score = float(np.mean([i.risk for i in result.indicators]))
    return result


def calculate_economic_risk(
    indicators: Mapping,
    categories: Tuple[CategorySpec, ...] = ECONOMIC_RISK_CATEGORIES,
) -> EconomicRiskResult:
    """
    Weighted 0–100 macro risk score from raw indicator readings.

    Args:
        indicators: Mapping (dict or pd.Series) keyed by indicator_keys().
        categories: Category definitions; defaults to ECONOMIC_RISK_CATEGORIES.

    Raises:
        ValueError: If no indicator has a usable reading.
    """
    scored = [score_category(spec, indicators) for spec in categories]
    usable = [c for c in scored if not math.isnan(c.score)]
    if not usable:
        raise ValueError(
            "No usable economic indicator readings; expected some of: "
            + ", ".join(ind.key for cat in categories for ind in cat.indicators)
        )

    composite = sum(c.score * c.weight for c in usable)
    if len(usable) < len(scored):
        total_weight = sum(c.weight for c in usable)
        dropped = [c.name for c in scored if math.isnan(c.score)]
        _logger.warning("Dropped categories %s; renormalizing weights over %.2f", dropped, total_weight)
        composite /= total_weight

    score = clamp(round_half_up(composite), 0, 100)
    return EconomicRiskResult(score=score, level=risk_level(score), categories=usable)
