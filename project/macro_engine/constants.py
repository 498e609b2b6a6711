# constants.py
# ------------------------------------------------------------------
# Shared calibration constants used across macro_engine modules.
#
# Every number the scoring pipeline depends on lives here: the
# genesis instant, the halving schedule, the fair-value models, the
# risk weights and the phase / risk-level thresholds. Recalibrating
# the model is a change to this file (or a runtime override), never
# a change to the algorithms.
# ------------------------------------------------------------------

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple, Union

import pandas as pd


# ------------------------------------------------------------------
# Assets
# ------------------------------------------------------------------
class Asset(str, Enum):
    """Closed set of modeled assets. OTHER is the default arm."""

    BTC = "BTC"
    ETH = "ETH"
    OTHER = "OTHER"

    @classmethod
    def parse(cls, token) -> "Asset":
        """
        Map a free-form token onto an Asset.

        Case- and whitespace-insensitive. None, empty strings and
        unrecognized tokens all map to Asset.OTHER rather than raising.
        """
        if isinstance(token, Asset):
            return token
        if not token or not isinstance(token, str):
            return cls.OTHER
        try:
            return cls(token.strip().upper())
        except ValueError:
            return cls.OTHER


# ------------------------------------------------------------------
# Fair-value models
# ------------------------------------------------------------------
@dataclass(frozen=True)
class LogRegressionModel:
    """fair = max(floor, slope × ln(days) + intercept)"""

    slope: float
    intercept: float
    floor: float

    def estimate(self, days_since_genesis: int) -> float:
        days = max(1, days_since_genesis)
        return max(self.floor, self.slope * math.log(days) + self.intercept)


@dataclass(frozen=True)
class FixedValueModel:
    """Constant fair value, independent of time."""

    value: float

    def estimate(self, days_since_genesis: int) -> float:
        return self.value


FairValueModel = Union[LogRegressionModel, FixedValueModel]

# Bitcoin genesis block. Days elapsed since this instant drive the
# log-regression model; it predates any plausible "now".
GENESIS_DATE: pd.Timestamp = pd.Timestamp("2009-01-03")

# Approximate coefficients of the BTC log-linear growth trend.
BTC_LOG_SLOPE: float = 15_000.0
BTC_LOG_INTERCEPT: float = -100_000.0
BTC_FAIR_VALUE_FLOOR: float = 1_000.0

ETH_FAIR_VALUE: float = 2_800.0

# Returned for any asset without a dedicated model.
DEFAULT_FAIR_VALUE: float = 50_000.0

DEFAULT_ASSET_MODELS: Dict[Asset, FairValueModel] = {
    Asset.BTC: LogRegressionModel(
        slope=BTC_LOG_SLOPE,
        intercept=BTC_LOG_INTERCEPT,
        floor=BTC_FAIR_VALUE_FLOOR,
    ),
    Asset.ETH: FixedValueModel(ETH_FAIR_VALUE),
    Asset.OTHER: FixedValueModel(DEFAULT_FAIR_VALUE),
}


# ------------------------------------------------------------------
# Per-Asset Model Override Registry
# ------------------------------------------------------------------
# Lets a caller swap the calibration of a modeled asset at runtime,
# e.g. after refitting the regression on fresh price history, without
# editing DEFAULT_ASSET_MODELS.
#
# Format: { Asset.BTC: LogRegressionModel(...) }
#
# Intentionally empty by default.
# ------------------------------------------------------------------
ASSET_MODEL_OVERRIDES: Dict[Asset, FairValueModel] = {}


def get_asset_model(asset) -> FairValueModel:
    """
    Return the fair-value model for an asset token.

    Priority order:
      1. Value in ASSET_MODEL_OVERRIDES
      2. DEFAULT_ASSET_MODELS entry for the parsed asset
         (unknown tokens resolve to the Asset.OTHER default arm)
    """
    key = Asset.parse(asset)
    return ASSET_MODEL_OVERRIDES.get(key, DEFAULT_ASSET_MODELS[key])


def set_asset_model(asset, model: FairValueModel) -> None:
    """
    Register a fair-value model for an asset at runtime.

    Raises:
        ValueError: If the model could produce a non-positive fair value
                    (fixed value or regression floor <= 0).
        TypeError:  If model is not a known model type.
    """
    if isinstance(model, FixedValueModel):
        bound = model.value
    elif isinstance(model, LogRegressionModel):
        bound = model.floor
    else:
        raise TypeError(f"Unsupported fair-value model: {type(model).__name__}")

    if not (bound > 0 and math.isfinite(bound)):
        raise ValueError(
            f"Fair-value model for '{asset}' must be bounded below by a positive "
            f"finite price, got {bound!r}."
        )
    ASSET_MODEL_OVERRIDES[Asset.parse(asset)] = model


def clear_asset_model(asset) -> None:
    """Remove an override, reverting to DEFAULT_ASSET_MODELS."""
    ASSET_MODEL_OVERRIDES.pop(Asset.parse(asset), None)


def list_asset_model_overrides() -> dict:
    """Return a copy of the current override registry."""
    return dict(ASSET_MODEL_OVERRIDES)


# Confidence ladder around fair value (≈ ±1σ, ±2σ, ±3σ in log space).
BAND_MULTIPLIERS: Dict[str, float] = {
    "upper3": 10.0,
    "upper2": 5.0,
    "upper1": 2.5,
    "fair": 1.0,
    "lower1": 0.5,
    "lower2": 0.25,
    "lower3": 0.1,
}


# ------------------------------------------------------------------
# Halving schedule
# ------------------------------------------------------------------
@dataclass(frozen=True)
class EpochBoundary:
    """One cycle-defining event (a halving)."""

    index: int
    date: pd.Timestamp
    projected: bool = False
    block_height: Optional[int] = None
    block_reward: Optional[float] = None


# Strictly increasing. The last entry is an estimate, not an observed event.
HALVING_SCHEDULE: Tuple[EpochBoundary, ...] = (
    EpochBoundary(0, pd.Timestamp("2012-11-28"), False, 210_000, 25.0),
    EpochBoundary(1, pd.Timestamp("2016-07-09"), False, 420_000, 12.5),
    EpochBoundary(2, pd.Timestamp("2020-05-11"), False, 630_000, 6.25),
    EpochBoundary(3, pd.Timestamp("2024-04-20"), False, 840_000, 3.125),
    EpochBoundary(4, pd.Timestamp("2028-04-15"), True, 1_050_000, 1.5625),
)


# ------------------------------------------------------------------
# Risk score weighting
# ------------------------------------------------------------------
# riskScore = DEVIATION_WEIGHT × deviationScore + CYCLE_WEIGHT × cycle%
# Fixed design constants, not fitted.
DEVIATION_WEIGHT: float = 0.6
CYCLE_WEIGHT: float = 0.4

# Score assigned when the deviation is undefined (NaN price).
NEUTRAL_DEVIATION_SCORE: int = 50


# ------------------------------------------------------------------
# Phase thresholds (evaluated in order, first match wins)
# ------------------------------------------------------------------
ACCUMULATION_MAX_RISK: int = 30
ACCUMULATION_MAX_CYCLE: int = 40
EXPANSION_MAX_RISK: int = 60
EXPANSION_MAX_CYCLE: int = 70
EUPHORIA_MIN_RISK: int = 60


# ------------------------------------------------------------------
# Risk level labels (upper bounds, exclusive)
# ------------------------------------------------------------------
RISK_LEVEL_LOW_MAX: int = 30
RISK_LEVEL_MODERATE_MAX: int = 50
RISK_LEVEL_ELEVATED_MAX: int = 70
