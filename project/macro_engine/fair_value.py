# fair_value.py
# ------------------------------------------------------------------
# Log-regression "fair value" and its confidence-band ladder.
#
#   days  = max(1, whole days since GENESIS_DATE)
#   fair  = max(floor, a × ln(days) + b)        (BTC)
#   fair  = fixed constant                       (ETH, everything else)
#
# Coefficients come from constants.get_asset_model(), so a runtime
# override recalibrates every caller at once.
# ------------------------------------------------------------------

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Dict

from macro_engine.calculations import to_utc_timestamp, whole_days_between
from macro_engine.constants import (
    BAND_MULTIPLIERS,
    ASSET_MODEL_OVERRIDES,
    GENESIS_DATE,
    Asset,
    get_asset_model,
)

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FairValueBands:
    upper3: float
    upper2: float
    upper1: float
    fair: float
    lower1: float
    lower2: float
    lower3: float

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


def days_since_genesis(now=None) -> int:
    """Whole days between GENESIS_DATE and `now`, never below 1."""
    return max(1, whole_days_between(GENESIS_DATE, to_utc_timestamp(now)))


def fair_value(asset, now=None) -> float:
    """
    Model fair value for an asset at `now` (default: current UTC time).

    Unrecognized assets fall back to the default fair value.
    """
    parsed = Asset.parse(asset)
    if parsed is Asset.OTHER and parsed not in ASSET_MODEL_OVERRIDES:
        _logger.debug("No dedicated fair-value model for %r; using default", asset)
    return float(get_asset_model(parsed).estimate(days_since_genesis(now)))


def bands(asset, now=None) -> FairValueBands:
    fair = fair_value(asset, now)
    return FairValueBands(**{name: fair * mult for name, mult in BAND_MULTIPLIERS.items()})
