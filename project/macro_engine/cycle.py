# cycle.py
# ------------------------------------------------------------------
# Halving-cycle progress.
#
# Locates "now" inside the halving schedule and reports how far the
# current cycle has run. Out-of-range instants are clamped:
#   - before the first boundary  -> cycle 0, 0% complete
#   - at/after the last boundary -> last cycle, 100% complete,
#                                   days_until_next goes negative
# A zero-length window (start == end) reports 100%.
# ------------------------------------------------------------------

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from macro_engine.calculations import (
    clamp,
    round_half_up,
    to_utc_timestamp,
    whole_days_between,
)
from macro_engine.constants import HALVING_SCHEDULE, EpochBoundary

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CycleProgress:
    cycle_index: int
    percent_complete: int
    days_since_start: int
    days_until_next: int
    start_boundary: EpochBoundary
    end_boundary: EpochBoundary


def halving_schedule() -> Tuple[EpochBoundary, ...]:
    """Return the configured halving schedule."""
    return HALVING_SCHEDULE


def _validated(boundaries: Optional[Sequence[EpochBoundary]]) -> Tuple[EpochBoundary, ...]:
    bounds = tuple(HALVING_SCHEDULE if boundaries is None else boundaries)
    if len(bounds) < 2:
        raise ValueError(
            f"A cycle schedule needs at least two boundaries, got {len(bounds)}."
        )
    for prev, cur in zip(bounds, bounds[1:]):
        if to_utc_timestamp(cur.date) < to_utc_timestamp(prev.date):
            raise ValueError(
                f"Cycle boundaries must be in chronological order: "
                f"#{cur.index} ({to_utc_timestamp(cur.date).date()}) precedes "
                f"#{prev.index} ({to_utc_timestamp(prev.date).date()})."
            )
    return bounds


def _locate(now, bounds: Tuple[EpochBoundary, ...]) -> int:
    """Index i of the pair (bounds[i], bounds[i+1]) that contains now."""
    if now < to_utc_timestamp(bounds[0].date):
        _logger.debug("now=%s precedes first boundary; clamping to cycle 0", now)
        return 0
    for i in range(len(bounds) - 1):
        start = to_utc_timestamp(bounds[i].date)
        end = to_utc_timestamp(bounds[i + 1].date)
        if start <= now < end:
            return i
    _logger.debug("now=%s is past the last boundary; clamping to final cycle", now)
    return len(bounds) - 2


def cycle_progress(now=None, boundaries: Optional[Sequence[EpochBoundary]] = None) -> CycleProgress:
    """
    Where `now` falls within the halving schedule.

    Args:
        now:        Evaluation instant (any datetime-like). Defaults to the
                    current UTC wall clock.
        boundaries: Optional custom schedule; defaults to HALVING_SCHEDULE.

    Returns:
        CycleProgress with percent_complete clamped to [0, 100].

    Raises:
        ValueError: If the schedule has fewer than two boundaries or is
                    not in chronological order.
    """
    bounds = _validated(boundaries)
    now = to_utc_timestamp(now)

    i = _locate(now, bounds)
    start_b, end_b = bounds[i], bounds[i + 1]
    start = to_utc_timestamp(start_b.date)
    end = to_utc_timestamp(end_b.date)

    duration = end - start
    if duration.value <= 0:
        percent = 100
    else:
        percent = clamp(round_half_up(100 * ((now - start) / duration)), 0, 100)

    return CycleProgress(
        cycle_index=i,
        percent_complete=percent,
        days_since_start=max(0, whole_days_between(start, now)),
        days_until_next=whole_days_between(now, end),
        start_boundary=start_b,
        end_boundary=end_b,
    )


def current_boundary(now=None, boundaries: Optional[Sequence[EpochBoundary]] = None) -> EpochBoundary:
    """The boundary that opened the cycle containing `now`."""
    return cycle_progress(now, boundaries).start_boundary


def next_boundary(now=None, boundaries: Optional[Sequence[EpochBoundary]] = None) -> EpochBoundary:
    """The boundary that closes the cycle containing `now`."""
    return cycle_progress(now, boundaries).end_boundary
