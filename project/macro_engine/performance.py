# performance.py
# ------------------------------------------------------------------
# Return and risk statistics for a portfolio equity curve.
#
# Units follow the dashboard conventions: returns, volatility and
# drawdowns are in PERCENT (12.5 means 12.5%), daily returns are
# decimal fractions (0.01 means +1%). Empty input gives zeros (NaN
# from xirr) instead of raising.
# ------------------------------------------------------------------

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd
from scipy.optimize import brentq

from macro_engine.calculations import safe_divide, to_numeric_series, to_utc_timestamp

_logger = logging.getLogger(__name__)

TRADING_DAYS_PER_YEAR = 252
DAYS_PER_YEAR = 365

# ~10yr Treasury yield, in percent.
RISK_FREE_RATE_DEFAULT: float = 4.5

# Search bracket for the money-weighted rate, as decimal annual rates.
IRR_LOWER_BOUND = -0.9999
IRR_UPPER_BOUND = 100.0


@dataclass(frozen=True)
class DrawdownStats:
    max_drawdown_pct: float = 0.0
    max_drawdown_usd: float = 0.0
    current_drawdown_pct: float = 0.0


def _returns(daily_returns) -> np.ndarray:
    return to_numeric_series(daily_returns).dropna().to_numpy()


# ---------------------------------------------------------
# Returns
# ---------------------------------------------------------
def time_weighted_return(daily_returns) -> float:
    """Compounded return of a sequence of daily returns, in percent."""
    r = _returns(daily_returns)
    if r.size == 0:
        return 0.0
    return float((np.prod(1.0 + r) - 1.0) * 100.0)


def annualize_return(total_return_pct, days) -> float:
    """Annualize a cumulative percent return earned over `days` calendar days."""
    if not days:
        return 0.0
    growth = 1.0 + total_return_pct / 100.0
    if growth <= 0:
        # Total loss or worse has no real annualized rate.
        return np.nan
    years = days / DAYS_PER_YEAR
    return float((growth ** (1.0 / years) - 1.0) * 100.0)


# ---------------------------------------------------------
# Drawdown
# ---------------------------------------------------------
def drawdown_series(equity_curve) -> pd.Series:
    """Percent decline from the running peak at every point (<= 0)."""
    curve = to_numeric_series(equity_curve)
    peak = curve.cummax()
    return (curve - peak) / peak.replace(0, np.nan) * 100.0


def max_drawdown(equity_curve) -> DrawdownStats:
    """Largest peak-to-trough decline, plus the decline from the all-time high."""
    curve = to_numeric_series(equity_curve).dropna()
    if curve.empty:
        return DrawdownStats()

    peak = curve.cummax()
    decline = peak - curve
    fraction = decline / peak.replace(0, np.nan)

    if fraction.notna().any() and fraction.max() > 0:
        # Positional lookup; equity curves may repeat index labels.
        worst = int(np.nanargmax(fraction.to_numpy()))
        max_pct = float(fraction.iloc[worst]) * 100.0
        max_usd = float(decline.iloc[worst])
    else:
        max_pct, max_usd = 0.0, 0.0

    current = safe_divide(curve.max() - curve.iloc[-1], curve.max(), default=0.0)
    return DrawdownStats(
        max_drawdown_pct=max_pct,
        max_drawdown_usd=max_usd,
        current_drawdown_pct=float(current) * 100.0,
    )


# ---------------------------------------------------------
# Risk / risk-adjusted return
# ---------------------------------------------------------
def volatility(daily_returns) -> float:
    """Annualized population standard deviation of daily returns, in percent."""
    r = _returns(daily_returns)
    if r.size == 0:
        return 0.0
    return float(np.std(r, ddof=0) * np.sqrt(TRADING_DAYS_PER_YEAR) * 100.0)


def sharpe_ratio(annualized_return, vol, risk_free_rate=RISK_FREE_RATE_DEFAULT) -> float:
    if vol == 0:
        return 0.0
    return (annualized_return - risk_free_rate) / vol


def sortino_ratio(annualized_return, daily_returns, risk_free_rate=RISK_FREE_RATE_DEFAULT) -> float:
    """
    Like Sharpe, but only downside deviation counts as risk.

    With no losing days there is no downside to divide by and the
    annualized return itself is reported.
    """
    r = _returns(daily_returns)
    if r.size == 0:
        return 0.0
    negative = r[r < 0]
    if negative.size == 0:
        return float(annualized_return)
    downside = np.sqrt(np.mean(negative ** 2)) * np.sqrt(TRADING_DAYS_PER_YEAR) * 100.0
    if downside == 0:
        return 0.0
    return float((annualized_return - risk_free_rate) / downside)


def calmar_ratio(annualized_return, max_drawdown_pct) -> float:
    """Annualized return per point of maximum drawdown."""
    if max_drawdown_pct == 0:
        return 0.0
    return annualized_return / max_drawdown_pct


# ---------------------------------------------------------
# Money-weighted return (XIRR)
# ---------------------------------------------------------
def xirr(dates, cash_flows) -> float:
    """
    Annual rate (decimal) that sets the NPV of dated cash flows to zero.

    Sign convention: money leaving the investor is negative, money coming
    back is positive. Returns NaN when no rate in the search bracket
    solves the equation.
    """
    if len(dates) < 2:
        return np.nan
    stamps = [to_utc_timestamp(d) for d in dates]
    t0 = min(stamps)
    yrs = np.array([(d - t0) / pd.Timedelta(days=1) / 365.25 for d in stamps])
    cfs = np.array(cash_flows, dtype=float)

    def npv(r):
        return float(np.sum(cfs / (1.0 + r) ** yrs))

    try:
        return brentq(npv, IRR_LOWER_BOUND, IRR_UPPER_BOUND, maxiter=500, xtol=1e-8)
    except (ValueError, RuntimeError) as exc:
        _logger.debug("XIRR did not converge: %s", exc)
        return np.nan


def money_weighted_return(cash_flows, current_value, now=None) -> float:
    """
    Annualized money-weighted return, in percent.

    Args:
        cash_flows:    Iterable of (date, amount) pairs; positive amounts are
                       deposits into the portfolio, negative are withdrawals.
        current_value: Portfolio value at `now`.
        now:           Valuation date (default: current UTC time).
    """
    flows = list(cash_flows or [])
    if not flows:
        return 0.0
    dates = [to_utc_timestamp(d) for d, _ in flows] + [to_utc_timestamp(now)]
    amounts = [-float(a) for _, a in flows] + [float(current_value)]
    rate = xirr(dates, amounts)
    return float(rate * 100.0)


# ---------------------------------------------------------
# Trade statistics
# ---------------------------------------------------------
@dataclass(frozen=True)
class TradeStats:
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: float = 0.0
    average_win_usd: float = 0.0
    average_loss_usd: float = 0.0
    largest_win_usd: float = 0.0
    largest_loss_usd: float = 0.0
    profit_factor: float = 0.0
    expectancy: float = 0.0
    avg_win_loss_ratio: float = 0.0


@dataclass(frozen=True)
class StreakStats:
    # Positive = consecutive wins, negative = consecutive losses.
    current_streak: int = 0
    longest_winning_streak: int = 0
    longest_losing_streak: int = 0


def trade_statistics(realized_pnl) -> TradeStats:
    """
    Win/loss statistics over closed trades.

    `realized_pnl` holds one realized P&L per trade, in USD. Missing
    values (open trades) are ignored; break-even trades count toward
    the total but are neither wins nor losses. Loss figures are
    reported as positive magnitudes.
    """
    pnl = to_numeric_series(realized_pnl).dropna()
    if pnl.empty:
        return TradeStats()

    wins = pnl[pnl > 0]
    losses = pnl[pnl < 0].abs()
    total_wins = float(wins.sum())
    total_losses = float(losses.sum())
    avg_win = total_wins / len(wins) if len(wins) else 0.0
    avg_loss = total_losses / len(losses) if len(losses) else 0.0

    return TradeStats(
        total_trades=len(pnl),
        winning_trades=len(wins),
        losing_trades=len(losses),
        win_rate=len(wins) / len(pnl) * 100.0,
        average_win_usd=avg_win,
        average_loss_usd=avg_loss,
        largest_win_usd=float(wins.max()) if len(wins) else 0.0,
        largest_loss_usd=float(losses.max()) if len(losses) else 0.0,
        profit_factor=safe_divide(total_wins, total_losses, default=0.0),
        expectancy=(total_wins - total_losses) / len(pnl),
        avg_win_loss_ratio=safe_divide(avg_win, avg_loss, default=0.0),
    )


def streaks(realized_pnl) -> StreakStats:
    """Current and longest win/loss runs; break-even trades leave a run intact."""
    current = longest_win = longest_loss = 0
    win_run = loss_run = 0
    for value in to_numeric_series(realized_pnl).dropna():
        if value > 0:
            win_run, loss_run = win_run + 1, 0
            current = win_run
            longest_win = max(longest_win, win_run)
        elif value < 0:
            win_run, loss_run = 0, loss_run + 1
            current = -loss_run
            longest_loss = max(longest_loss, loss_run)
    return StreakStats(current, longest_win, longest_loss)


# ---------------------------------------------------------
# Benchmark comparison
# ---------------------------------------------------------
@dataclass(frozen=True)
class BenchmarkComparison:
    portfolio_return: float = 0.0
    benchmark_return: float = 0.0
    alpha: float = 0.0
    beta: float = 1.0
    tracking_error: float = 0.0
    information_ratio: float = 0.0


def compare_to_benchmark(portfolio_returns, benchmark_returns,
                         risk_free_rate=RISK_FREE_RATE_DEFAULT) -> BenchmarkComparison:
    """
    CAPM-style comparison of period returns against a benchmark.

    Both inputs are decimal period returns paired by position; the longer
    one is truncated to the shorter. Period returns are summed, beta is
    cov(p, b) / var(b) (1 when the benchmark is flat) and
    alpha = P - (rf + beta × (B - rf)) with rf = risk_free_rate / 100.
    Tracking error is volatility() of the return differences.
    """
    p = _returns(portfolio_returns)
    b = _returns(benchmark_returns)
    n = min(p.size, b.size)
    if n == 0:
        return BenchmarkComparison()
    p, b = p[:n], b[:n]

    portfolio_return = float(p.sum())
    benchmark_return = float(b.sum())
    bench_dev = b - b.mean()
    bench_var = float(np.sum(bench_dev ** 2))
    beta = float(np.sum((p - p.mean()) * bench_dev) / bench_var) if bench_var > 0 else 1.0

    rf = risk_free_rate / 100.0
    alpha = portfolio_return - (rf + beta * (benchmark_return - rf))
    tracking_error = volatility(p - b)
    information_ratio = alpha / tracking_error if tracking_error > 0 else 0.0

    return BenchmarkComparison(
        portfolio_return=portfolio_return,
        benchmark_return=benchmark_return,
        alpha=alpha,
        beta=beta,
        tracking_error=tracking_error,
        information_ratio=information_ratio,
    )
