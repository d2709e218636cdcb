"""Technical indicators computed over a ``BarSeries``.

Each function returns a pandas Series of floats indexed by bar time.
The output covers only the bars for which the indicator is defined, so
it is shorter than the input by the indicator's warm-up length and is
empty when the input is too short.  Recursive indicators (EMA, RSI and
the MACD signal line) are evaluated as a single left-to-right fold over
the closes with one scalar accumulator.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

import pandas as pd

from .bars import BarSeries
from .config import MacdParams, check_period


@dataclass(frozen=True)
class IndicatorPoint:
    time: int
    value: float


def _series(times: Sequence[int], values: Sequence[float], name: str) -> pd.Series:
    index = pd.Index(list(times), name="time", dtype="int64")
    return pd.Series(list(values), index=index, name=name, dtype=float)


def to_points(series: pd.Series) -> List[IndicatorPoint]:
    """Convert an indicator series to a list of ``{time, value}`` points."""
    return [IndicatorPoint(time=int(t), value=float(v)) for t, v in series.items()]


# ----------------------------------------------------------------------
# Moving averages
# ----------------------------------------------------------------------
def compute_sma(bars: BarSeries, period: int) -> pd.Series:
    """
    Simple moving average of closes over a trailing window of ``period``
    bars.  The first point sits on bar ``period - 1``.
    """
    check_period("period", period)
    closes = bars.closes
    return closes.rolling(window=period, min_periods=period).mean().iloc[period - 1:].rename(
        f"sma{period}"
    )


def _ema_fold(values: Sequence[float], period: int) -> List[float]:
    """
    Fold ``values`` into an EMA seeded with the SMA of the first
    ``period`` values.  Returns ``len(values) - period + 1`` points.
    """
    if len(values) < period:
        return []
    k = 2.0 / (period + 1)
    prev_ema = sum(values[:period]) / period
    out = [prev_ema]
    for value in values[period:]:
        prev_ema = value * k + prev_ema * (1 - k)
        out.append(prev_ema)
    return out


def compute_ema(bars: BarSeries, period: int) -> pd.Series:
    """
    Exponential moving average with smoothing ``k = 2 / (period + 1)``.
    The seed is the SMA of the first ``period`` closes, emitted on bar
    ``period - 1``.
    """
    check_period("period", period)
    closes = [b.close for b in bars]
    values = _ema_fold(closes, period)
    return _series(bars.times[period - 1:] if values else [], values, f"ema{period}")


# ----------------------------------------------------------------------
# Momentum
# ----------------------------------------------------------------------
def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def compute_rsi(bars: BarSeries, period: int = 14) -> pd.Series:
    """
    Compute the Relative Strength Index using Wilder's method.

    The averages are initialised from the first ``period`` close-to-close
    changes and then smoothed with
    ``avg = (avg * (period - 1) + current) / period``.  A zero average
    loss saturates the RSI at 100.  Needs more than ``period`` bars.
    """
    check_period("period", period)
    if len(bars) <= period:
        return _series([], [], f"rsi{period}")
    closes = [b.close for b in bars]
    gains = losses = 0.0
    for i in range(1, period + 1):
        delta = closes[i] - closes[i - 1]
        if delta > 0:
            gains += delta
        else:
            losses -= delta
    avg_gain = gains / period
    avg_loss = losses / period
    values = [_rsi_value(avg_gain, avg_loss)]
    for i in range(period + 1, len(closes)):
        delta = closes[i] - closes[i - 1]
        current_gain = delta if delta > 0 else 0.0
        current_loss = -delta if delta < 0 else 0.0
        avg_gain = (avg_gain * (period - 1) + current_gain) / period
        avg_loss = (avg_loss * (period - 1) + current_loss) / period
        values.append(_rsi_value(avg_gain, avg_loss))
    return _series(bars.times[period:], values, f"rsi{period}")


# ----------------------------------------------------------------------
# MACD
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class MacdOffsets:
    """
    Index bookkeeping between the MACD line and its inputs.

    ``line_start`` is the bar index of the first MACD point.  For MACD
    index ``j`` the fast EMA value is ``fast_ema[j + fast_offset]`` and
    the slow one ``slow_ema[j + slow_offset]``.  ``signal_start`` is the
    MACD index of the first signal/histogram point.
    """
    line_start: int
    fast_offset: int
    slow_offset: int
    signal_start: int


def macd_offsets(fast: int, slow: int, signal: int) -> MacdOffsets:
    longest = max(fast, slow)
    return MacdOffsets(
        line_start=longest - 1,
        fast_offset=longest - fast,
        slow_offset=longest - slow,
        signal_start=signal - 1,
    )


@dataclass(frozen=True)
class MacdResult:
    line: pd.Series
    signal: pd.Series
    histogram: pd.Series

    def to_frame(self, index: Optional[Sequence[int]] = None) -> pd.DataFrame:
        """
        Combine the three series into one frame with columns ``macd``,
        ``macd_signal`` and ``macd_diff``; rows outside a series' range
        are NaN.  Pass the bar times as ``index`` to align with the bars.
        """
        df = pd.DataFrame(
            {"macd": self.line, "macd_signal": self.signal, "macd_diff": self.histogram}
        )
        if index is not None:
            df = df.reindex(pd.Index(list(index), name="time", dtype="int64"))
        return df


def compute_macd(
    bars: BarSeries, fast: int = 12, slow: int = 26, signal: int = 9
) -> MacdResult:
    """
    Compute the Moving Average Convergence Divergence.

    The MACD line is ``EMA(fast) - EMA(slow)`` from the bar where both
    EMAs exist; the signal line is an EMA of the MACD line seeded with
    the simple average of its first ``signal`` values; the histogram is
    line minus signal on the signal line's timestamps.
    """
    params = MacdParams(fast=fast, slow=slow, signal=signal)
    offsets = macd_offsets(params.fast, params.slow, params.signal)
    closes = [b.close for b in bars]
    times = bars.times

    fast_ema = _ema_fold(closes, params.fast)
    slow_ema = _ema_fold(closes, params.slow)
    line_len = len(closes) - offsets.line_start
    line_values = [
        fast_ema[j + offsets.fast_offset] - slow_ema[j + offsets.slow_offset]
        for j in range(max(line_len, 0))
    ]
    line_times = times[offsets.line_start:] if line_values else []

    signal_values = _ema_fold(line_values, params.signal)
    hist_values = [
        line_values[i + offsets.signal_start] - sig for i, sig in enumerate(signal_values)
    ]
    signal_times = line_times[offsets.signal_start:] if signal_values else []

    return MacdResult(
        line=_series(line_times, line_values, "macd"),
        signal=_series(signal_times, signal_values, "macd_signal"),
        histogram=_series(signal_times, hist_values, "macd_diff"),
    )


def compute_macd_with(bars: BarSeries, params: MacdParams) -> MacdResult:
    return compute_macd(bars, fast=params.fast, slow=params.slow, signal=params.signal)
