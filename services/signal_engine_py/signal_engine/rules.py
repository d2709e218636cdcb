"""
Turn indicator series into BUY/SELL chart markers.

``generate_signals`` is the confirmed crossover strategy: an EMA golden
or death cross only becomes a marker when RSI sits inside a neutral
band and the MACD histogram confirms the move, and consecutive markers
are kept a minimum number of bars apart.  ``crossover_markers`` is the
plain, unconfirmed EMA crossover.  Indicator values are joined by bar
time, never by position, because each indicator warms up over a
different number of bars.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Dict, List, Optional

import pandas as pd

from .bars import BarSeries
from .config import SignalParams, check_period, get_logger
from .indicators import compute_ema, compute_macd_with, compute_rsi

logger = get_logger("signal_engine.rules")


class Direction(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class Position(str, Enum):
    BELOW_BAR = "belowBar"
    ABOVE_BAR = "aboveBar"


@dataclass(frozen=True)
class Marker:
    time: int
    index: int
    direction: Direction
    position: Position
    color: str
    shape: str
    text: str

    @classmethod
    def buy(cls, time: int, index: int) -> "Marker":
        return cls(time, index, Direction.BUY, Position.BELOW_BAR, "green", "arrowUp", "BUY")

    @classmethod
    def sell(cls, time: int, index: int) -> "Marker":
        return cls(time, index, Direction.SELL, Position.ABOVE_BAR, "red", "arrowDown", "SELL")

    def to_dict(self) -> dict:
        d = asdict(self)
        d["direction"] = self.direction.value
        d["position"] = self.position.value
        return d


@dataclass(frozen=True)
class SignalInputs:
    """Indicator series consumed by ``scan_markers``, each indexed by bar time."""
    fast_ema: pd.Series
    slow_ema: pd.Series
    rsi: pd.Series
    histogram: pd.Series

    @classmethod
    def from_bars(cls, bars: BarSeries, params: SignalParams) -> "SignalInputs":
        return cls(
            fast_ema=compute_ema(bars, params.fast_period),
            slow_ema=compute_ema(bars, params.slow_period),
            rsi=compute_rsi(bars, params.rsi_period),
            histogram=compute_macd_with(bars, params.macd).histogram,
        )


def _lookup(series: pd.Series) -> Dict[int, float]:
    return {int(t): float(v) for t, v in series.items()}


def _cross_up(prev_a, prev_b, a, b) -> bool:
    """True when a moves from at-or-below b to strictly above it."""
    if None in (prev_a, prev_b, a, b):
        return False
    return prev_a <= prev_b and a > b


def _cross_down(prev_a, prev_b, a, b) -> bool:
    if None in (prev_a, prev_b, a, b):
        return False
    return prev_a >= prev_b and a < b


def _rsi_neutral(rsi: Optional[float], params: SignalParams) -> bool:
    return rsi is not None and params.rsi_low < rsi < params.rsi_high


def _histogram_rising(prev: Optional[float], cur: Optional[float], threshold: float) -> bool:
    """Positive histogram that just flipped sign or grew by more than ``threshold``."""
    if prev is None or cur is None or cur <= 0:
        return False
    return prev < 0 or (prev > 0 and cur > prev * (1 + threshold))


def _histogram_falling(prev: Optional[float], cur: Optional[float], threshold: float) -> bool:
    if prev is None or cur is None or cur >= 0:
        return False
    return prev > 0 or (prev < 0 and cur < prev * (1 + threshold))


def scan_markers(
    bars: BarSeries, inputs: SignalInputs, params: Optional[SignalParams] = None
) -> List[Marker]:
    """
    Scan bars from ``params.min_bars`` onward and emit confirmed markers.

    Bars closer than ``min_signal_distance`` to the last emitted marker
    are skipped.  BUY takes precedence; SELL is only checked when BUY
    did not fire on the bar.
    """
    params = params or SignalParams()
    if len(bars) < params.min_bars:
        return []

    fast = _lookup(inputs.fast_ema)
    slow = _lookup(inputs.slow_ema)
    rsi = _lookup(inputs.rsi)
    hist = _lookup(inputs.histogram)
    times = bars.times

    markers: List[Marker] = []
    last_signal_index: Optional[int] = None
    for i in range(params.min_bars, len(bars)):
        if last_signal_index is not None and i - last_signal_index < params.min_signal_distance:
            continue
        t, prev_t = times[i], times[i - 1]
        crossing = (fast.get(prev_t), slow.get(prev_t), fast.get(t), slow.get(t))
        neutral = _rsi_neutral(rsi.get(t), params)
        prev_hist, cur_hist = hist.get(prev_t), hist.get(t)

        marker = None
        if (
            _cross_up(*crossing)
            and neutral
            and _histogram_rising(prev_hist, cur_hist, params.momentum_threshold)
        ):
            marker = Marker.buy(t, i)
        elif (
            _cross_down(*crossing)
            and neutral
            and _histogram_falling(prev_hist, cur_hist, params.momentum_threshold)
        ):
            marker = Marker.sell(t, i)

        if marker is not None:
            markers.append(marker)
            last_signal_index = i
    return markers


def generate_signals(bars: BarSeries, params: Optional[SignalParams] = None) -> List[Marker]:
    """Compute the indicators for ``bars`` and return confirmed markers."""
    params = params or SignalParams()
    if len(bars) < params.min_bars:
        logger.debug("Only %d bars, need %d for signals", len(bars), params.min_bars)
        return []
    markers = scan_markers(bars, SignalInputs.from_bars(bars, params), params)
    logger.debug("Generated %d marker(s) over %d bars", len(markers), len(bars))
    return markers


def crossover_markers(bars: BarSeries, fast: int = 3, slow: int = 30) -> List[Marker]:
    """
    Mark every bar where EMA(``fast``) crosses strictly above (BUY) or
    below (SELL) EMA(``slow``).  No confirmation, no spacing.
    """
    check_period("fast", fast)
    check_period("slow", slow)
    fast_ema = _lookup(compute_ema(bars, fast))
    slow_ema = _lookup(compute_ema(bars, slow))
    times = bars.times
    markers: List[Marker] = []
    for i in range(1, len(bars)):
        t, prev_t = times[i], times[i - 1]
        f, s = fast_ema.get(t), slow_ema.get(t)
        pf, ps = fast_ema.get(prev_t), slow_ema.get(prev_t)
        if None in (f, s, pf, ps):
            continue
        if pf < ps and f > s:
            markers.append(Marker.buy(t, i))
        elif pf > ps and f < s:
            markers.append(Marker.sell(t, i))
    return markers
