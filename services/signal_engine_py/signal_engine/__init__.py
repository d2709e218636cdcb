"""Indicator and signal engine for OHLC chart data.

This package validates an ordered series of price bars, computes
moving averages, RSI and MACD over it, and derives BUY/SELL chart
markers from those indicators.  All functions are side-effect free
and return new series; none of them fetch or persist data.
"""

from .bars import Bar, BarOrderError, BarSeries, normalize_record, to_epoch_seconds
from .config import MacdParams, SignalParams
from .indicators import (
    IndicatorPoint,
    MacdOffsets,
    MacdResult,
    compute_sma,
    compute_ema,
    compute_rsi,
    compute_macd,
    compute_macd_with,
    macd_offsets,
    to_points,
)
from .rules import (
    Direction,
    Marker,
    Position,
    SignalInputs,
    crossover_markers,
    generate_signals,
    scan_markers,
)

__all__ = [
    "Bar",
    "BarOrderError",
    "BarSeries",
    "normalize_record",
    "to_epoch_seconds",
    "MacdParams",
    "SignalParams",
    "IndicatorPoint",
    "MacdOffsets",
    "MacdResult",
    "compute_sma",
    "compute_ema",
    "compute_rsi",
    "compute_macd",
    "compute_macd_with",
    "macd_offsets",
    "to_points",
    "Direction",
    "Marker",
    "Position",
    "SignalInputs",
    "crossover_markers",
    "generate_signals",
    "scan_markers",
]
