"""Runtime configuration for the signal engine.

Defaults come from the environment so a deployment can retune the
signal thresholds without code changes.  Every calculator still takes
its parameters explicitly; the values here only seed the dataclass
defaults.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

# ──────────────────────────────────────────────────────────────────────────────
# Env helpers (strip quotes/whitespace so .env "KEY=value " doesn't break things)
# ──────────────────────────────────────────────────────────────────────────────

def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name)
    if v is None:
        return default
    v = v.strip()
    if (v.startswith('"') and v.endswith('"')) or (v.startswith("'") and v.endswith("'")):
        v = v[1:-1].strip()
    return v or default


LOG_LEVEL = (_env("SIGNAL_ENGINE_LOG_LEVEL", "INFO") or "INFO").upper()
if not isinstance(logging.getLevelName(LOG_LEVEL), int):
    LOG_LEVEL = "INFO"

# ──────────────────────────────────────────────────────────────────────────────
# Logging
# ──────────────────────────────────────────────────────────────────────────────

def get_logger(name: str) -> logging.Logger:
    """Return a named logger with a single stream handler attached."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        _h = logging.StreamHandler()
        _h.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(message)s"))
        logger.addHandler(_h)
    logger.setLevel(LOG_LEVEL)
    return logger


_logger = get_logger("signal_engine.config")


def _env_number(name: str, default, cast):
    """Read a numeric env var, keeping ``default`` when it does not parse."""
    raw = _env(name)
    if raw is None:
        return default
    try:
        return cast(raw)
    except ValueError:
        _logger.warning("Ignoring %s=%r, not a valid %s; using %s", name, raw, cast.__name__, default)
        return default


MIN_BARS = _env_number("SIGNAL_MIN_BARS", 50, int)
MIN_SIGNAL_DISTANCE = _env_number("SIGNAL_MIN_DISTANCE", 5, int)
RSI_LOW = _env_number("SIGNAL_RSI_LOW", 40.0, float)
RSI_HIGH = _env_number("SIGNAL_RSI_HIGH", 60.0, float)
MOMENTUM_THRESHOLD = _env_number("SIGNAL_MOMENTUM_THRESHOLD", 0.2, float)

# ──────────────────────────────────────────────────────────────────────────────
# Parameters
# ──────────────────────────────────────────────────────────────────────────────

def check_period(name: str, value: int) -> None:
    if value < 1:
        raise ValueError(f"{name} must be >= 1, got {value}")


@dataclass(frozen=True)
class MacdParams:
    fast: int = 12
    slow: int = 26
    signal: int = 9

    def __post_init__(self):
        check_period("fast", self.fast)
        check_period("slow", self.slow)
        check_period("signal", self.signal)


@dataclass(frozen=True)
class SignalParams:
    """
    Tuning for the confirmed crossover signal generator.

    ``rsi_low``/``rsi_high`` bound the neutral RSI band (exclusive) and
    ``momentum_threshold`` is the fractional histogram growth that counts
    as acceleration when the histogram has not changed sign.
    """
    fast_period: int = 20
    slow_period: int = 50
    rsi_period: int = 14
    macd: MacdParams = field(default_factory=MacdParams)
    min_bars: int = MIN_BARS
    min_signal_distance: int = MIN_SIGNAL_DISTANCE
    rsi_low: float = RSI_LOW
    rsi_high: float = RSI_HIGH
    momentum_threshold: float = MOMENTUM_THRESHOLD

    def __post_init__(self):
        check_period("fast_period", self.fast_period)
        check_period("slow_period", self.slow_period)
        check_period("rsi_period", self.rsi_period)
        if self.min_bars < 1:
            raise ValueError("min_bars must be >= 1")
        if self.min_signal_distance < 0:
            raise ValueError("min_signal_distance must be >= 0")
        if not 0 <= self.rsi_low < self.rsi_high <= 100:
            raise ValueError("RSI band must satisfy 0 <= rsi_low < rsi_high <= 100")
        if self.momentum_threshold < 0:
            raise ValueError("momentum_threshold must be >= 0")
