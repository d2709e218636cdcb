"""OHLC bar model and boundary validation.

Raw records coming from a quote provider are normalised here into
``Bar`` objects.  Records with missing or non-numeric prices are
dropped rather than coerced; timestamps are reduced to integer seconds
since the epoch (UTC).  A ``BarSeries`` refuses to hold bars whose
times are not strictly increasing, so every calculator downstream can
rely on chronological order.
"""
from __future__ import annotations

import datetime as dt
import math
import numbers
from collections.abc import Mapping, Sequence
from dataclasses import asdict, dataclass
from typing import Any, Iterable, Iterator, List, Optional, Union

import numpy as np
import pandas as pd

from .config import get_logger

logger = get_logger("signal_engine.bars")

PRICE_FIELDS = ("open", "high", "low", "close")
TIME_FIELDS = ("time", "date")


class BarOrderError(ValueError):
    """Raised when bar timestamps are not strictly increasing."""


@dataclass(frozen=True)
class Bar:
    time: int
    open: float
    high: float
    low: float
    close: float

    def to_dict(self) -> dict:
        return asdict(self)


def _is_price(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    try:
        return math.isfinite(float(value))
    except (OverflowError, TypeError):
        return False


def to_epoch_seconds(value: Any, unit: str = "s") -> Optional[int]:
    """
    Convert a timestamp to integer seconds since the epoch.

    Numbers are read in ``unit`` (``"s"`` or ``"ms"``).  ``datetime``/
    ``Timestamp`` objects and ISO strings are parsed; naive values are
    read as UTC.  Returns None when the value cannot be interpreted or
    falls outside the range pandas can represent.
    """
    if isinstance(value, bool) or value is None:
        return None
    try:
        if isinstance(value, numbers.Real):
            if not math.isfinite(float(value)):
                return None
            ts = pd.Timestamp(value, unit=unit)
        elif isinstance(value, (str, dt.datetime, dt.date, pd.Timestamp, np.datetime64)):
            ts = pd.Timestamp(value)
        else:
            return None
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(ts):
        return None
    ts = ts.tz_localize("UTC") if ts.tz is None else ts.tz_convert("UTC")
    return int(ts.timestamp())


def normalize_record(record: Any) -> Optional[Bar]:
    """Return a ``Bar`` for a well-formed record, or None to drop it."""
    if not isinstance(record, Mapping):
        return None
    prices = [record.get(name) for name in PRICE_FIELDS]
    if not all(_is_price(p) for p in prices):
        return None
    # numeric ``time`` is epoch seconds, numeric ``date`` (quote payloads) is epoch ms
    key = next((k for k in TIME_FIELDS if record.get(k) is not None), None)
    if key is None:
        return None
    seconds = to_epoch_seconds(record[key], unit="ms" if key == "date" else "s")
    if seconds is None:
        return None
    o, h, l, c = (float(p) for p in prices)
    return Bar(time=seconds, open=o, high=h, low=l, close=c)


class BarSeries(Sequence):
    """Immutable, strictly time-ordered sequence of bars."""

    __slots__ = ("_bars",)

    def __init__(self, bars: Iterable[Bar] = ()):
        bars = tuple(bars)
        for prev, cur in zip(bars, bars[1:]):
            if cur.time <= prev.time:
                raise BarOrderError(
                    f"bar times must be strictly increasing: {cur.time} follows {prev.time}"
                )
        self._bars = bars

    @classmethod
    def from_records(cls, records: Iterable[Any]) -> "BarSeries":
        bars: List[Bar] = []
        dropped = 0
        for rec in records:
            bar = normalize_record(rec)
            if bar is None:
                dropped += 1
            else:
                bars.append(bar)
        if dropped:
            logger.debug("Dropped %d malformed bar record(s)", dropped)
        return cls(bars)

    @classmethod
    def from_quotes(cls, payload: Any) -> "BarSeries":
        """Build a series from a ``{"quotes": [...]}`` chart payload."""
        quotes = payload.get("quotes") if isinstance(payload, Mapping) else None
        if not isinstance(quotes, list):
            logger.warning("Unexpected quote payload format: %s", type(payload).__name__)
            return cls()
        return cls.from_records(quotes)

    def __len__(self) -> int:
        return len(self._bars)

    def __getitem__(self, index: Union[int, slice]):
        if isinstance(index, slice):
            return BarSeries(self._bars[index])
        return self._bars[index]

    def __iter__(self) -> Iterator[Bar]:
        return iter(self._bars)

    def __repr__(self) -> str:
        if not self._bars:
            return "BarSeries([])"
        return f"BarSeries(len={len(self)}, start={self._bars[0].time}, end={self._bars[-1].time})"

    @property
    def times(self) -> List[int]:
        return [b.time for b in self._bars]

    @property
    def closes(self) -> pd.Series:
        """Close prices indexed by bar time."""
        index = pd.Index(self.times, name="time", dtype="int64")
        return pd.Series([b.close for b in self._bars], index=index, name="close", dtype=float)

    def to_frame(self) -> pd.DataFrame:
        index = pd.Index(self.times, name="time", dtype="int64")
        data = {name: [getattr(b, name) for b in self._bars] for name in PRICE_FIELDS}
        return pd.DataFrame(data, index=index, dtype=float)
