"""
FastAPI application exposing the indicator and signal engine over
JSON.  Bars travel in the request body; the API never fetches or
stores market data and keeps no state between requests.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field, ValidationInfo, field_validator

from signal_engine import (
    BarOrderError,
    BarSeries,
    MacdParams,
    SignalParams,
    compute_ema,
    compute_macd,
    compute_rsi,
    compute_sma,
    crossover_markers,
    generate_signals,
    to_points,
)
from signal_engine.config import get_logger

logger = get_logger("signal_api")
app = FastAPI(title="Indicator & Signal API")


# ----------------------------------------------------------------------
# Models
# ----------------------------------------------------------------------
class BarsRequest(BaseModel):
    bars: List[Any] = Field(
        ..., description="Bar records with time (or date) and open/high/low/close"
    )


class IndicatorRequest(BarsRequest):
    indicators: List[str] = Field(
        ..., description="Indicators: sma14, ema20, rsi14, macd, macd_12_26_9"
    )


class SignalParamsModel(BaseModel):
    """Overrides for the signal generator; omitted fields keep their defaults."""
    fast_period: Optional[int] = None
    slow_period: Optional[int] = None
    rsi_period: Optional[int] = None
    macd_fast: Optional[int] = None
    macd_slow: Optional[int] = None
    macd_signal: Optional[int] = None
    min_bars: Optional[int] = None
    min_signal_distance: Optional[int] = None
    rsi_low: Optional[float] = None
    rsi_high: Optional[float] = None
    momentum_threshold: Optional[float] = None

    def to_params(self) -> SignalParams:
        overrides = self.model_dump(exclude_none=True)
        macd_fields = {
            key[len("macd_"):]: overrides.pop(key)
            for key in ("macd_fast", "macd_slow", "macd_signal")
            if key in overrides
        }
        if macd_fields:
            overrides["macd"] = MacdParams(**macd_fields)
        return SignalParams(**overrides)


class SignalRequest(BarsRequest):
    params: SignalParamsModel = Field(default_factory=SignalParamsModel)


class CrossoverRequest(BarsRequest):
    fast: int = Field(3, ge=1, description="Fast EMA period")
    slow: int = Field(30, ge=1, description="Slow EMA period")

    @field_validator("slow")
    @classmethod
    def _validate_periods(cls, v, info: ValidationInfo):
        fast = info.data.get("fast")
        if fast is not None and v == fast:
            raise ValueError("slow must differ from fast")
        return v


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------
def _load_bars(records: List[Any]) -> BarSeries:
    try:
        bars = BarSeries.from_records(records)
    except BarOrderError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not len(bars):
        raise HTTPException(status_code=404, detail="No valid bars in request")
    return bars


def _points(series) -> List[Dict[str, float]]:
    return [{"time": p.time, "value": p.value} for p in to_points(series)]


def _window(key: str, prefix: str, default: Optional[int] = None) -> int:
    raw = key[len(prefix):]
    if not raw and default is not None:
        return default
    try:
        return int(raw)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Bad window in indicator {key}")


def _macd_params(key: str) -> MacdParams:
    parts = key.split("_")[1:]
    if not parts:
        return MacdParams()
    if len(parts) != 3:
        raise HTTPException(status_code=400, detail=f"Bad MACD spec {key}, expected macd_F_S_N")
    try:
        fast, slow, signal = (int(p) for p in parts)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Bad MACD spec {key}")
    return MacdParams(fast=fast, slow=slow, signal=signal)


# ----------------------------------------------------------------------
# Endpoints
# ----------------------------------------------------------------------
@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/indicators/compute")
async def compute_indicators(req: IndicatorRequest):
    if not req.indicators:
        raise HTTPException(400, detail="No indicators requested")
    bars = _load_bars(req.bars)
    result: Dict[str, Any] = {}
    try:
        for ind in req.indicators:
            key = ind.lower()
            if key.startswith("sma"):
                result[key] = _points(compute_sma(bars, _window(key, "sma")))
            elif key.startswith("ema"):
                result[key] = _points(compute_ema(bars, _window(key, "ema")))
            elif key.startswith("rsi"):
                result[key] = _points(compute_rsi(bars, _window(key, "rsi", default=14)))
            elif key == "macd" or key.startswith("macd_"):
                p = _macd_params(key)
                macd = compute_macd(bars, fast=p.fast, slow=p.slow, signal=p.signal)
                result[key] = {
                    "line": _points(macd.line),
                    "signal": _points(macd.signal),
                    "histogram": _points(macd.histogram),
                }
            else:
                raise HTTPException(400, detail=f"Unknown indicator {ind}")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return result


@app.post("/signals/markers")
async def signal_markers(req: SignalRequest):
    """
    Run the confirmed crossover signal generator over the posted bars.
    Fewer bars than ``min_bars`` is not an error; the marker list is
    simply empty.
    """
    try:
        params = req.params.to_params()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    bars = _load_bars(req.bars)
    try:
        markers = generate_signals(bars, params)
    except Exception:
        logger.exception("Unhandled error in /signals/markers")
        raise HTTPException(status_code=500, detail="Internal server error")
    return {"markers": [m.to_dict() for m in markers]}


@app.post("/signals/crossovers")
async def signal_crossovers(req: CrossoverRequest):
    bars = _load_bars(req.bars)
    markers = crossover_markers(bars, fast=req.fast, slow=req.slow)
    return {"markers": [m.to_dict() for m in markers]}
