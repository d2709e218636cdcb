"""
End-to-end tests for the HTTP adapter using FastAPI's in-process test
client.  No network or external services are involved.
"""
import os
import sys

from fastapi.testclient import TestClient

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '../../services/signal_engine_py')))

from signal_api.api import app

client = TestClient(app)

CLOSES = [5.0, 4.0, 3.0, 2.0, 1.0, 2.0, 3.0, 4.0, 5.0, 6.0]


def _records(closes, start=1_700_000_000, step=3600):
    return [
        {"time": start + i * step, "open": c, "high": c + 0.5, "low": c - 0.5, "close": c}
        for i, c in enumerate(closes)
    ]


def test_health():
    assert client.get("/health").json() == {"status": "ok"}


def test_compute_indicators():
    resp = client.post(
        "/indicators/compute",
        json={"bars": _records(CLOSES), "indicators": ["sma3", "EMA3", "rsi2", "macd_2_4_3"]},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert len(body["sma3"]) == 8
    assert body["sma3"][0] == {"time": 1_700_000_000 + 2 * 3600, "value": 4.0}
    assert len(body["ema3"]) == 8
    assert len(body["rsi2"]) == 8
    macd = body["macd_2_4_3"]
    assert len(macd["line"]) == 7
    assert len(macd["signal"]) == 5
    assert len(macd["histogram"]) == 5


def test_malformed_records_are_dropped():
    records = _records(CLOSES) + [{"time": 1_800_000_000, "open": "x", "high": 1, "low": 1, "close": 1}]
    resp = client.post("/indicators/compute", json={"bars": records, "indicators": ["sma3"]})
    assert resp.status_code == 200
    assert len(resp.json()["sma3"]) == 8


def test_unknown_indicator():
    resp = client.post("/indicators/compute", json={"bars": _records(CLOSES), "indicators": ["vwap"]})
    assert resp.status_code == 400


def test_unordered_bars_rejected():
    records = list(reversed(_records(CLOSES)))
    resp = client.post("/indicators/compute", json={"bars": records, "indicators": ["sma3"]})
    assert resp.status_code == 400


def test_no_valid_bars():
    resp = client.post(
        "/indicators/compute",
        json={"bars": [{"time": 1, "close": None}], "indicators": ["sma3"]},
    )
    assert resp.status_code == 404


def test_markers_need_fifty_bars():
    resp = client.post("/signals/markers", json={"bars": _records(CLOSES)})
    assert resp.status_code == 200
    assert resp.json() == {"markers": []}


def test_markers_linear_rise():
    resp = client.post("/signals/markers", json={"bars": _records([float(c) for c in range(100, 160)])})
    assert resp.status_code == 200
    assert resp.json()["markers"] == []


def test_markers_bad_params():
    resp = client.post(
        "/signals/markers",
        json={"bars": _records(CLOSES), "params": {"rsi_low": 70, "rsi_high": 30}},
    )
    assert resp.status_code == 400


def test_crossovers():
    resp = client.post("/signals/crossovers", json={"bars": _records(CLOSES), "fast": 2, "slow": 4})
    assert resp.status_code == 200
    markers = resp.json()["markers"]
    assert len(markers) == 1
    assert markers[0]["index"] == 6
    assert markers[0]["direction"] == "BUY"
    assert markers[0]["position"] == "belowBar"


def test_crossovers_same_periods_rejected():
    resp = client.post("/signals/crossovers", json={"bars": _records(CLOSES), "fast": 5, "slow": 5})
    assert resp.status_code == 422


def test_oversized_time_is_dropped():
    records = _records(CLOSES) + [{"time": 10**400, "open": 1.0, "high": 1.0, "low": 1.0, "close": 1.0}]
    resp = client.post("/indicators/compute", json={"bars": records, "indicators": ["sma3"]})
    assert resp.status_code == 200
    assert len(resp.json()["sma3"]) == 8


def test_macd_key_needs_separator():
    resp = client.post("/indicators/compute", json={"bars": _records(CLOSES), "indicators": ["macdfoo"]})
    assert resp.status_code == 400
    ok = client.post("/indicators/compute", json={"bars": _records(CLOSES), "indicators": ["macd"]})
    assert ok.status_code == 200
