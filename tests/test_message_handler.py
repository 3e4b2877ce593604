import json
from datetime import datetime, timezone

import pytest

from conftest import T0, make_payload, make_raw
from core.errors import MalformedPayload
from core.message_handler import decode_history, decode_snapshot, split_frames
from models.signal import SignalKind


def test_decode_snapshot_from_wire_names():
    s = decode_snapshot(make_raw("buy", seconds=0, price=50000.0))

    assert s.signal is SignalKind.BUY
    assert s.binance_price == 50000.0
    assert s.timestamp == T0
    assert s.signal_strength is None
    assert s.auto_trading is None


def test_decode_snapshot_accepts_bytes_and_dict():
    assert decode_snapshot(make_raw().encode()).signal is SignalKind.WAIT
    assert decode_snapshot(make_payload("SELL")).signal is SignalKind.SELL


def test_unknown_signal_is_wait():
    assert decode_snapshot(make_payload("MOON")).signal is SignalKind.WAIT
    payload = make_payload()
    del payload["signal"]
    assert decode_snapshot(payload).signal is SignalKind.WAIT


def test_optional_zero_is_distinct_from_absent():
    s = decode_snapshot(make_payload(signal_strength=0, volatility=1.5))
    assert s.signal_strength == 0
    assert s.volatility == 1.5
    assert s.confidence_score is None


def test_extra_fields_are_kept():
    s = decode_snapshot(make_payload(multi_timeframe={"1h": "BUY"}))
    assert s.model_extra["multi_timeframe"] == {"1h": "BUY"}


@pytest.mark.parametrize(
    "ts",
    [1735732800, 1735732800000, "2025-01-01T12:00:00Z", "2025-01-01T12:00:00"],
)
def test_timestamp_forms(ts):
    s = decode_snapshot(make_payload() | {"timestamp": ts})
    assert s.timestamp == datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "raw",
    [
        "{broken",
        "[1, 2]",
        json.dumps(make_payload() | {"binancePrice": -1}),
        json.dumps(make_payload() | {"timestamp": 0}),
        json.dumps({k: v for k, v in make_payload().items() if k != "rsi"}),
        b"\xff\xfe",
    ],
)
def test_malformed_payloads(raw):
    with pytest.raises(MalformedPayload):
        decode_snapshot(raw)


def test_to_payload_uses_wire_names():
    body = decode_snapshot(make_payload("BUY")).to_payload()
    assert body["binancePrice"] == 50000.0
    assert body["signal"] == "BUY"
    assert "signal_strength" not in body


def test_snapshot_is_immutable():
    s = decode_snapshot(make_payload())
    with pytest.raises(Exception):
        s.rsi = 10


def test_decode_history_skips_bad_entries(caplog):
    raw = json.dumps([make_payload("BUY", 2), {"signal": "SELL"}, make_payload("HOLD", 1)])
    history = decode_history(raw)

    assert [s.signal for s in history] == [SignalKind.BUY, SignalKind.HOLD]
    assert "Skipping history entry 1" in caplog.text


def test_decode_history_wrapped_and_invalid():
    assert len(decode_history({"data": [make_payload()]})) == 1
    with pytest.raises(MalformedPayload):
        decode_history({"oops": True})


def test_split_frames():
    raw = make_raw("BUY") + "\n\n" + make_raw("SELL", seconds=1) + "\n"
    assert len(split_frames(raw)) == 2
    assert split_frames(raw.encode()) == split_frames(raw)


def test_split_frames_keeps_invalid_utf8_frame_undecoded():
    corrupt = make_raw("BUY").encode().replace(b"BUY", b"B\xffY")

    frames = split_frames(corrupt)

    assert frames == [corrupt]
    with pytest.raises(MalformedPayload):
        decode_snapshot(frames[0])
