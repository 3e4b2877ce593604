import json
import logging
from datetime import datetime, timedelta, timezone

import pytest

from core.errors import TransportError
from modules.sync_client import SyncClient
from utils.visibility import ManualVisibility

T0 = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


def make_payload(signal="WAIT", seconds=0, price=50000.0, **extra):
    payload = {
        "signal": signal,
        "binancePrice": price,
        "dexPrice": price * 1.001,
        "spread": 0.1,
        "rsi": 45.0,
        "ema": 49900.0,
        "timestamp": (T0 + timedelta(seconds=seconds)).isoformat(),
    }
    payload.update(extra)
    return payload


def make_raw(signal="WAIT", seconds=0, price=50000.0, **extra):
    return json.dumps(make_payload(signal, seconds, price, **extra))


# ------------------------- Fakes ------------------------- #

class FakeHandle:
    def __init__(self, due, callback):
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeTimer:
    """Virtual clock: callbacks fire only when the test advances time."""

    def __init__(self):
        self.now = 0.0
        self.handles = []

    def call_later(self, delay, callback):
        handle = FakeHandle(self.now + delay, callback)
        self.handles.append(handle)
        return handle

    @property
    def pending(self):
        return [h for h in self.handles if not h.cancelled]

    def advance(self, seconds):
        target = self.now + seconds
        while True:
            due = [h for h in self.pending if h.due <= target]
            if not due:
                break
            handle = min(due, key=lambda h: h.due)
            self.handles.remove(handle)
            self.now = handle.due
            handle.callback()
        self.now = target


class FakeChannel:
    """Push channel driven by the test instead of a socket."""

    def __init__(self, url, *, on_open, on_message, on_close, on_error, **kwargs):
        self.url = url
        self.on_open = on_open
        self.on_message = on_message
        self.on_close = on_close
        self.on_error = on_error
        self.opened = False
        self.closed = False
        self.is_open = False

    def open(self):
        self.opened = True

    def close(self):
        self.closed = True
        self.is_open = False

    async def wait_closed(self):
        return None

    # test drivers
    def emit_open(self):
        self.is_open = True
        self.on_open(self)

    def emit_message(self, raw):
        self.on_message(self, raw)

    def emit_close(self, code=1006, reason=""):
        self.is_open = False
        self.on_close(self, code, reason)

    def emit_error(self, exc=None):
        self.is_open = False
        self.on_error(self, exc or OSError("connection reset"))
        self.on_close(self, None, "error")


class ChannelFactory:
    def __init__(self):
        self.channels = []

    def __call__(self, url, **kwargs):
        channel = FakeChannel(url, **kwargs)
        self.channels.append(channel)
        return channel

    @property
    def current(self):
        return self.channels[-1]


class FakeRestClient:
    def __init__(self):
        self.snapshots = []
        self.history = []
        self.signal_calls = 0
        self.history_calls = 0
        self.performance = {"metrics": {"win_rate": 0.6, "current_balance": 1000.0}}
        self.advanced = {"multi_timeframe": {"1h": "BUY"}, "position_size": 250.0}
        self.performance_calls = 0
        self.advanced_calls = 0
        self.test_notifications = 0
        self.fail_signal = False
        self.fail_aux = False
        self.closed = False

    async def fetch_signal(self):
        self.signal_calls += 1
        if self.fail_signal or not self.snapshots:
            raise TransportError("HTTP 503 for GET /signal")
        return self.snapshots.pop(0)

    async def fetch_history(self):
        self.history_calls += 1
        return list(self.history)

    async def fetch_performance(self):
        self.performance_calls += 1
        if self.fail_aux:
            raise TransportError("HTTP 500 for GET /performance")
        return dict(self.performance)

    async def fetch_advanced_signal(self):
        self.advanced_calls += 1
        if self.fail_aux:
            raise TransportError("HTTP 500 for GET /advanced-signal")
        return dict(self.advanced)

    async def send_test_notification(self):
        self.test_notifications += 1
        if self.fail_aux:
            raise TransportError("HTTP 500 for GET /test-telegram")
        return True

    async def close(self):
        self.closed = True


class FakeAlerter:
    def __init__(self, result=True):
        self.sent = []
        self.result = result

    async def send_signal(self, snapshot):
        self.sent.append(snapshot)
        return self.result


# ------------------------- Fixtures ------------------------- #

@pytest.fixture
def sync_config():
    return {
        "API_URL": "http://signals.test/api",
        "WS_URL": "ws://signals.test/ws",
        "RECONNECT_DELAY": 3.0,
        "POLL_INTERVAL": 30.0,
        "WINDOW_CAPACITY": 20,
    }


@pytest.fixture
def timer():
    return FakeTimer()


@pytest.fixture
def channels():
    return ChannelFactory()


@pytest.fixture
def rest():
    return FakeRestClient()


@pytest.fixture
def alerter():
    return FakeAlerter()


@pytest.fixture
def visibility():
    return ManualVisibility()


@pytest.fixture
def client(sync_config, timer, channels, rest, alerter, visibility):
    return SyncClient(
        sync_config,
        logger=logging.getLogger("test.sync"),
        rest_client=rest,
        alerter=alerter,
        timer=timer,
        visibility=visibility,
        channel_factory=channels,
    )
