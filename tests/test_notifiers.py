from unittest.mock import AsyncMock, MagicMock

import pytest
from telegram.error import TelegramError

from conftest import make_payload
from core.errors import AlertDispatchError, TransportError
from core.message_handler import decode_snapshot
from notifiers.formatting import format_alert, format_percent, format_price, rsi_status
from notifiers.hub import NotifierHub
from notifiers.remote import RemoteRelayNotifier
from notifiers.telegram import TelegramNotifier


def snapshot(signal="BUY", **extra):
    return decode_snapshot(make_payload(signal, **extra))


# ------------------------- Formatting ------------------------- #

def test_format_helpers():
    assert format_price(50123.456) == "$50,123.46"
    assert format_percent(1.234) == "+1.23%"
    assert format_percent(-0.4) == "-0.40%"
    assert format_percent(0) == "0.00%"
    assert rsi_status(25) == "🟢 Oversold"
    assert rsi_status(75) == "🔴 Overbought"
    assert rsi_status(50) == "⚪ Neutral"


def test_alert_text_for_buy():
    text = format_alert(snapshot("BUY"))
    assert "BUY SIGNAL" in text
    assert "ACTION: BUY WBTC on DEX" in text
    assert "Signal Only" in text
    assert "Signal Analysis" not in text


def test_alert_text_with_advanced_metrics():
    text = format_alert(
        snapshot("SELL", signal_strength=82.5, confidence_score=71.0,
                 volatility=1.25, position_size=1500, auto_trading=True)
    )
    assert "Signal Strength: `82.5%`" in text
    assert "Position Size: `$1,500.00`" in text
    assert "AUTO TRADING ENABLED" in text
    assert "ACTION: SELL WBTC on DEX" in text


@pytest.mark.parametrize("strength", [0, -12.5])
def test_non_positive_strength_omits_analysis(strength):
    text = format_alert(snapshot("BUY", signal_strength=strength, confidence_score=50.0))
    assert "Signal Analysis" not in text


def test_alert_text_for_hold_monitors():
    assert "MONITOR MARKET" in format_alert(snapshot("HOLD"))


# ------------------------- Back-ends ------------------------- #

@pytest.mark.asyncio
async def test_telegram_notifier_sends_markdown():
    bot = MagicMock()
    bot.initialize = AsyncMock()
    bot.send_message = AsyncMock()
    notifier = TelegramNotifier(token="t", chat_id="42", bot=bot)

    assert await notifier.send("hello", snapshot()) is True
    assert await notifier.send("again", snapshot()) is True

    bot.initialize.assert_awaited_once()
    kwargs = bot.send_message.call_args.kwargs
    assert kwargs["chat_id"] == "42"
    assert kwargs["text"] == "again"


@pytest.mark.asyncio
async def test_telegram_notifier_raises_dispatch_error():
    bot = MagicMock()
    bot.initialize = AsyncMock()
    bot.send_message = AsyncMock(side_effect=TelegramError("chat not found"))
    notifier = TelegramNotifier(token="t", chat_id="42", bot=bot)

    with pytest.raises(AlertDispatchError, match="chat not found"):
        await notifier.send("hello", snapshot())


@pytest.mark.asyncio
async def test_remote_relay():
    rest = MagicMock()
    rest.send_telegram = AsyncMock(return_value=True)
    s = snapshot()

    assert await RemoteRelayNotifier(rest).send("ignored", s) is True
    rest.send_telegram.assert_awaited_once_with(s)

    rest.send_telegram = AsyncMock(side_effect=TransportError("HTTP 500"))
    with pytest.raises(AlertDispatchError):
        await RemoteRelayNotifier(rest).send("ignored", s)


# ------------------------- Hub ------------------------- #

def test_hub_builds_backends_from_config():
    rest = MagicMock()
    hub = NotifierHub(
        {"TELEGRAM": {"token": "123:abc", "chat_id": "42"}, "ALERT_VIA_API": True},
        rest_client=rest,
    )
    assert [b.__class__.__name__ for b in hub.backends] == [
        "TelegramNotifier",
        "RemoteRelayNotifier",
    ]

    hub = NotifierHub({"ALERT_VIA_API": False}, rest_client=rest)
    assert hub.backends == []


@pytest.mark.asyncio
async def test_hub_without_backends_reports_false():
    assert await NotifierHub({}, backends=[]).send_signal(snapshot()) is False


@pytest.mark.asyncio
async def test_hub_survives_failing_backend():
    broken = MagicMock()
    broken.send = AsyncMock(side_effect=RuntimeError("boom"))
    working = MagicMock()
    working.send = AsyncMock(return_value=True)
    hub = NotifierHub({}, backends=[broken, working])

    assert await hub.send_signal(snapshot("SELL")) is True
    text, sent = working.send.call_args.args
    assert "SELL SIGNAL" in text
    assert sent.signal.value == "SELL"


@pytest.mark.asyncio
async def test_hub_all_backends_fail():
    failing = MagicMock()
    failing.send = AsyncMock(return_value=False)
    assert await NotifierHub({}, backends=[failing]).send_signal(snapshot()) is False


@pytest.mark.asyncio
async def test_hub_raises_when_every_backend_errors():
    relay_rest = MagicMock()
    relay_rest.send_telegram = AsyncMock(side_effect=TransportError("HTTP 502"))
    declining = MagicMock()
    declining.send = AsyncMock(return_value=False)
    hub = NotifierHub({}, backends=[RemoteRelayNotifier(relay_rest), declining])

    with pytest.raises(AlertDispatchError, match="RemoteRelayNotifier: Alert relay failed"):
        await hub.send_signal(snapshot("BUY"))
    declining.send.assert_awaited_once()


def test_hub_reads_backends_through_config_manager():
    hub = NotifierHub(
        {"TELEGRAM": {"token": "123:abc", "chat_id": None}},
        rest_client=MagicMock(),
    )
    # ALERT_VIA_API defaults to on; half-configured Telegram is skipped
    assert [b.__class__.__name__ for b in hub.backends] == ["RemoteRelayNotifier"]
