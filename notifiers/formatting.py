"""
notifiers/formatting.py
-----------------------
Human-readable alert text for a SignalSnapshot (Telegram Markdown).
"""
from __future__ import annotations

from models.signal import SignalKind, SignalSnapshot

_HEADLINES = {
    SignalKind.BUY: "🟢 💰 BUY SIGNAL",
    SignalKind.SELL: "🔴 💸 SELL SIGNAL",
    SignalKind.HOLD: "🟡 🔒 HOLD SIGNAL",
    SignalKind.WAIT: "⚪ ⏳ WAITING",
}

_ACTIONS = {
    SignalKind.BUY: "✅ *ACTION: BUY WBTC on DEX*\nEntry opportunity detected!",
    SignalKind.SELL: "🛑 *ACTION: SELL WBTC on DEX*\nExit opportunity detected!",
}
_DEFAULT_ACTION = "📢 *ACTION: MONITOR MARKET*\nWaiting for better conditions..."


def format_price(price: float) -> str:
    return f"${price:,.2f}"


def format_percent(percent: float) -> str:
    """Signed except for zero: ``+1.25%``, ``-0.40%``, ``0.00%``."""
    if percent == 0:
        return "0.00%"
    return f"{percent:+.2f}%"


def format_rsi(rsi: float) -> str:
    return f"{rsi:.1f}"


def rsi_status(rsi: float) -> str:
    if rsi <= 30:
        return "🟢 Oversold"
    if rsi >= 70:
        return "🔴 Overbought"
    return "⚪ Neutral"


def spread_line(spread: float) -> str:
    if spread > 0:
        return f"📈 +{spread:.2f}%"
    if spread < 0:
        return f"📉 {spread:.2f}%"
    return f"➖ {spread:.2f}%"


def format_alert(s: SignalSnapshot) -> str:
    lines = [
        "*📊 WBTC SCALP BOT ALERT 📊*",
        _HEADLINES[s.signal],
        "",
        "⚡ *Market Conditions*:",
        f"• RSI: `{format_rsi(s.rsi)}` {rsi_status(s.rsi)}",
        f"• EMA: `{format_price(s.ema)}`",
        f"• Binance BTC: `{format_price(s.binance_price)}`",
        f"• DEX WBTC: `{format_price(s.dex_price)}`",
        f"• Spread: {spread_line(s.spread)}",
        "💹 DEX price higher than Binance" if s.spread > 0 else "📉 DEX price lower than Binance",
    ]

    if s.signal_strength is not None and s.signal_strength > 0:
        lines += [
            "",
            "⚖️ *Signal Analysis*:",
            f"• Signal Strength: `{s.signal_strength:.1f}%`",
            f"• Confidence Score: `{(s.confidence_score or 0):.1f}%`",
            f"• Volatility: `{(s.volatility or 0):.2f}%`",
        ]
        if s.position_size:
            lines.append(f"• Position Size: `{format_price(s.position_size)}`")

    mode = "*AUTO TRADING ENABLED*" if s.auto_trading else "Signal Only"
    lines += [
        "",
        f"⏰ Signal Time: `{s.timestamp:%Y-%m-%d %H:%M:%S %Z}`",
        f"🤖 Trading Mode: {mode}",
        "",
        _ACTIONS.get(s.signal, _DEFAULT_ACTION),
    ]
    return "\n".join(lines)
