from __future__ import annotations

from datetime import datetime, timezone
from html import escape
import re

from .models import Direction, FundingAssessment, TimeframeSnapshot, TrackedSignal, TradeSignal

SEPARATOR = "──────────────────"
_TAG_RE = re.compile(r"<[^>]+>")


def strip_html(text: str) -> str:
    return _TAG_RE.sub("", text)


def format_price(price: float) -> str:
    if price >= 1000:
        return f"{price:,.2f}"
    if price >= 1:
        return f"{price:.4f}"
    return f"{price:.6f}"


def _format_time(ts: datetime) -> str:
    return ts.astimezone(timezone.utc).strftime("%H:%M UTC")


def _label_direction(direction: Direction) -> tuple[str, str]:
    if direction == "LONG":
        return "📈", "BUY 🟢"
    return "📉", "SELL 🔴"


def rsi_stars(rsi: float, direction: Direction) -> str:
    if direction == "LONG":
        if rsi <= 15:
            return " ⭐⭐"
        if rsi <= 20:
            return " ⭐"
    else:
        if rsi >= 85:
            return " ⭐⭐"
        if rsi >= 80:
            return " ⭐"
    return ""


def stoch_marks(k: float, d: float, direction: Direction) -> str:
    if direction == "SHORT":
        if k >= 100 and d >= 100:
            return " ❗❗❗"
        if k >= 100 and d >= 90:
            return " ❗❗"
        if k >= 90 and d >= 90:
            return " ❗"
    else:
        if k <= 0 and d <= 0:
            return " ❗❗❗"
        if k <= 0 and d <= 10:
            return " ❗❗"
        if k <= 10 and d <= 10:
            return " ❗"
    return ""


def risk_emoji(level: str) -> str:
    return {"LOW": "✅", "MEDIUM": "⚡", "HIGH": "⚠️"}.get(level, "🚫")


def accumulation_line(snapshot: TimeframeSnapshot) -> str | None:
    acc = snapshot.accumulation
    if acc.count < 2 or acc.zone == "NONE":
        return None
    emoji, label = ("🔴", "Overbought") if acc.zone == "OVERBOUGHT" else ("🟢", "Oversold")
    cross = " | K/D ✂️" if acc.stoch_cross_in_zone else ""
    return f"{emoji} {label}: {acc.count} candles (peak RSI: {acc.peak_rsi:.0f}){cross}"


def volume_change_line(pct: float) -> str:
    sign = "+" if pct >= 0 else ""
    magnitude = abs(pct)
    stars = ""
    if magnitude >= 100:
        stars = " ⭐⭐⭐"
    elif magnitude >= 50:
        stars = " ⭐⭐"
    elif magnitude >= 20:
        stars = " ⭐"
    return f"📊 Volume 15m: {sign}{pct:.0f}%{stars}"


def _cross_label(cross: str) -> str:
    return "🟢 Up" if cross == "bullish_cross" else "🔴 Down"


def _wt_emoji(signal: str) -> str:
    return {"buy": "🟢", "sell": "🔴"}.get(signal, "⚪")


def futures_url(symbol: str) -> str:
    return f"https://www.binance.com/en/futures/{symbol.upper()}"


def _indicator_lines(signal: TradeSignal, fr_line: str) -> list[str]:
    direction = signal.direction
    tf15 = signal.multi_tf.entry["15m"]
    tf5 = signal.multi_tf.entry["5m"]
    tf1h = signal.multi_tf.direction["1h"]
    tf4h = signal.multi_tf.direction["4h"]
    tf1d = signal.multi_tf.direction["1d"]
    tag = " (signal)" if tf15.rsi <= 20 or tf15.rsi >= 80 else ""

    lines = [f"• Price: {format_price(signal.entry_price)}"]
    accumulation = accumulation_line(tf15)
    if accumulation:
        lines.append(f"• {accumulation}")
    lines.append(f"• 15m RSI: {tf15.rsi:.0f}{rsi_stars(tf15.rsi, direction)}{tag}")
    if tf15.rsi_cross != "none":
        lines.append(f"• ✂️ RSI cross! {_cross_label(tf15.rsi_cross)}")
    lines.append(f"• 5m RSI: {tf5.rsi:.0f}{rsi_stars(tf5.rsi, direction)}")
    lines.append(f"• 1h RSI: {tf1h.rsi:.0f}{rsi_stars(tf1h.rsi, direction)}")
    lines.append(f"• 4h RSI: {tf4h.rsi:.0f}{rsi_stars(tf4h.rsi, direction)}")
    lines.append(f"• 1d RSI: {tf1d.rsi:.0f}")
    lines.append(f"• Stoch: {tf15.srsi_k:.0f}(K)/{tf15.srsi_d:.0f}(D){stoch_marks(tf15.srsi_k, tf15.srsi_d, direction)}")
    if tf15.srsi_cross != "none":
        lines.append(f"• ✂️ SRSI K/D cross! {_cross_label(tf15.srsi_cross)}")
    lines.append(f"• WT: {_wt_emoji(tf15.wt_cross_signal)}")
    lines.append(fr_line)
    lines.append(f"• {volume_change_line(tf15.volume_change_pct)}")
    return lines


def format_signal_message(signal: TradeSignal) -> str:
    dir_emoji, dir_label = _label_direction(signal.direction)
    symbol = escape(signal.symbol.upper())
    fr = signal.fr
    profit = signal.profit

    lines = [f"<b>{dir_emoji} [15M] #{symbol} {dir_label}</b>"]
    if signal.status == "BLOCKED":
        lines.append("❌ FUNDING RATE DANGEROUS - DO NOT ENTER!")
    elif signal.status == "WARNING":
        lines.append("⚠️ FUNDING RATE RISKY - BE CAREFUL!")
    lines.append(SEPARATOR)
    lines.extend(
        _indicator_lines(
            signal,
            f"• FR: {fr.rate_pct:.4f}% {risk_emoji(fr.risk_level)} L/S: {fr.ls_ratio:.2f}",
        )
    )
    lines.append(
        f"• 🎯 Target: {format_price(signal.target_price)} "
        f"(+{profit.profit_pct:.0f}% / ${profit.profit_usd:,.2f} on ${profit.entry_usd:,.2f})"
    )
    lines.append(f"• 💪 Strength: {signal.strength}")
    if signal.warnings:
        lines.append(f"• ⚠️ {escape(', '.join(signal.warnings))}")
    lines.append(SEPARATOR)
    lines.append(f'🔗 <a href="{futures_url(signal.symbol)}">Binance Futures</a> | ⏰ {_format_time(signal.timestamp)}')
    return "\n".join(lines)


def format_funding_update_message(
    entry: TrackedSignal,
    assessment: FundingAssessment,
    old_rate_pct: float,
    update_no: int,
    direction_arrow: str,
    now: datetime | None = None,
) -> str:
    signal = entry.signal
    dir_emoji, dir_label = _label_direction(signal.direction)
    symbol = escape(signal.symbol.upper())
    now = now or datetime.now(tz=timezone.utc)

    lines = [
        f"<b>🔄 FR UPDATE #{update_no} - #{symbol}</b>",
        f"{dir_emoji} {dir_label} | {direction_arrow}",
    ]
    if assessment.risk_level == "BLOCKED":
        lines.append("❌ FUNDING RATE DANGEROUS - DO NOT ENTER!")
    elif assessment.risk_level == "HIGH":
        lines.append("⚠️ FUNDING RATE RISKY - BE CAREFUL!")
    lines.append(SEPARATOR)
    lines.extend(
        _indicator_lines(
            signal,
            f"• FR: {old_rate_pct:.4f}% → <b>{assessment.rate_pct:.4f}%</b> "
            f"{risk_emoji(assessment.risk_level)} L/S: {assessment.ls_ratio:.2f}",
        )
    )
    lines.append(SEPARATOR)
    lines.append(f'🔗 <a href="{futures_url(signal.symbol)}">Binance Futures</a> | ⏰ {_format_time(now)}')
    return "\n".join(lines)
