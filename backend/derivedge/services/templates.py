"""Text artifact generators: TradingView Pine scripts and DBot Blockly XML.

Both are pure functions of their arguments; nothing here reads market
state.
"""

import re
from typing import Mapping

from jinja2 import Environment, StrictUndefined, Template

STRATEGY_NOT_FOUND = "// Strategy not found"

# Values a caller may override through ``params``
PINE_DEFAULTS: dict[str, int | float] = {
    "rsi_period": 14,
    "rsi_low": 45,
    "rsi_high": 55,
    "streak_alert": 5,
}

_RISE_FALL = """
//@version=5
// DerivEdge Pro - Rise/Fall Strategy
// Market: {{ market }}
indicator("DerivEdge Rise/Fall", overlay=true)

// === INPUTS ===
ema20 = ta.ema(close, 20)
ema50 = ta.ema(close, 50)
ema200 = ta.ema(close, 200)
rsi = ta.rsi(close, {{ rsi_period }})
[macdLine, signalLine, histLine] = ta.macd(close, 12, 26, 9)

// === TREND FILTER ===
bullTrend = ema20 > ema50 and ema50 > ema200
bearTrend = ema20 < ema50 and ema50 < ema200

// === ENTRY CONDITIONS ===
riseCondition = bullTrend and rsi > 50 and rsi < 70 and histLine > 0 and close > ema50
fallCondition = bearTrend and rsi < 50 and rsi > 30 and histLine < 0 and close < ema50
flatZone = rsi >= {{ rsi_low }} and rsi <= {{ rsi_high }}

// === PLOTS ===
plot(ema20, "EMA 20", color.new(color.blue, 0), 2)
plot(ema50, "EMA 50", color.new(color.orange, 0), 2)
plot(ema200, "EMA 200", color.new(color.red, 0), 2)

bgcolor(flatZone ? color.new(color.gray, 90) : na, title="Flat Zone")
bgcolor(riseCondition ? color.new(color.green, 88) : na, title="Rise Signal")
bgcolor(fallCondition ? color.new(color.red, 88) : na, title="Fall Signal")

plotshape(riseCondition, "RISE", shape.labelup, location.belowbar, color.green, text="RISE", textcolor=color.white)
plotshape(fallCondition, "FALL", shape.labeldown, location.abovebar, color.red, text="FALL", textcolor=color.white)
"""

_EVEN_ODD = """
//@version=5
// DerivEdge Pro - Even/Odd Digit Strategy
// Market: {{ market }}
indicator("DerivEdge Even/Odd Digits", overlay=false)

// Use a 1-tick line chart

// === DIGIT EXTRACTION ===
lastDigit = math.floor(close * 10) % 10
isEven = lastDigit % 2 == 0
isOdd = not isEven

// === STREAK COUNTER ===
var int evenStreak = 0
var int oddStreak = 0
evenStreak := isEven ? evenStreak + 1 : 0
oddStreak := isOdd ? oddStreak + 1 : 0

// === RSI FILTER ===
rsi = ta.rsi(close, {{ rsi_period }})
flatZone = rsi >= {{ rsi_low }} and rsi <= {{ rsi_high }}

// === SIGNALS ===
streakSignalEven = evenStreak >= {{ streak_alert }}
streakSignalOdd = oddStreak >= {{ streak_alert }}

evenEntry = isEven and rsi >= 40 and rsi <= 55
oddEntry = isOdd and rsi >= 45 and rsi <= 65

// === PLOTS ===
plot(evenStreak, "Even Streak", color.blue)
plot(oddStreak, "Odd Streak", color.purple)
plot({{ streak_alert }}, "Streak Alert Level", color.yellow, linewidth=1, style=plot.style_line)

bgcolor(streakSignalEven ? color.new(color.purple, 80) : na, title="Consider ODD")
bgcolor(streakSignalOdd ? color.new(color.blue, 80) : na, title="Consider EVEN")
bgcolor(flatZone ? color.new(color.gray, 90) : na, title="No Trade Zone")

plotshape(streakSignalEven and not streakSignalEven[1], "Bet ODD", shape.triangledown, location.top, color.purple, text="BET ODD")
plotshape(streakSignalOdd and not streakSignalOdd[1], "Bet EVEN", shape.triangleup, location.bottom, color.blue, text="BET EVEN")
"""

_OVER_UNDER = """
//@version=5
// DerivEdge Pro - Over/Under Strategy
// Market: {{ market }}
// Under: last digit 0-4 | Over: last digit 5-9
indicator("DerivEdge Over/Under", overlay=false)

lastDigit = math.floor(close * 10) % 10
isLow = lastDigit <= 4
isHigh = lastDigit >= 5

// === MOMENTUM FILTER ===
rsi = ta.rsi(close, {{ rsi_period }})
ema5 = ta.ema(close, 5)
ema20 = ta.ema(close, 20)

// === ENTRY CONDITIONS ===
overEntry = isLow and rsi > {{ rsi_high }} and ema5 > ema20
underEntry = isHigh and rsi < {{ rsi_low }} and ema5 < ema20

// === VISUAL ===
barcolor(isLow ? color.green : color.red)
plot(rsi, "RSI", color.yellow)
plot({{ rsi_high }}, "RSI Over Level", color.green, linewidth=1)
plot({{ rsi_low }}, "RSI Under Level", color.red, linewidth=1)
plot(50, "RSI Mid", color.gray, linewidth=1)

plotshape(overEntry, "OVER", shape.labelup, location.bottom, color.green, text="OVER")
plotshape(underEntry, "UNDER", shape.labeldown, location.top, color.red, text="UNDER")
"""


def _num(value: int | float) -> str:
    """Render a number without a trailing ``.0``."""
    value = float(value)
    return str(int(value)) if value.is_integer() else repr(value)


def _comment_safe(text: str) -> str:
    # "--" may not appear inside an XML comment
    return re.sub(r"-{2,}", "-", text)


# Pine output is plain text; the XML environment escapes every substitution
_pine_env = Environment(undefined=StrictUndefined, keep_trailing_newline=True)
_xml_env = Environment(undefined=StrictUndefined, autoescape=True)
_xml_env.filters["num"] = _num
_xml_env.filters["comment_safe"] = _comment_safe

PINE_TEMPLATES: dict[str, Template] = {
    "rise-fall": _pine_env.from_string(_RISE_FALL),
    "even-odd": _pine_env.from_string(_EVEN_ODD),
    "over-under": _pine_env.from_string(_OVER_UNDER),
}


def pine_script(
    strategy: str,
    market: str,
    params: Mapping[str, int | float] | None = None,
) -> str:
    """
    Render a Pine Script v5 indicator for a strategy.

    Args:
        strategy: One of ``rise-fall``, ``even-odd``, ``over-under``
        market: Instrument symbol written into the script header
        params: Overrides for PINE_DEFAULTS; unknown keys are ignored

    Returns:
        Script text, or ``// Strategy not found`` for an unknown strategy
    """
    template = PINE_TEMPLATES.get(strategy)
    if template is None:
        return STRATEGY_NOT_FOUND

    values = {key: _num(v) for key, v in PINE_DEFAULTS.items()}
    for key, value in (params or {}).items():
        if key in PINE_DEFAULTS:
            values[key] = _num(value)
    return template.render(market=market, **values)


_DBOT_XML = _xml_env.from_string("""<?xml version="1.0" encoding="UTF-8"?>
<xml xmlns="https://developers.google.com/blockly/xml">
  <!-- DerivEdge Pro - {{ bot_type | upper | comment_safe }} Bot -->
  <!-- Digit: {{ digit }} | Market: {{ market | comment_safe }} | Stake: ${{ stake | num }} -->
  <!-- Take profit: ${{ take_profit | num }} | Stop loss: ${{ stop_loss | num }} -->
  <block type="trade" x="10" y="10">
    <field name="MARKET_TYPE">digits</field>
    <field name="SYMBOL">{{ market }}</field>
    <field name="CONTRACT_TYPE">DIGITMATCH</field>
    <field name="DURATION">1</field>
    <field name="DURATION_TYPE">t</field>
    <field name="AMOUNT">{{ stake | num }}</field>
    <field name="PREDICTION">{{ digit }}</field>
    <next>
      <block type="trade_result_block">
        <statement name="AFTER_PURCHASE">
          <block type="variables_set">
            <field name="VAR">lastResult</field>
            <value name="VALUE">
              <block type="read_result">
                <field name="RESULT_TYPE">profit</field>
              </block>
            </value>
          </block>
        </statement>
      </block>
    </next>
  </block>
</xml>""")


def dbot_xml(
    bot_type: str = "nuclear9",
    digit: int = 9,
    market: str = "R_75",
    stake: float = 1,
    take_profit: float = 12,
    stop_loss: float = 7,
) -> str:
    """Render a Deriv DBot workspace with a one-tick DIGITMATCH trade block."""
    return _DBOT_XML.render(
        bot_type=bot_type,
        digit=int(digit),
        market=market,
        stake=stake,
        take_profit=take_profit,
        stop_loss=stop_loss,
    )
