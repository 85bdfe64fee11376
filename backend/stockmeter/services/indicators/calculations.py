"""
Technical Indicator Calculations

Pure, deterministic implementations of SMA, EMA and RSI.

All arithmetic is done in Decimal and every emitted value is rounded to
two places with ROUND_HALF_UP (half away from zero), so identical input
always yields byte-identical output. Each function returns a fresh
generator; nothing is cached between calls.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterator, Sequence, Union

Number = Union[Decimal, float, int, str]

TWO_PLACES = Decimal("0.01")
HUNDRED = Decimal(100)


def to_decimal(value: Number) -> Decimal:
    """Convert a price to Decimal without binary float artifacts."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_price(value: Decimal) -> Decimal:
    """Round to 2 decimal places, half away from zero."""
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def _check_period(period: int) -> None:
    if period <= 0:
        raise ValueError(f"Period must be a positive integer, got {period}")


# =============================================================================
# MOVING AVERAGES
# =============================================================================


def sma(prices: Sequence[Number], period: int) -> Iterator[Decimal]:
    """
    Simple Moving Average.

    Yields len(prices) - period + 1 values; nothing if period > len(prices).
    """
    _check_period(period)
    values = [to_decimal(p) for p in prices]

    def _generate() -> Iterator[Decimal]:
        if period > len(values):
            return
        window_sum = sum(values[:period], Decimal(0))
        yield round_price(window_sum / period)
        for i in range(period, len(values)):
            window_sum += values[i] - values[i - period]
            yield round_price(window_sum / period)

    return _generate()


def ema(prices: Sequence[Number], period: int) -> Iterator[Decimal]:
    """
    Exponential Moving Average.

    Seeded with the rounded SMA of the first `period` prices. Every step
    is rounded and the rounded value feeds the next step.
    """
    _check_period(period)
    values = [to_decimal(p) for p in prices]

    def _generate() -> Iterator[Decimal]:
        if len(values) < period:
            return
        multiplier = Decimal(2) / Decimal(period + 1)
        prev = round_price(sum(values[:period], Decimal(0)) / period)
        yield prev
        for price in values[period:]:
            prev = round_price((price - prev) * multiplier + prev)
            yield prev

    return _generate()


# =============================================================================
# MOMENTUM INDICATORS
# =============================================================================


def _rsi_value(avg_gain: Decimal, avg_loss: Decimal) -> Decimal:
    # No losses in the window: RSI is pinned at 100.
    if avg_loss == 0:
        return round_price(HUNDRED)
    rs = avg_gain / avg_loss
    return round_price(HUNDRED - HUNDRED / (1 + rs))


def rsi(prices: Sequence[Number], period: int = 14) -> Iterator[Decimal]:
    """
    Relative Strength Index with Wilder's smoothing.

    Needs at least period + 1 prices. Averages are carried unrounded;
    only the emitted RSI values are rounded.
    """
    _check_period(period)
    values = [to_decimal(p) for p in prices]

    def _generate() -> Iterator[Decimal]:
        if len(values) < period + 1:
            return

        gains = Decimal(0)
        losses = Decimal(0)
        for i in range(1, period + 1):
            change = values[i] - values[i - 1]
            if change > 0:
                gains += change
            else:
                losses -= change

        avg_gain = gains / period
        avg_loss = losses / period
        yield _rsi_value(avg_gain, avg_loss)

        for i in range(period + 1, len(values)):
            change = values[i] - values[i - 1]
            gain = change if change > 0 else Decimal(0)
            loss = -change if change < 0 else Decimal(0)
            avg_gain = (avg_gain * (period - 1) + gain) / period
            avg_loss = (avg_loss * (period - 1) + loss) / period
            yield _rsi_value(avg_gain, avg_loss)

    return _generate()
