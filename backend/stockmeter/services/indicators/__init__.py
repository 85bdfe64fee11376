"""
Indicator Engine

RESPONSIBILITIES:
    - Simple and exponential moving averages
    - Relative Strength Index (Wilder's smoothing)

PURE PYTHON - Decimal arithmetic, no I/O.
All math is deterministic and reproducible.
"""

from stockmeter.services.indicators.calculations import (
    ema,
    round_price,
    rsi,
    sma,
    to_decimal,
)

__all__ = [
    "sma",
    "ema",
    "rsi",
    "round_price",
    "to_decimal",
]
