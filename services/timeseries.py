# services/timeseries.py
"""
Historical performance series for the dashboard.

There is no price history behind this backend, so the series is mock
data. Providers only promise the shape: 12 ordered points of
{period, value, benchmark, gain, gain_percent}.
"""
from __future__ import annotations

import calendar
from typing import Any, Dict, List, Optional, Protocol

import numpy as np

from utils.common_helpers import round_half_up

PERIODS: List[str] = list(calendar.month_abbr)[1:]  # Jan..Dec
BENCHMARK_ANNUAL_RETURN = 0.08


def _point(period: str, value: float, start_value: float, index: int) -> Dict[str, Any]:
    benchmark = start_value * (1 + index * BENCHMARK_ANNUAL_RETURN / 12)
    return {
        "period": period,
        "value": round_half_up(value, 0),
        "benchmark": round_half_up(benchmark, 0),
        "gain": round_half_up(value - start_value, 0),
        "gain_percent": (value - start_value) / start_value * 100.0 if start_value else 0.0,
    }


class TimeSeriesProvider(Protocol):
    def series(self, start_value: float) -> List[Dict[str, Any]]:
        ...


class RandomWalkProvider:
    """Monthly random walk with a slight upward drift: change ~ U(-0.4, 0.6) * 0.15."""

    def __init__(self, seed: Optional[int] = None):
        self._rng = np.random.default_rng(seed)

    def series(self, start_value: float) -> List[Dict[str, Any]]:
        changes = (self._rng.random(len(PERIODS)) - 0.4) * 0.15
        values = start_value * np.cumprod(1 + changes)
        return [_point(p, float(v), start_value, i) for i, (p, v) in enumerate(zip(PERIODS, values))]


class ConstantGrowthProvider:
    """Deterministic series compounding `monthly_rate` each period."""

    def __init__(self, monthly_rate: float = 0.01):
        self.monthly_rate = monthly_rate

    def series(self, start_value: float) -> List[Dict[str, Any]]:
        out: List[Dict[str, Any]] = []
        value = start_value
        for i, period in enumerate(PERIODS):
            value = value * (1 + self.monthly_rate)
            out.append(_point(period, value, start_value, i))
        return out


def build_provider(name: str, seed: Optional[int] = None) -> TimeSeriesProvider:
    if name == "random":
        return RandomWalkProvider(seed)
    if name == "constant":
        return ConstantGrowthProvider()
    raise ValueError(f"unknown history provider: {name}")
