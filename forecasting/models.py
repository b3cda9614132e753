"""
Purpose: Data structures for demand forecasting.
What it does:
- DemandSample: one (zone, timestamp, count) observation, append-only
- Trend: increasing | decreasing | stable
- ForecastResult: one zone's prediction for one forecasting cycle

Rule: Models only. The maths lives in predictor.py / anomaly.py.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class Trend(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


@dataclass(frozen=True)
class DemandSample:
    zone: str
    timestamp: datetime
    count: float = 1


@dataclass(frozen=True)
class ForecastResult:
    """
    Recomputed every cycle and superseded (never merged) by the next one.

    insufficient_data=True marks the baseline path taken for sparse zones;
    it is a documented outcome, not a failure.
    """
    zone: str
    current_demand: int
    predicted_demand: int
    confidence: int
    trend: Trend
    anomaly: bool = False
    insufficient_data: bool = False
    hours_ahead: int = 1
    generated_at: datetime = field(default_factory=datetime.now)
