"""
Purpose: Per-zone demand prediction from historical request volume.
What it does:

For one zone:
  1) fewer than min_samples observations -> baseline (5 x seasonal), confidence 40
  2) bucket observations into hourly totals (chronological series v0..vN-1)
  3) ordinary least squares over (index, value) -> slope, intercept
  4) exponential smoothing (alpha 0.3)
  5) blend 0.6 linear + 0.4 smoothed
  6) apply time-of-day / day-of-week multipliers at now + hours_ahead
  7) derive current demand, confidence and trend label

Closed-form statistics only. No model training, no state carried between calls.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from .anomaly import detect_anomaly
from .history import samples_to_frame
from .models import DemandSample, ForecastResult, Trend
from .patterns import day_of_week_multiplier, round_half_up, time_of_day_multiplier
from .policy import ForecastPolicy, default_forecast_policy


def hourly_demand(samples: Sequence[DemandSample]) -> pd.Series:
    """
    Sum of sample counts per clock hour, oldest hour first.
    Hours without any sample are simply absent (no zero filling).
    """
    frame = samples_to_frame(samples)
    if frame.empty:
        return pd.Series(dtype=float)
    buckets = frame.groupby(frame["timestamp"].dt.floor("h"))["count"].sum()
    return buckets.sort_index().astype(float)


def linear_regression(values: Sequence[float]) -> Tuple[float, float]:
    """
    OLS fit of values against their index 0..n-1. Returns (slope, intercept).

    A single point has no slope: (0, value).
    """
    n = len(values)
    if n == 0:
        return 0.0, 0.0
    if n == 1:
        return 0.0, float(values[0])

    sum_x = sum_y = sum_xy = sum_xx = 0.0
    for x, y in enumerate(values):
        sum_x += x
        sum_y += y
        sum_xy += x * y
        sum_xx += x * x

    slope = (n * sum_xy - sum_x * sum_y) / (n * sum_xx - sum_x * sum_x)
    intercept = (sum_y - slope * sum_x) / n
    return slope, intercept


def exponential_smoothing(values: Sequence[float], alpha: float = 0.3) -> float:
    """S0 = v0, Si = alpha*vi + (1-alpha)*S(i-1); returns the final S."""
    if not values:
        return 0.0

    smoothed = float(values[0])
    for value in values[1:]:
        smoothed = alpha * value + (1 - alpha) * smoothed
    return smoothed


def classify_trend(slope: float, policy: ForecastPolicy) -> Trend:
    if slope > policy.trend_slope_threshold:
        return Trend.INCREASING
    if slope < -policy.trend_slope_threshold:
        return Trend.DECREASING
    return Trend.STABLE


def forecast_confidence(sample_count: int, slope: float, policy: ForecastPolicy) -> int:
    data_quality = min(sample_count / policy.full_confidence_samples, 1.0)
    if abs(slope) < policy.steady_slope_limit:
        trend_consistency = policy.steady_trend_factor
    else:
        trend_consistency = policy.unsteady_trend_factor
    return min(round_half_up(data_quality * trend_consistency * 100), policy.max_confidence)


def baseline_forecast(
    zone: str,
    now: datetime,
    hours_ahead: int,
    policy: ForecastPolicy,
) -> ForecastResult:
    """
    Sparse-data result. The multipliers are taken at `now`, not at the horizon.
    """
    predicted = round_half_up(
        policy.baseline_demand * time_of_day_multiplier(now) * day_of_week_multiplier(now)
    )
    return ForecastResult(
        zone=zone,
        current_demand=policy.baseline_demand,
        predicted_demand=predicted,
        confidence=policy.baseline_confidence,
        trend=Trend.STABLE,
        anomaly=False,
        insufficient_data=True,
        hours_ahead=hours_ahead,
        generated_at=now,
    )


def predict_zone_demand(
    samples: Iterable[DemandSample],
    zone: str,
    hours_ahead: Optional[int] = None,
    *,
    now: Optional[datetime] = None,
    policy: Optional[ForecastPolicy] = None,
) -> ForecastResult:
    """
    Forecast demand for `zone` `hours_ahead` hours from `now`.

    `samples` may contain other zones; only this zone's samples are used.
    Never raises for sparse data: it degrades to the baseline instead.
    """
    policy = policy or default_forecast_policy()
    now = now or datetime.now()
    if hours_ahead is None:
        hours_ahead = policy.default_hours_ahead

    zone_samples: List[DemandSample] = [sample for sample in samples if sample.zone == zone]

    if len(zone_samples) < policy.min_samples:
        return baseline_forecast(zone, now, hours_ahead, policy)

    values = hourly_demand(zone_samples).tolist()

    slope, intercept = linear_regression(values)
    linear_prediction = slope * len(values) + intercept
    smoothed_prediction = exponential_smoothing(values, policy.smoothing_alpha)

    raw_prediction = (
        linear_prediction * policy.linear_weight
        + smoothed_prediction * policy.smoothed_weight
    )

    target_time = now + timedelta(hours=hours_ahead)
    raw_prediction = raw_prediction * time_of_day_multiplier(target_time) * day_of_week_multiplier(target_time)

    return ForecastResult(
        zone=zone,
        current_demand=round_half_up(values[-1]),
        predicted_demand=max(1, round_half_up(raw_prediction)),
        confidence=forecast_confidence(len(zone_samples), slope, policy),
        trend=classify_trend(slope, policy),
        anomaly=detect_anomaly(zone_samples, zone, policy=policy),
        insufficient_data=False,
        hours_ahead=hours_ahead,
        generated_at=now,
    )


def predict_multi_zone_demand(
    samples: Iterable[DemandSample],
    zones: Optional[Sequence[str]] = None,
    hours_ahead: Optional[int] = None,
    *,
    now: Optional[datetime] = None,
    policy: Optional[ForecastPolicy] = None,
) -> List[ForecastResult]:
    """
    One ForecastResult per zone. With zones=None, every zone that appears in
    `samples` is forecast (in order of first appearance).
    """
    policy = policy or default_forecast_policy()
    now = now or datetime.now()
    samples = list(samples)

    if zones is None:
        zones = list(dict.fromkeys(sample.zone for sample in samples))

    return [
        predict_zone_demand(samples, zone, hours_ahead, now=now, policy=policy)
        for zone in zones
    ]
